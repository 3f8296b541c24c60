"""Moderation state machine for travel-note submissions.

States: pending -> approved | rejected. Both outcomes are terminal;
deletion is a separate admin-only removal.
"""

from notemod.moderation.engine import ModerationEngine
from notemod.moderation.models import ReviewAction, ReviewResult

__all__ = [
    "ModerationEngine",
    "ReviewAction",
    "ReviewResult",
]
