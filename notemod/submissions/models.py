"""Submission data models -- records, filters, and pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from notemod.auth.models import utcnow
from notemod.errors import ValidationError


def normalize_timestamp(value: datetime | str) -> str:
    """Return *value* as a UTC ISO-8601 string.

    Accepts ISO-8601 text (a trailing ``Z`` and a space separator included)
    or a ``datetime``. Naive values are taken to be UTC.
    """
    parsed = value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid timestamp: '{value}'")
    if not isinstance(parsed, datetime):
        raise ValidationError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


class SubmissionStatus(str, Enum):
    """Review state of a submission."""

    pending = "pending"
    approved = "approved"
    rejected = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not SubmissionStatus.pending


@dataclass(frozen=True)
class Submission:
    """A user-authored travel note under moderation.

    ``rejection_reason`` is set exactly when ``status`` is rejected.
    ``created_at`` is stored as UTC ISO-8601 whatever form it was given in.
    """

    id: str
    title: str
    content: str
    author: str = ""
    status: SubmissionStatus = SubmissionStatus.pending
    rejection_reason: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    reviewed_by: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.status, str) and not isinstance(self.status, SubmissionStatus):
            object.__setattr__(self, "status", SubmissionStatus(self.status))
        if self.created_at:
            object.__setattr__(self, "created_at", normalize_timestamp(self.created_at))
        else:
            object.__setattr__(self, "created_at", utcnow().isoformat())
        if not self.updated_at:
            object.__setattr__(self, "updated_at", self.created_at)

    @property
    def sort_key(self) -> tuple[datetime, str]:
        return (datetime.fromisoformat(self.created_at), self.id)


@dataclass(frozen=True)
class SubmissionFilter:
    """Predicate shared by the item query and the count query."""

    status: Optional[SubmissionStatus] = None
    search_text: str = ""

    def matches(self, submission: Submission) -> bool:
        if self.status is not None and submission.status != self.status:
            return False
        needle = self.search_text.strip().lower()
        if needle:
            return (
                needle in submission.title.lower()
                or needle in submission.content.lower()
            )
        return True


@dataclass
class Pagination:
    """Page bookkeeping derived from a single count."""

    current_page: int
    total_pages: int
    total_items: int
    page_size: int
    has_next: bool = False
    has_previous: bool = False
    out_of_range: bool = False


@dataclass
class Page:
    """One page of submissions plus its pagination."""

    items: list[Submission] = field(default_factory=list)
    pagination: Optional[Pagination] = None
