"""Data models for the moderation workflow."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from notemod.auth.models import Role
from notemod.submissions.models import Submission, SubmissionStatus


class ReviewAction(str, Enum):
    """Actions a staff member can take on a submission."""

    approve = "approve"
    reject = "reject"
    delete = "delete"

    @property
    def required_role(self) -> Role:
        return ACTION_AUTHORITY[self]


# Minimum role per action. Admin outranks moderator, so it passes both.
ACTION_AUTHORITY: dict[ReviewAction, Role] = {
    ReviewAction.approve: Role.moderator,
    ReviewAction.reject: Role.moderator,
    ReviewAction.delete: Role.admin,
}

# Legal status changes. Terminal states have no outgoing edges; delete is
# not a status change and is handled separately.
TRANSITIONS: dict[tuple[SubmissionStatus, ReviewAction], SubmissionStatus] = {
    (SubmissionStatus.pending, ReviewAction.approve): SubmissionStatus.approved,
    (SubmissionStatus.pending, ReviewAction.reject): SubmissionStatus.rejected,
}

MAX_REASON_LENGTH = 2000


@dataclass(frozen=True)
class ReviewResult:
    """Outcome of a successfully applied review action."""

    action: ReviewAction
    submission_id: str
    actor_id: str
    performed_at: str
    previous_status: SubmissionStatus
    submission: Optional[Submission] = None  # None after delete
