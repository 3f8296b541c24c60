"""Moderation engine -- applies review actions to submissions.

Invariants enforced here:
- Only ``pending`` submissions can be approved or rejected; both outcomes
  are terminal and nothing ever returns to ``pending``.
- A rejection always carries a non-empty reason; an approval never does.
- Writes are compare-and-swap on the current status. When a concurrent
  reviewer wins the race, the loser gets ``InvalidTransition`` and the
  record keeps the winner's outcome.
- Deletion needs admin authority and removes the record outright.

Callers are expected to pass the identity returned by the access gate. The
engine repeats the role check so it cannot be driven around the gate.
"""

from __future__ import annotations

import logging
from typing import Optional

from notemod.auth.models import Identity, utcnow
from notemod.auth.permissions import require_role
from notemod.errors import InvalidTransition, NotFound, ValidationError
from notemod.moderation.models import (
    MAX_REASON_LENGTH,
    TRANSITIONS,
    ReviewAction,
    ReviewResult,
)
from notemod.security.audit_log import AuditLogger
from notemod.submissions.models import Submission, SubmissionStatus
from notemod.submissions.repository import SubmissionRepository

logger = logging.getLogger(__name__)


class ModerationEngine:
    """State machine over submission status."""

    def __init__(
        self,
        repository: SubmissionRepository,
        audit: Optional[AuditLogger] = None,
        clock=utcnow,
    ) -> None:
        self._repository = repository
        self._audit = audit
        self._clock = clock

    # -- queries -------------------------------------------------------------

    @staticmethod
    def can_apply(submission: Submission, action: ReviewAction) -> bool:
        """Whether *action* is legal for the submission's current status."""
        if action is ReviewAction.delete:
            return True
        return (submission.status, action) in TRANSITIONS

    @staticmethod
    def available_actions(submission: Submission) -> list[ReviewAction]:
        return [a for a in ReviewAction if ModerationEngine.can_apply(submission, a)]

    # -- actions -------------------------------------------------------------

    def approve(self, submission_id: str, actor: Identity) -> ReviewResult:
        return self.apply(submission_id, ReviewAction.approve, actor)

    def reject(self, submission_id: str, actor: Identity, reason: str) -> ReviewResult:
        return self.apply(submission_id, ReviewAction.reject, actor, reason=reason)

    def delete(self, submission_id: str, actor: Identity) -> ReviewResult:
        return self.apply(submission_id, ReviewAction.delete, actor)

    def apply(
        self,
        submission_id: str,
        action: ReviewAction | str,
        actor: Identity,
        reason: Optional[str] = None,
        ip_address: str = "",
        user_agent: str = "",
    ) -> ReviewResult:
        """Apply *action* to a submission, or raise without changing anything."""
        try:
            action = ReviewAction(action)
        except ValueError:
            raise ValidationError(
                f"Unknown action '{action}'. Valid actions: {[a.value for a in ReviewAction]}"
            )
        require_role(actor, action.required_role)

        clean_reason = self._validate_reason(action, reason)

        current = self._repository.get(submission_id)
        if current is None:
            raise NotFound(f"Submission '{submission_id}' not found")

        if action is ReviewAction.delete:
            result = self._delete(current, actor)
        else:
            result = self._transition(current, action, actor, clean_reason)

        logger.info(
            "%s %s submission %s (%s -> %s)",
            actor.username,
            action.value,
            submission_id,
            result.previous_status.value,
            result.submission.status.value if result.submission else "deleted",
        )
        if self._audit is not None:
            details = {"previous_status": result.previous_status.value}
            if clean_reason:
                details["reason"] = clean_reason
            self._audit.log_committed_event(
                actor=actor.id,
                action=action.value,
                resource_type="submission",
                resource_id=submission_id,
                details=details,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        return result

    # -- internals -----------------------------------------------------------

    @staticmethod
    def _validate_reason(action: ReviewAction, reason: Optional[str]) -> Optional[str]:
        if action is not ReviewAction.reject:
            return None
        clean = (reason or "").strip()
        if not clean:
            raise ValidationError("A rejection reason is required")
        if len(clean) > MAX_REASON_LENGTH:
            raise ValidationError(
                f"Rejection reason exceeds {MAX_REASON_LENGTH} characters"
            )
        return clean

    def _transition(
        self,
        current: Submission,
        action: ReviewAction,
        actor: Identity,
        reason: Optional[str],
    ) -> ReviewResult:
        target = TRANSITIONS.get((current.status, action))
        if target is None:
            raise InvalidTransition(
                f"Submission '{current.id}' is already {current.status.value}"
            )

        now = self._clock().isoformat()
        updated = self._repository.transition(
            current.id,
            expected=SubmissionStatus.pending,
            status=target,
            rejection_reason=reason,
            updated_at=now,
            reviewed_by=actor.id,
        )
        if updated is None:
            # Lost the compare-and-swap: someone reviewed or deleted it first.
            if self._repository.get(current.id) is None:
                raise NotFound(f"Submission '{current.id}' not found")
            raise InvalidTransition(
                f"Submission '{current.id}' was already reviewed by someone else"
            )
        return ReviewResult(
            action=action,
            submission_id=current.id,
            actor_id=actor.id,
            performed_at=now,
            previous_status=current.status,
            submission=updated,
        )

    def _delete(self, current: Submission, actor: Identity) -> ReviewResult:
        removed = self._repository.delete(current.id)
        if removed is None:
            raise NotFound(f"Submission '{current.id}' not found")
        return ReviewResult(
            action=ReviewAction.delete,
            submission_id=current.id,
            actor_id=actor.id,
            performed_at=self._clock().isoformat(),
            previous_status=removed.status,
        )
