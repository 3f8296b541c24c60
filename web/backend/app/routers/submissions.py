"""Submissions router -- moderation queue listing and review actions."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from notemod.auth.models import RequestContext
from notemod.listing.service import ListQuery
from notemod.moderation.engine import ModerationEngine
from notemod.moderation.models import ReviewAction, ReviewResult
from notemod.service import BackOffice
from notemod.submissions.models import Submission
from web.backend.app.middleware.auth import get_backoffice, get_request_context
from web.backend.app.models.api import (
    PaginationResponse,
    ReviewRequest,
    ReviewResultResponse,
    SubmissionPageResponse,
    SubmissionResponse,
)

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _submission_response(s: Submission) -> SubmissionResponse:
    return SubmissionResponse(
        id=s.id,
        title=s.title,
        content=s.content,
        author=s.author,
        status=s.status.value,
        rejection_reason=s.rejection_reason,
        created_at=s.created_at,
        updated_at=s.updated_at,
        reviewed_by=s.reviewed_by,
        available_actions=[a.value for a in ModerationEngine.available_actions(s)],
    )


def _review_response(r: ReviewResult) -> ReviewResultResponse:
    return ReviewResultResponse(
        action=r.action.value,
        submission_id=r.submission_id,
        actor_id=r.actor_id,
        performed_at=r.performed_at,
        previous_status=r.previous_status.value,
        submission=_submission_response(r.submission) if r.submission else None,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=SubmissionPageResponse,
    summary="List submissions",
)
async def list_submissions(
    status: Optional[str] = Query(None, description="pending | approved | rejected"),
    search: Optional[str] = Query(None, description="Case-insensitive title/content search"),
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    ctx: RequestContext = Depends(get_request_context),
    backoffice: BackOffice = Depends(get_backoffice),
):
    """Return one page of submissions, newest first.

    A page past the end returns no items with ``out_of_range`` set.
    """
    result = backoffice.list_submissions(
        ctx,
        ListQuery(status=status, search_text=search, page=page, page_size=page_size),
    )
    return SubmissionPageResponse(
        items=[_submission_response(s) for s in result.items],
        pagination=PaginationResponse(**vars(result.pagination)),
    )


@router.get(
    "/{submission_id}",
    response_model=SubmissionResponse,
    summary="Get a single submission",
)
async def get_submission(
    submission_id: str,
    ctx: RequestContext = Depends(get_request_context),
    backoffice: BackOffice = Depends(get_backoffice),
):
    return _submission_response(backoffice.get_submission(ctx, submission_id))


@router.post(
    "/{submission_id}/review",
    response_model=ReviewResultResponse,
    summary="Approve, reject, or delete a submission",
)
async def review_submission(
    submission_id: str,
    body: ReviewRequest,
    ctx: RequestContext = Depends(get_request_context),
    backoffice: BackOffice = Depends(get_backoffice),
):
    """Apply a review action. ``reason`` is required when rejecting."""
    result = backoffice.review_action(submission_id, body.action, ctx, reason=body.reason)
    return _review_response(result)


@router.delete(
    "/{submission_id}",
    response_model=ReviewResultResponse,
    summary="Delete a submission (admin only)",
)
async def delete_submission(
    submission_id: str,
    ctx: RequestContext = Depends(get_request_context),
    backoffice: BackOffice = Depends(get_backoffice),
):
    result = backoffice.review_action(submission_id, ReviewAction.delete, ctx)
    return _review_response(result)
