"""Pydantic models for API request/response serialization.

These models mirror the notemod dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Auth models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Credentials posted to the login endpoint."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class IdentityResponse(BaseModel):
    """Public representation of a staff identity."""

    id: str
    username: str
    display_name: str
    role: str
    created_at: str = ""


class LoginResponse(BaseModel):
    """Response after successful login."""

    token: str
    expires_at: str
    identity: IdentityResponse


class AuthStatusResponse(BaseModel):
    """Response for the /me endpoint."""

    authenticated: bool
    identity: Optional[IdentityResponse] = None


# ---------------------------------------------------------------------------
# Submission models
# ---------------------------------------------------------------------------


class SubmissionResponse(BaseModel):
    """Mirrors notemod.submissions.models.Submission."""

    id: str
    title: str
    content: str
    author: str = ""
    status: str
    rejection_reason: Optional[str] = None
    created_at: str
    updated_at: str
    reviewed_by: str = ""
    available_actions: list[str] = Field(default_factory=list)


class PaginationResponse(BaseModel):
    """Mirrors notemod.submissions.models.Pagination."""

    current_page: int
    total_pages: int
    total_items: int
    page_size: int
    has_next: bool = False
    has_previous: bool = False
    out_of_range: bool = False


class SubmissionPageResponse(BaseModel):
    """One page of submissions."""

    items: list[SubmissionResponse] = Field(default_factory=list)
    pagination: PaginationResponse


class ReviewRequest(BaseModel):
    """Body of a review action."""

    action: str = Field(..., pattern=r"^(approve|reject|delete)$")
    reason: Optional[str] = Field(None, max_length=2000)


class ReviewResultResponse(BaseModel):
    """Mirrors notemod.moderation.models.ReviewResult."""

    action: str
    submission_id: str
    actor_id: str
    performed_at: str
    previous_status: str
    submission: Optional[SubmissionResponse] = None


# ---------------------------------------------------------------------------
# Errors and audit
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Body returned for every domain error."""

    error: str
    detail: str
    redirect: Optional[str] = None


class AuditEntryResponse(BaseModel):
    """A single audit log entry."""

    id: str
    timestamp: str
    actor: str
    action: str
    resource_type: str
    resource_id: str
    details: dict = Field(default_factory=dict)
    ip_address: str = ""
    user_agent: str = ""
    success: bool = True
