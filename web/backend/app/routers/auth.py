"""Auth router -- login, logout, and current-identity endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from notemod.auth.models import Identity, RequestContext
from notemod.config import Settings
from notemod.service import BackOffice
from web.backend.app.middleware.auth import (
    get_backoffice,
    get_current_identity,
    get_request_context,
    get_settings,
)
from web.backend.app.models.api import (
    AuthStatusResponse,
    IdentityResponse,
    LoginRequest,
    LoginResponse,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _identity_response(i: Identity) -> IdentityResponse:
    """Convert a domain Identity to a Pydantic IdentityResponse."""
    return IdentityResponse(
        id=i.id,
        username=i.username,
        display_name=i.display_name,
        role=i.role.value,
        created_at=i.created_at,
    )


# ---------------------------------------------------------------------------
# Session management
# ---------------------------------------------------------------------------


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in with username and password",
)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    backoffice: BackOffice = Depends(get_backoffice),
    settings: Settings = Depends(get_settings),
):
    """Check credentials, issue a session token, and set the session cookie."""
    session = backoffice.login(
        body.username,
        body.password,
        ip_address=request.client.host if request.client else "",
        user_agent=request.headers.get("user-agent", ""),
    )
    identity = backoffice.identities.get_identity(session.identity_id)
    response.set_cookie(
        settings.cookie_name,
        session.token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.session_ttl_hours * 3600,
    )
    return LoginResponse(
        token=session.token,
        expires_at=session.expires_at,
        identity=_identity_response(identity),
    )


@router.post("/logout", summary="Logout / invalidate session")
async def logout(
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    backoffice: BackOffice = Depends(get_backoffice),
    settings: Settings = Depends(get_settings),
):
    """Invalidate the presented session. Safe to call more than once."""
    backoffice.logout(ctx.token)
    response.delete_cookie(settings.cookie_name)
    return {"ok": True}


@router.get(
    "/me",
    response_model=AuthStatusResponse,
    summary="Get current identity",
)
async def me(identity: Identity = Depends(get_current_identity)):
    """Return the currently authenticated identity."""
    return AuthStatusResponse(
        authenticated=True,
        identity=_identity_response(identity),
    )
