"""Auth middleware -- FastAPI dependencies for the caller's credentials.

Supports two ways of presenting a session token:
1. ``Authorization: Bearer <session_token>`` header (API clients)
2. The session cookie set by ``POST /api/auth/login`` (browser sessions)
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from notemod.auth.models import Identity, RequestContext, Role
from notemod.config import Settings, load_settings
from notemod.service import BackOffice, build_backoffice

# Shared instances
_settings: Optional[Settings] = None
_backoffice: Optional[BackOffice] = None


def get_settings() -> Settings:
    """Return the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def get_backoffice() -> BackOffice:
    """Return the singleton BackOffice instance."""
    global _backoffice
    if _backoffice is None:
        _backoffice = build_backoffice(get_settings())
    return _backoffice


async def get_request_context(
    request: Request,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> RequestContext:
    """Collect the session token and client details from the request."""
    token = ""
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value:
            token = value.strip()
    if not token:
        token = request.cookies.get(settings.cookie_name, "")
    return RequestContext(
        token=token,
        ip_address=request.client.host if request.client else "",
        user_agent=request.headers.get("user-agent", ""),
    )


async def get_current_identity(
    ctx: RequestContext = Depends(get_request_context),
    backoffice: BackOffice = Depends(get_backoffice),
) -> Identity:
    """FastAPI dependency that resolves the caller or raises ``Unauthenticated``."""
    return backoffice.current_identity(ctx)


async def get_admin_identity(
    ctx: RequestContext = Depends(get_request_context),
    backoffice: BackOffice = Depends(get_backoffice),
) -> Identity:
    """Same as ``get_current_identity`` but also requires the admin role."""
    return backoffice.gate.require_role(ctx, Role.admin)
