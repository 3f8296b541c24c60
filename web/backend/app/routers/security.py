"""Security router -- audit trail access for admins.

Prefix: ``/api/security``
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from notemod.auth.models import Identity
from notemod.service import BackOffice
from web.backend.app.middleware.auth import get_admin_identity, get_backoffice
from web.backend.app.models.api import AuditEntryResponse

router = APIRouter(prefix="/api/security", tags=["security"])


@router.get("/audit", response_model=list[AuditEntryResponse])
async def list_audit_events(
    actor: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    resource_id: Optional[str] = Query(None),
    success: Optional[bool] = Query(None),
    limit: int = Query(200, ge=1, le=10000),
    _admin: Identity = Depends(get_admin_identity),
    backoffice: BackOffice = Depends(get_backoffice),
):
    """List audit events with optional filters, newest first."""
    events = backoffice.audit.get_events(
        actor=actor,
        action=action,
        resource_id=resource_id,
        success=success,
        limit=limit,
    )
    return [AuditEntryResponse(**asdict(e)) for e in events]
