"""Back-office facade -- the boundary operations every transport calls.

``BackOffice`` owns no state of its own. It runs each request through the
access gate first, then hands reads to the listing service and writes to
the moderation engine, recording audit entries along the way.
"""

from __future__ import annotations

import logging
from typing import Optional

from notemod.auth.models import Identity, RequestContext, Session
from notemod.auth.passwords import verify_password
from notemod.auth.permissions import AccessGate
from notemod.auth.sessions import FileSessionStore, InMemorySessionStore, SessionStore
from notemod.auth.store import IdentityStore
from notemod.config import Settings
from notemod.errors import AuthError, Forbidden, InvalidTransition
from notemod.listing.service import ListingService, ListQuery
from notemod.moderation.engine import ModerationEngine
from notemod.moderation.models import ReviewAction, ReviewResult
from notemod.security.audit_log import AuditLogger
from notemod.submissions.models import Page, Submission
from notemod.submissions.repository import JsonSubmissionRepository, SubmissionRepository

logger = logging.getLogger(__name__)


class BackOffice:
    """Login, logout, listing, and review entry points."""

    def __init__(
        self,
        identities: IdentityStore,
        sessions: SessionStore,
        repository: SubmissionRepository,
        audit: AuditLogger,
        default_page_size: int = 10,
        max_page_size: int = 100,
    ) -> None:
        self.identities = identities
        self.sessions = sessions
        self.repository = repository
        self.audit = audit
        self.gate = AccessGate(sessions)
        self.engine = ModerationEngine(repository, audit=audit)
        self.listing = ListingService(
            repository,
            default_page_size=default_page_size,
            max_page_size=max_page_size,
        )

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def login(
        self,
        username: str,
        password: str,
        ip_address: str = "",
        user_agent: str = "",
    ) -> Session:
        """Check credentials and issue a session."""
        identity = self.identities.get_by_username(username)
        if identity is None or not verify_password(password, identity.credential_hash):
            logger.warning("Failed login for %r from %s", username, ip_address or "unknown")
            self.audit.log_event(
                actor=username,
                action="login_failed",
                resource_type="session",
                resource_id="",
                ip_address=ip_address,
                user_agent=user_agent,
                success=False,
            )
            raise AuthError()

        session = self.sessions.create_session(identity)
        self.audit.log_committed_event(
            actor=identity.id,
            action="login",
            resource_type="session",
            resource_id=identity.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info("%s logged in", identity.username)
        return session

    def logout(self, token: str) -> None:
        """Revoke *token*. Unknown tokens are ignored."""
        identity = self.sessions.resolve_session(token)
        if self.sessions.destroy_session(token) and identity is not None:
            self.audit.log_committed_event(
                actor=identity.id,
                action="logout",
                resource_type="session",
                resource_id=identity.id,
            )

    def current_identity(self, ctx: RequestContext) -> Identity:
        return self.gate.require_identity(ctx)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_submissions(self, ctx: RequestContext, query: ListQuery) -> Page:
        self.gate.require_identity(ctx)
        return self.listing.list_submissions(query)

    def get_submission(self, ctx: RequestContext, submission_id: str) -> Submission:
        self.gate.require_identity(ctx)
        return self.listing.get_submission(submission_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def review_action(
        self,
        submission_id: str,
        action: ReviewAction | str,
        ctx: RequestContext,
        reason: Optional[str] = None,
    ) -> ReviewResult:
        """Authorize the caller, then apply *action* through the engine."""
        identity = self.gate.require_identity(ctx)
        try:
            parsed = ReviewAction(action)
        except ValueError:
            parsed = None
        try:
            if parsed is not None:
                self.gate.require_role(ctx, parsed.required_role)
            return self.engine.apply(
                submission_id,
                action,
                identity,
                reason=reason,
                ip_address=ctx.ip_address,
                user_agent=ctx.user_agent,
            )
        except (Forbidden, InvalidTransition) as exc:
            self.audit.log_event(
                actor=identity.id,
                action=parsed.value if parsed else str(action),
                resource_type="submission",
                resource_id=submission_id,
                details={"error": exc.code, "message": exc.message},
                ip_address=ctx.ip_address,
                user_agent=ctx.user_agent,
                success=False,
            )
            raise


def build_backoffice(settings: Settings) -> BackOffice:
    """Wire the file-backed stores described by *settings*."""
    base = settings.base_path
    identities = IdentityStore(base / "auth")
    if settings.session_backend == "memory":
        sessions: SessionStore = InMemorySessionStore(
            identities, ttl_hours=settings.session_ttl_hours
        )
    else:
        sessions = FileSessionStore(
            identities, base / "auth", ttl_hours=settings.session_ttl_hours
        )
    return BackOffice(
        identities=identities,
        sessions=sessions,
        repository=JsonSubmissionRepository(base / "submissions"),
        audit=AuditLogger(base / "audit_logs"),
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
