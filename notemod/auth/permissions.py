"""Role-based access control and the per-request identity gate.

Role hierarchy: admin > moderator. Every mutating entry point goes through
:func:`require_role`; call sites never compare role strings themselves.
"""

from __future__ import annotations

from notemod.auth.models import Identity, RequestContext, Role
from notemod.auth.sessions import SessionStore
from notemod.errors import Forbidden, Unauthenticated


def has_permission(identity: Identity, required_role: Role) -> bool:
    """Check if an identity's role meets or exceeds the required role level.

    Parameters
    ----------
    identity:
        The authenticated identity to check.
    required_role:
        The minimum role required.

    Returns
    -------
    bool
        True if the identity's role level >= required role level.
    """
    return Role(identity.role).level >= Role(required_role).level


def require_role(identity: Identity, role: Role) -> None:
    """Validate that an identity has at least the given role.

    Raises :class:`~notemod.errors.Forbidden` if it does not.
    """
    if not has_permission(identity, role):
        raise Forbidden(f"Requires role '{Role(role).value}' or higher")


class AccessGate:
    """Resolves the caller behind a request and enforces role authority.

    Read-only: the gate consults the session store and never writes to it.
    """

    def __init__(self, sessions: SessionStore) -> None:
        self._sessions = sessions

    def require_identity(self, ctx: RequestContext) -> Identity:
        """Return the caller's identity or raise ``Unauthenticated``.

        Callers on an interactive surface should send the user to the login
        page when this raises.
        """
        identity = self._sessions.resolve_session(ctx.token) if ctx.token else None
        if identity is None:
            raise Unauthenticated("Login required")
        return identity

    def require_role(self, ctx: RequestContext, role: Role) -> Identity:
        """Return the caller's identity if it holds at least *role*."""
        identity = self.require_identity(ctx)
        require_role(identity, role)
        return identity
