"""Auth domain models for staff identities and sessions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Role hierarchy: admin > moderator."""

    admin = "admin"
    moderator = "moderator"

    @property
    def level(self) -> int:
        """Return numeric level for comparison (higher = more privileges)."""
        return {
            Role.admin: 20,
            Role.moderator: 10,
        }[self]


@dataclass(frozen=True)
class Identity:
    """An authenticated staff member.

    ``credential_hash`` is never serialized to API responses.
    """

    id: str
    username: str
    display_name: str
    role: Role
    credential_hash: str = ""
    created_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.role, str) and not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))
        if not self.created_at:
            object.__setattr__(self, "created_at", utcnow().isoformat())


@dataclass(frozen=True)
class Session:
    """An issued session.

    ``token`` holds the raw bearer token only on the instance returned by
    ``create_session``; stored copies keep its digest instead.
    """

    token: str
    identity_id: str
    created_at: str
    expires_at: str

    def is_expired(self, now: datetime) -> bool:
        return datetime.fromisoformat(self.expires_at) <= now


@dataclass(frozen=True)
class RequestContext:
    """Caller credentials extracted from a transport (HTTP, CLI)."""

    token: str = ""
    ip_address: str = ""
    user_agent: str = ""
