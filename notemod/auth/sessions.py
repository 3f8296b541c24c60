"""Session stores -- issue, resolve, and revoke opaque bearer tokens.

Stores never hold raw tokens: entries are keyed by the SHA-256 digest of the
token, so a leaked store file cannot be replayed. Resolution is read-only;
an expired entry stays in place until :meth:`SessionStore.purge_expired`
removes it.
"""

from __future__ import annotations

import json
import logging
import secrets
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from notemod.auth.models import Identity, Session, utcnow
from notemod.auth.passwords import hash_token
from notemod.auth.store import IdentityStore
from notemod.errors import PersistenceError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class SessionStore(ABC):
    """Contract shared by all session backends.

    Subclasses provide four single-entry storage primitives; the token
    lifecycle lives here.
    """

    def __init__(
        self,
        identities: IdentityStore,
        ttl_hours: int = 24,
        clock: Clock = utcnow,
    ) -> None:
        self._identities = identities
        self._ttl = timedelta(hours=ttl_hours)
        self._clock = clock

    # -- storage primitives --------------------------------------------------

    @abstractmethod
    def _put(self, key: str, session: Session) -> None: ...

    @abstractmethod
    def _get(self, key: str) -> Optional[Session]: ...

    @abstractmethod
    def _remove(self, key: str) -> bool: ...

    @abstractmethod
    def _remove_where(self, predicate: Callable[[Session], bool]) -> int: ...

    # -- public API ----------------------------------------------------------

    def create_session(self, identity: Identity) -> Session:
        """Issue a new session for *identity*. The returned token is shown once."""
        now = self._clock()
        token = secrets.token_urlsafe(48)
        session = Session(
            token=token,
            identity_id=identity.id,
            created_at=now.isoformat(),
            expires_at=(now + self._ttl).isoformat(),
        )
        key = hash_token(token)
        self._put(
            key,
            Session(
                token=key,
                identity_id=session.identity_id,
                created_at=session.created_at,
                expires_at=session.expires_at,
            ),
        )
        logger.debug("Issued session for identity %s", identity.id)
        return session

    def get_session(self, token: str) -> Optional[Session]:
        """Return the live session bound to *token*, or None."""
        if not token:
            return None
        session = self._get(hash_token(token))
        if session is None or session.is_expired(self._clock()):
            return None
        return session

    def resolve_session(self, token: str) -> Optional[Identity]:
        """Return the identity bound to *token*, or None when unauthenticated.

        Unknown, revoked, and expired tokens all resolve to None. Nothing is
        written: the expiry is not extended and expired entries are kept.
        """
        session = self.get_session(token)
        if session is None:
            return None
        return self._identities.get_identity(session.identity_id)

    def destroy_session(self, token: str) -> bool:
        """Revoke *token*. Returns False if it was not known."""
        if not token:
            return False
        return self._remove(hash_token(token))

    def purge_expired(self) -> int:
        """Delete every expired entry. Returns the number removed."""
        now = self._clock()
        removed = self._remove_where(lambda s: s.is_expired(now))
        if removed:
            logger.info("Purged %d expired session(s)", removed)
        return removed


class InMemorySessionStore(SessionStore):
    """Process-local session table for tests and single-worker deployments."""

    def __init__(
        self,
        identities: IdentityStore,
        ttl_hours: int = 24,
        clock: Clock = utcnow,
    ) -> None:
        super().__init__(identities, ttl_hours=ttl_hours, clock=clock)
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def _put(self, key: str, session: Session) -> None:
        with self._lock:
            self._sessions[key] = session

    def _get(self, key: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(key)

    def _remove(self, key: str) -> bool:
        with self._lock:
            return self._sessions.pop(key, None) is not None

    def _remove_where(self, predicate: Callable[[Session], bool]) -> int:
        with self._lock:
            doomed = [k for k, s in self._sessions.items() if predicate(s)]
            for key in doomed:
                del self._sessions[key]
            return len(doomed)


class FileSessionStore(SessionStore):
    """Durable session table.

    Storage path: ``~/.notemod/auth/sessions.json`` -- list of session dicts
    keyed by ``token_hash``.
    """

    def __init__(
        self,
        identities: IdentityStore,
        base_dir: Optional[str | Path] = None,
        ttl_hours: int = 24,
        clock: Clock = utcnow,
    ) -> None:
        super().__init__(identities, ttl_hours=ttl_hours, clock=clock)
        if base_dir is None:
            self._base = Path.home() / ".notemod" / "auth"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._sessions_path = self._base / "sessions.json"
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self) -> list[dict]:
        if not self._sessions_path.exists():
            return []
        try:
            data = json.loads(self._sessions_path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            raise PersistenceError(f"Cannot read sessions: {exc}")
        return data if isinstance(data, list) else []

    def _write_json(self, data: list[dict]) -> None:
        tmp_path = self._sessions_path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(data, indent=2))
            tmp_path.replace(self._sessions_path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write sessions: {exc}")

    @staticmethod
    def _from_dict(d: dict) -> Session:
        return Session(
            token=d["token_hash"],
            identity_id=d["identity_id"],
            created_at=d["created_at"],
            expires_at=d["expires_at"],
        )

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    def _put(self, key: str, session: Session) -> None:
        with self._lock:
            sessions = self._read_json()
            sessions.append({
                "token_hash": key,
                "identity_id": session.identity_id,
                "created_at": session.created_at,
                "expires_at": session.expires_at,
            })
            self._write_json(sessions)

    def _get(self, key: str) -> Optional[Session]:
        with self._lock:
            for d in self._read_json():
                if d["token_hash"] == key:
                    return self._from_dict(d)
        return None

    def _remove(self, key: str) -> bool:
        with self._lock:
            sessions = self._read_json()
            kept = [d for d in sessions if d["token_hash"] != key]
            if len(kept) == len(sessions):
                return False
            self._write_json(kept)
            return True

    def _remove_where(self, predicate: Callable[[Session], bool]) -> int:
        with self._lock:
            sessions = self._read_json()
            kept = [d for d in sessions if not predicate(self._from_dict(d))]
            removed = len(sessions) - len(kept)
            if removed:
                self._write_json(kept)
            return removed
