"""File-based JSON storage for staff identities.

Provides a DB-ready interface backed by a JSON file under ~/.notemod/auth/.
"""

from __future__ import annotations

import json
import threading
import uuid
from pathlib import Path
from typing import Optional

from notemod.auth.models import Identity, Role
from notemod.auth.passwords import hash_password
from notemod.errors import PersistenceError, ValidationError


class IdentityStore:
    """File-based storage for identities.

    Storage path: ``~/.notemod/auth/`` with:
    - ``identities.json`` -- list of identity dicts
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".notemod" / "auth"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._identities_path = self._base / "identities.json"
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            raise PersistenceError(f"Cannot read {path.name}: {exc}")
        return data if isinstance(data, list) else []

    def _write_json(self, path: Path, data: list[dict]) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(data, indent=2, default=str))
            tmp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {path.name}: {exc}")

    @staticmethod
    def _identity_from_dict(d: dict) -> Identity:
        return Identity(
            id=d["id"],
            username=d["username"],
            display_name=d.get("display_name", d["username"]),
            role=Role(d.get("role", "moderator")),
            credential_hash=d.get("credential_hash", ""),
            created_at=d.get("created_at", ""),
        )

    @staticmethod
    def _identity_to_dict(i: Identity) -> dict:
        return {
            "id": i.id,
            "username": i.username,
            "display_name": i.display_name,
            "role": i.role.value,
            "credential_hash": i.credential_hash,
            "created_at": i.created_at,
        }

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    def create_identity(
        self,
        username: str,
        password: str,
        role: Role | str = Role.moderator,
        display_name: str = "",
    ) -> Identity:
        """Provision a new identity. Usernames are unique, case-insensitively."""
        username = username.strip()
        if not username:
            raise ValidationError("username must not be empty")
        if not password:
            raise ValidationError("password must not be empty")
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError(
                f"Invalid role: {role}. Valid roles: {[r.value for r in Role]}"
            )

        identity = Identity(
            id=str(uuid.uuid4()),
            username=username,
            display_name=display_name or username,
            role=role,
            credential_hash=hash_password(password),
        )
        with self._lock:
            records = self._read_json(self._identities_path)
            if any(d["username"].lower() == username.lower() for d in records):
                raise ValidationError(f"Username '{username}' is already taken")
            records.append(self._identity_to_dict(identity))
            self._write_json(self._identities_path, records)
        return identity

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_identity(self, identity_id: str) -> Optional[Identity]:
        for d in self._read_json(self._identities_path):
            if d["id"] == identity_id:
                return self._identity_from_dict(d)
        return None

    def get_by_username(self, username: str) -> Optional[Identity]:
        for d in self._read_json(self._identities_path):
            if d["username"].lower() == username.strip().lower():
                return self._identity_from_dict(d)
        return None

    def list_identities(self) -> list[Identity]:
        return [self._identity_from_dict(d) for d in self._read_json(self._identities_path)]
