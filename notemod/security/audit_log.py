"""Audit trail for moderation and authentication events.

Every mutating action (approve, reject, delete, login, logout) and every
denied attempt is appended as one JSON line to a daily file under
``~/.notemod/audit_logs/``.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from notemod.errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """A single audit log entry."""

    id: str
    timestamp: str
    actor: str
    action: str
    resource_type: str
    resource_id: str
    details: dict[str, Any] = field(default_factory=dict)
    ip_address: str = ""
    user_agent: str = ""
    success: bool = True


class AuditLogger:
    """Append-only JSONL audit log, one file per UTC day."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".notemod" / "audit_logs"
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[AuditEntry]:
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Skipping malformed audit line %s:%d", path.name, lineno)
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_event(
        self,
        actor: str,
        action: str,
        resource_type: str,
        resource_id: str,
        details: Optional[dict[str, Any]] = None,
        ip_address: str = "",
        user_agent: str = "",
        success: bool = True,
    ) -> AuditEntry:
        """Record an audit event and return the created entry."""
        now = datetime.now(timezone.utc)
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=now.isoformat(),
            actor=actor,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
        )
        try:
            with self._lock:
                with self._log_file_for_date(now).open("a", encoding="utf-8") as fh:
                    fh.write(json.dumps(asdict(entry)) + "\n")
        except OSError as exc:
            raise PersistenceError(f"Cannot write audit log: {exc}")
        return entry

    def log_committed_event(self, **event: Any) -> Optional[AuditEntry]:
        """Record an event for a change that is already persisted.

        A write failure is logged, not raised.
        """
        try:
            return self.log_event(**event)
        except PersistenceError:
            logger.exception(
                "Audit write failed after commit: %s %s/%s by %s",
                event.get("action"),
                event.get("resource_type"),
                event.get("resource_id"),
                event.get("actor"),
            )
            return None

    def get_events(
        self,
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        success: Optional[bool] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered audit events, newest first."""
        entries = self._read_all_entries()

        if actor:
            entries = [e for e in entries if e.actor == actor]
        if action:
            entries = [e for e in entries if e.action == action]
        if resource_type:
            entries = [e for e in entries if e.resource_type == resource_type]
        if resource_id:
            entries = [e for e in entries if e.resource_id == resource_id]
        if success is not None:
            entries = [e for e in entries if e.success is success]

        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def export_events(self, fmt: str = "json", **filters: Any) -> str:
        """Export filtered events as ``json`` or ``csv``."""
        entries = self.get_events(**filters)
        if fmt == "csv":
            columns = [f.name for f in fields(AuditEntry) if f.name != "details"]
            buf = io.StringIO()
            writer = csv.writer(buf)
            writer.writerow(columns)
            for e in entries:
                writer.writerow([getattr(e, c) for c in columns])
            return buf.getvalue()
        return json.dumps([asdict(e) for e in entries], indent=2)
