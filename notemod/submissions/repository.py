"""Submission persistence contract and its implementations.

The moderation core talks to storage only through :class:`SubmissionRepository`.
Two operations carry the concurrency guarantees the core relies on:

- :meth:`SubmissionRepository.query` evaluates one filter against one snapshot
  and returns both the requested slice and the total match count, so
  pagination totals never drift from the items shown.
- :meth:`SubmissionRepository.transition` is a single-row compare-and-swap:
  the update applies only while the row is still in the expected status.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Optional

from notemod.errors import PersistenceError, ValidationError
from notemod.submissions.models import Submission, SubmissionFilter, SubmissionStatus

logger = logging.getLogger(__name__)


class SubmissionRepository(ABC):
    """Storage contract for submission records."""

    @abstractmethod
    def add(self, submission: Submission) -> Submission:
        """Store a new submission (authoring and fixture import only)."""

    @abstractmethod
    def get(self, submission_id: str) -> Optional[Submission]:
        """Look up a submission by ID. Returns None if not found."""

    @abstractmethod
    def query(
        self, criteria: SubmissionFilter, offset: int, limit: int
    ) -> tuple[list[Submission], int]:
        """Return ``(items, total)`` for *criteria*, newest first.

        Items are ordered by ``created_at`` descending with ``id`` descending
        as tiebreak.
        """

    @abstractmethod
    def transition(
        self,
        submission_id: str,
        expected: SubmissionStatus,
        status: SubmissionStatus,
        rejection_reason: Optional[str],
        updated_at: str,
        reviewed_by: str,
    ) -> Optional[Submission]:
        """Apply a status change only if the row is still in *expected*.

        Returns the updated record, or None when zero rows matched.
        """

    @abstractmethod
    def delete(self, submission_id: str) -> Optional[Submission]:
        """Remove a submission. Returns the removed record or None."""

    def new_id(self) -> str:
        return str(uuid.uuid4())


def _select(
    records: list[Submission], criteria: SubmissionFilter, offset: int, limit: int
) -> tuple[list[Submission], int]:
    matched = [s for s in records if criteria.matches(s)]
    matched.sort(key=lambda s: s.sort_key, reverse=True)
    return matched[offset:offset + limit], len(matched)


def _apply(
    current: Submission,
    status: SubmissionStatus,
    rejection_reason: Optional[str],
    updated_at: str,
    reviewed_by: str,
) -> Submission:
    return replace(
        current,
        status=status,
        rejection_reason=rejection_reason if status is SubmissionStatus.rejected else None,
        updated_at=updated_at,
        reviewed_by=reviewed_by,
    )


class InMemorySubmissionRepository(SubmissionRepository):
    """Dict-backed repository for tests and demos."""

    def __init__(self) -> None:
        self._records: dict[str, Submission] = {}
        self._lock = threading.Lock()

    def add(self, submission: Submission) -> Submission:
        with self._lock:
            self._records[submission.id] = submission
        return submission

    def get(self, submission_id: str) -> Optional[Submission]:
        with self._lock:
            return self._records.get(submission_id)

    def query(
        self, criteria: SubmissionFilter, offset: int, limit: int
    ) -> tuple[list[Submission], int]:
        with self._lock:
            snapshot = list(self._records.values())
        return _select(snapshot, criteria, offset, limit)

    def transition(
        self,
        submission_id: str,
        expected: SubmissionStatus,
        status: SubmissionStatus,
        rejection_reason: Optional[str],
        updated_at: str,
        reviewed_by: str,
    ) -> Optional[Submission]:
        with self._lock:
            current = self._records.get(submission_id)
            if current is None or current.status != expected:
                return None
            updated = _apply(current, status, rejection_reason, updated_at, reviewed_by)
            self._records[submission_id] = updated
            return updated

    def delete(self, submission_id: str) -> Optional[Submission]:
        with self._lock:
            return self._records.pop(submission_id, None)


class JsonSubmissionRepository(SubmissionRepository):
    """File-based storage for submissions.

    Storage path: ``~/.notemod/submissions/`` with:
    - ``submissions.json`` -- list of submission dicts

    A process-wide lock serializes read-modify-write cycles, which makes
    :meth:`transition` atomic for every worker sharing this instance.
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".notemod" / "submissions"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._submissions_path = self._base / "submissions.json"
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_all(self) -> list[Submission]:
        if not self._submissions_path.exists():
            return []
        try:
            data = json.loads(self._submissions_path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            raise PersistenceError(f"Cannot read submissions: {exc}")
        if not isinstance(data, list):
            return []
        try:
            return [self._from_dict(d) for d in data]
        except (KeyError, TypeError, ValueError, ValidationError) as exc:
            raise PersistenceError(f"Corrupt submission record: {exc!r}")

    def _write_all(self, records: list[Submission]) -> None:
        payload = json.dumps([self._to_dict(s) for s in records], indent=2)
        tmp_path = self._submissions_path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(payload)
            tmp_path.replace(self._submissions_path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write submissions: {exc}")

    @staticmethod
    def _from_dict(d: dict) -> Submission:
        return Submission(
            id=d["id"],
            title=d.get("title", ""),
            content=d.get("content", ""),
            author=d.get("author", ""),
            status=SubmissionStatus(d.get("status", "pending")),
            rejection_reason=d.get("rejection_reason"),
            created_at=d.get("created_at", ""),
            updated_at=d.get("updated_at", ""),
            reviewed_by=d.get("reviewed_by", ""),
        )

    @staticmethod
    def _to_dict(s: Submission) -> dict:
        return {
            "id": s.id,
            "title": s.title,
            "content": s.content,
            "author": s.author,
            "status": s.status.value,
            "rejection_reason": s.rejection_reason,
            "created_at": s.created_at,
            "updated_at": s.updated_at,
            "reviewed_by": s.reviewed_by,
        }

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def add(self, submission: Submission) -> Submission:
        with self._lock:
            records = self._read_all()
            records.append(submission)
            self._write_all(records)
        return submission

    def get(self, submission_id: str) -> Optional[Submission]:
        with self._lock:
            for s in self._read_all():
                if s.id == submission_id:
                    return s
        return None

    def query(
        self, criteria: SubmissionFilter, offset: int, limit: int
    ) -> tuple[list[Submission], int]:
        with self._lock:
            snapshot = self._read_all()
        return _select(snapshot, criteria, offset, limit)

    def transition(
        self,
        submission_id: str,
        expected: SubmissionStatus,
        status: SubmissionStatus,
        rejection_reason: Optional[str],
        updated_at: str,
        reviewed_by: str,
    ) -> Optional[Submission]:
        with self._lock:
            records = self._read_all()
            for i, current in enumerate(records):
                if current.id != submission_id:
                    continue
                if current.status != expected:
                    return None
                records[i] = _apply(current, status, rejection_reason, updated_at, reviewed_by)
                self._write_all(records)
                return records[i]
        return None

    def delete(self, submission_id: str) -> Optional[Submission]:
        with self._lock:
            records = self._read_all()
            for i, current in enumerate(records):
                if current.id == submission_id:
                    del records[i]
                    self._write_all(records)
                    logger.debug("Deleted submission %s from %s", submission_id, self._submissions_path)
                    return current
        return None
