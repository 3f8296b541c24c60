"""Tests for the audit trail."""

import json
import tempfile
from pathlib import Path

import pytest

from notemod.errors import PersistenceError
from notemod.security.audit_log import AuditLogger


def test_log_and_filter():
    with tempfile.TemporaryDirectory() as tmpdir:
        log = AuditLogger(Path(tmpdir))
        log.log_event("mod-1", "approve", "submission", "s1")
        log.log_event("mod-2", "reject", "submission", "s2", details={"reason": "spam"})
        log.log_event("mod-2", "delete", "submission", "s2", success=False)

        assert len(log.get_events()) == 3
        assert [e.resource_id for e in log.get_events(actor="mod-1")] == ["s1"]
        assert [e.action for e in log.get_events(resource_id="s2", success=True)] == ["reject"]
        assert log.get_events(action="delete")[0].success is False
        assert len(log.get_events(limit=2)) == 2


def test_newest_first():
    with tempfile.TemporaryDirectory() as tmpdir:
        log = AuditLogger(Path(tmpdir))
        first = log.log_event("a", "login", "session", "a")
        second = log.log_event("a", "logout", "session", "a")
        events = log.get_events()
        assert events[0].timestamp >= events[1].timestamp
        assert {e.id for e in events} == {first.id, second.id}


def test_malformed_lines_are_skipped():
    with tempfile.TemporaryDirectory() as tmpdir:
        log = AuditLogger(Path(tmpdir))
        log.log_event("a", "login", "session", "a")
        with (Path(tmpdir) / "2020-01-01.jsonl").open("w") as fh:
            fh.write("not json\n\n")
            fh.write(json.dumps({"unexpected": True}) + "\n")
        assert len(log.get_events()) == 1


def test_export_formats():
    with tempfile.TemporaryDirectory() as tmpdir:
        log = AuditLogger(Path(tmpdir))
        log.log_event("mod-1", "approve", "submission", "s1")

        data = json.loads(log.export_events("json"))
        assert data[0]["action"] == "approve"

        csv_text = log.export_events("csv", action="approve")
        header, row = csv_text.strip().splitlines()
        assert header.startswith("id,timestamp,actor,action")
        assert "mod-1" in row and "s1" in row


def test_write_failure_maps_to_persistence_error(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        log = AuditLogger(Path(tmpdir))
        monkeypatch.setattr(log, "_log_file_for_date", lambda dt: Path(tmpdir) / "gone" / "x.jsonl")
        with pytest.raises(PersistenceError):
            log.log_event("a", "approve", "submission", "s1")
        assert log.log_committed_event(
            actor="a", action="approve", resource_type="submission", resource_id="s1"
        ) is None
