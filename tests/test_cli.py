"""Tests for the operator CLI."""

import json
import tempfile
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner
from rich.console import Console

from notemod import cli
from notemod.cli import main
from notemod.config import Settings
from notemod.listing.service import ListQuery
from notemod.service import build_backoffice

FIXTURES = {
    "identities": [
        {"username": "mia", "password": "mod-pass", "role": "moderator"},
        {"username": "ada", "password": "admin-pass", "role": "admin", "display_name": "Ada"},
    ],
    "submissions": [
        {"title": "Kyoto temples", "content": "Early morning at Fushimi Inari",
         "created_at": "2026-06-01T07:00:00+00:00"},
        {"title": "Osaka street food", "content": "Takoyaki everywhere",
         "created_at": "2026-06-02T19:00:00+00:00"},
    ],
}


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setattr(cli, "console", Console(width=200))


def _invoke(tmpdir, args, input=None):
    return CliRunner().invoke(main, args, input=input, env={"NOTEMOD_HOME": tmpdir})


def _load(tmpdir):
    path = Path(tmpdir) / "fixtures.yaml"
    path.write_text(yaml.dump(FIXTURES))
    result = _invoke(tmpdir, ["load-fixtures", str(path)])
    assert result.exit_code == 0, result.output
    return result


def test_load_fixtures_and_list_identities():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _load(tmpdir)
        assert "2 identities" in result.output
        listed = _invoke(tmpdir, ["identities"])
        assert "mia" in listed.output
        assert "ada" in listed.output


def test_add_identity_rejects_duplicates():
    with tempfile.TemporaryDirectory() as tmpdir:
        first = _invoke(tmpdir, ["add-identity", "noah"], input="pw\npw\n")
        assert first.exit_code == 0, first.output
        second = _invoke(tmpdir, ["add-identity", "NOAH"], input="pw\npw\n")
        assert second.exit_code == 1


def test_list_and_review():
    with tempfile.TemporaryDirectory() as tmpdir:
        _load(tmpdir)
        listed = _invoke(tmpdir, ["submissions", "-u", "mia"], input="mod-pass\n")
        assert listed.exit_code == 0, listed.output
        assert "Osaka street food" in listed.output

        data = json.loads((Path(tmpdir) / "submissions" / "submissions.json").read_text())
        target = next(d["id"] for d in data if d["title"] == "Kyoto temples")

        rejected = _invoke(
            tmpdir, ["review", target, "reject", "-u", "mia", "--reason", "Too short"],
            input="mod-pass\n",
        )
        assert rejected.exit_code == 0, rejected.output
        assert "rejected" in rejected.output

        again = _invoke(tmpdir, ["review", target, "approve", "-u", "mia"], input="mod-pass\n")
        assert again.exit_code == 1


def test_review_with_wrong_password_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        _load(tmpdir)
        result = _invoke(tmpdir, ["submissions", "-u", "mia"], input="nope\n")
        assert result.exit_code == 1


def test_moderator_cannot_delete():
    with tempfile.TemporaryDirectory() as tmpdir:
        _load(tmpdir)
        data = json.loads((Path(tmpdir) / "submissions" / "submissions.json").read_text())
        target = data[0]["id"]
        denied = _invoke(tmpdir, ["review", target, "delete", "-u", "mia"], input="mod-pass\n")
        assert denied.exit_code == 1
        deleted = _invoke(tmpdir, ["review", target, "delete", "-u", "ada"], input="admin-pass\n")
        assert deleted.exit_code == 0, deleted.output


def test_audit_export_and_purge():
    with tempfile.TemporaryDirectory() as tmpdir:
        _load(tmpdir)
        _invoke(tmpdir, ["submissions", "-u", "mia"], input="mod-pass\n")

        exported = _invoke(tmpdir, ["audit", "--format", "json", "--action", "login"])
        assert exported.exit_code == 0
        assert json.loads(exported.output)[0]["action"] == "login"

        purged = _invoke(tmpdir, ["purge-sessions"])
        assert purged.exit_code == 0
        assert "Removed 0" in purged.output


def test_fixture_timestamps_sort_by_instant():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "fixtures.yaml"
        path.write_text(
            "identities:\n"
            "  - {username: mia, password: mod-pass}\n"
            "submissions:\n"
            "  - title: older\n"
            "    created_at: '2024-01-01T09:00:00+00:00'\n"
            "  - title: newer\n"
            "    created_at: 2024-01-01T10:00:00+00:00\n"
            "  - title: offset-older\n"
            "    created_at: '2024-01-01T11:00:00+05:00'\n"
        )
        result = _invoke(tmpdir, ["load-fixtures", str(path)])
        assert result.exit_code == 0, result.output

        listing = build_backoffice(Settings(data_dir=tmpdir)).listing
        items = listing.list_submissions(ListQuery()).items
        assert [s.title for s in items] == ["newer", "older", "offset-older"]


def _stored(tmpdir):
    subs = Path(tmpdir) / "submissions" / "submissions.json"
    idents = Path(tmpdir) / "auth" / "identities.json"
    return (
        json.loads(subs.read_text()) if subs.exists() else [],
        json.loads(idents.read_text()) if idents.exists() else [],
    )


def test_bad_fixtures_write_nothing():
    bad_files = [
        "- just a list\n",
        "identities:\n  - {username: mia, password: pw}\nsubmissions:\n  - {content: no title}\n",
        "identities:\n  - {password: pw}\n",
        "identities:\n  - {username: mia, password: pw, role: owner}\n",
        "identities:\n  - {username: mia, password: pw}\n  - {username: MIA, password: pw}\n",
        "submissions:\n  - {title: a, created_at: 'someday'}\n",
        "submissions: 5\n",
        "submissions: [oops\n",
    ]
    for text in bad_files:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "fixtures.yaml"
            path.write_text(text)
            result = _invoke(tmpdir, ["load-fixtures", str(path)])
            assert result.exit_code == 1, text
            assert "Error" in result.output
            assert _stored(tmpdir) == ([], [])


def test_null_sections_are_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "fixtures.yaml"
        path.write_text("identities:\nsubmissions: null\n")
        result = _invoke(tmpdir, ["load-fixtures", str(path)])
        assert result.exit_code == 0, result.output
        assert "0 identities, 0 submissions" in result.output
