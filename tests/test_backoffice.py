"""End-to-end tests for the BackOffice boundary operations."""

import tempfile
from pathlib import Path

import pytest

from notemod.auth.models import RequestContext, Role
from notemod.config import Settings
from notemod.errors import (
    AuthError,
    Forbidden,
    InvalidTransition,
    PersistenceError,
    Unauthenticated,
    ValidationError,
)
from notemod.listing.service import ListQuery
from notemod.service import build_backoffice
from notemod.submissions.models import Submission, SubmissionStatus


def _backoffice(tmpdir: str, backend: str = "file"):
    bo = build_backoffice(Settings(data_dir=tmpdir, session_backend=backend))
    bo.identities.create_identity("mia", "mod-pass", role=Role.moderator)
    bo.identities.create_identity("ada", "admin-pass", role=Role.admin)
    for i in range(3):
        bo.repository.add(
            Submission(
                id=f"s{i}",
                title=f"Road trip day {i}",
                content="Desert highway",
                created_at=f"2026-04-0{i + 1}T10:00:00+00:00",
            )
        )
    return bo


def _ctx(bo, username: str, password: str) -> RequestContext:
    return RequestContext(token=bo.login(username, password).token, ip_address="10.0.0.1")


def test_login_and_logout():
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir)
        session = bo.login("mia", "mod-pass")
        ctx = RequestContext(token=session.token)
        assert bo.current_identity(ctx).username == "mia"

        bo.logout(session.token)
        with pytest.raises(Unauthenticated):
            bo.current_identity(ctx)
        bo.logout(session.token)  # second logout is a no-op


def test_login_rejects_bad_credentials():
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir)
        with pytest.raises(AuthError) as wrong_pw:
            bo.login("mia", "nope")
        with pytest.raises(AuthError) as unknown:
            bo.login("ghost", "nope")
        assert wrong_pw.value.message == unknown.value.message
        failed = bo.audit.get_events(action="login_failed")
        assert len(failed) == 2
        assert not any(e.success for e in failed)


def test_listing_requires_authentication():
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir)
        with pytest.raises(Unauthenticated):
            bo.list_submissions(RequestContext(), ListQuery())
        with pytest.raises(Unauthenticated):
            bo.get_submission(RequestContext(token="bogus"), "s0")


def test_moderator_reviews_pending():
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir)
        ctx = _ctx(bo, "mia", "mod-pass")

        bo.review_action("s0", "approve", ctx)
        bo.review_action("s1", "reject", ctx, reason="Needs photos")

        assert bo.get_submission(ctx, "s0").status is SubmissionStatus.approved
        rejected = bo.get_submission(ctx, "s1")
        assert rejected.status is SubmissionStatus.rejected
        assert rejected.rejection_reason == "Needs photos"

        page = bo.list_submissions(ctx, ListQuery(status="pending"))
        assert [s.id for s in page.items] == ["s2"]


def test_reject_without_reason_changes_nothing():
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir)
        ctx = _ctx(bo, "mia", "mod-pass")
        before = bo.get_submission(ctx, "s0")
        with pytest.raises(ValidationError):
            bo.review_action("s0", "reject", ctx, reason="")
        assert bo.get_submission(ctx, "s0") == before


def test_delete_needs_admin():
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir)
        mod = _ctx(bo, "mia", "mod-pass")
        admin = _ctx(bo, "ada", "admin-pass")

        with pytest.raises(Forbidden):
            bo.review_action("s0", "delete", mod)
        assert bo.get_submission(mod, "s0") is not None

        result = bo.review_action("s0", "delete", admin)
        assert result.submission is None
        ids = [s.id for s in bo.list_submissions(admin, ListQuery()).items]
        assert "s0" not in ids

        denied = bo.audit.get_events(action="delete", success=False)
        assert len(denied) == 1
        assert denied[0].details["error"] == "forbidden"
        assert denied[0].ip_address == "10.0.0.1"


def test_second_review_is_invalid_transition():
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir)
        mia = _ctx(bo, "mia", "mod-pass")
        ada = _ctx(bo, "ada", "admin-pass")
        bo.review_action("s2", "approve", mia)
        with pytest.raises(InvalidTransition):
            bo.review_action("s2", "reject", ada, reason="late")
        assert bo.get_submission(ada, "s2").status is SubmissionStatus.approved


def test_review_requires_session():
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir, backend="memory")
        with pytest.raises(Unauthenticated):
            bo.review_action("s0", "approve", RequestContext(token="expired-or-fake"))


def test_mutations_record_actor():
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir)
        ctx = _ctx(bo, "mia", "mod-pass")
        mia = bo.current_identity(ctx)
        bo.review_action("s0", "approve", ctx)
        assert bo.get_submission(ctx, "s0").reviewed_by == mia.id
        events = bo.audit.get_events(action="approve")
        assert events[0].actor == mia.id
        assert events[0].resource_id == "s0"


def test_state_survives_restart():
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir)
        token = bo.login("mia", "mod-pass").token
        bo.review_action("s0", "approve", RequestContext(token=token))

        again = build_backoffice(Settings(data_dir=tmpdir))
        ctx = RequestContext(token=token)
        assert again.current_identity(ctx).username == "mia"
        assert again.get_submission(ctx, "s0").status is SubmissionStatus.approved
        assert Path(tmpdir, "submissions", "submissions.json").exists()


def test_login_survives_audit_failure(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        bo = _backoffice(tmpdir)

        def disk_full(**event):
            raise PersistenceError("disk full")

        monkeypatch.setattr(bo.audit, "log_event", disk_full)
        session = bo.login("mia", "mod-pass")
        assert bo.current_identity(RequestContext(token=session.token)).username == "mia"
