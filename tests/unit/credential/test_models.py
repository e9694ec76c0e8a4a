"""Tests for session model state."""

from datetime import timedelta
from uuid import uuid4

from tourguide.core.modules.guide.models import Guide
from tourguide.core.modules.guide_session.models import GuideSession, GuideSessionState
from tourguide.core.modules.session.models import Session, SessionId
from tourguide.utils import now


def make_guide_session(**overrides):
    values = {"principal_id": uuid4(), "token": "t" * 64, "expires_at": now() + timedelta(days=1)}
    values.update(overrides)
    return GuideSession(**values)


class TestIsExpired:
    def test_future_expiry_is_live(self):
        session = Session(sid=SessionId("sid"), principal_id=uuid4(), expires_at=now() + timedelta(seconds=30))
        assert not session.is_expired()

    def test_expiry_at_exactly_now_is_dead(self):
        moment = now()
        session = Session(sid=SessionId("sid"), principal_id=uuid4(), expires_at=moment)
        assert session.is_expired(moment)

    def test_metadata_defaults_to_empty_bag(self):
        session = Session(sid=SessionId("sid"), principal_id=uuid4(), expires_at=now())
        assert session.metadata == {}
        assert session.to_mongo()["metadata"] == {}


class TestGuideSessionState:
    def test_new_session_is_active(self):
        session = make_guide_session()
        assert session.state == GuideSessionState.ACTIVE
        assert session.is_valid()

    def test_revoked_session(self):
        session = make_guide_session(revoked=True)
        assert session.state == GuideSessionState.REVOKED
        assert not session.is_valid()

    def test_expired_session(self):
        session = make_guide_session(expires_at=now() - timedelta(seconds=1))
        assert session.state == GuideSessionState.EXPIRED
        assert not session.is_valid()

    def test_revoked_and_expired_reports_revoked(self):
        session = make_guide_session(revoked=True, expires_at=now() - timedelta(seconds=1))
        assert session.state == GuideSessionState.REVOKED

    def test_populated_guide_is_not_stored(self):
        guide = Guide(name="Asha", email="asha@example.com", phone="+919811111111", password_hash="x")
        session = make_guide_session(guide=guide)
        data = session.to_mongo()
        assert "guide" not in data
        assert data["_id"] == session.id
