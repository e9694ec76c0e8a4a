"""Tests for resolving presented credentials to principals."""

import pytest

from tourguide.errors import AuthenticationError, AuthFailure


async def assert_auth_failure(call, reason):
    with pytest.raises(AuthenticationError) as exc_info:
        await call
    assert exc_info.value.reason == reason
    assert str(exc_info.value) == "Please sign in again"
    return exc_info.value


class TestResolveUser:
    @pytest.mark.asyncio
    async def test_resolves_user_right_after_create(self, core, user):
        session = await core.services.session.create_session(user.id)
        resolved = await core.services.access.resolve_user(session.sid)
        assert resolved.id == user.id

    @pytest.mark.asyncio
    async def test_missing_token(self, core):
        error = await assert_auth_failure(core.services.access.resolve_user(None), AuthFailure.NO_TOKEN)
        assert not error.clears_credentials
        await assert_auth_failure(core.services.access.resolve_user(""), AuthFailure.NO_TOKEN)

    @pytest.mark.asyncio
    async def test_unknown_sid(self, core):
        error = await assert_auth_failure(core.services.access.resolve_user("nope"), AuthFailure.INVALID_OR_EXPIRED)
        assert error.clears_credentials

    @pytest.mark.asyncio
    async def test_expired_but_unswept_session(self, core, database, user):
        session = await core.services.session.create_session(user.id, ttl_seconds=-5)
        assert await database["sessions"].find_one({"sid": session.sid}) is not None

        await assert_auth_failure(core.services.access.resolve_user(session.sid), AuthFailure.INVALID_OR_EXPIRED)

    @pytest.mark.asyncio
    async def test_resolution_does_not_extend_expiry(self, core, database, user):
        session = await core.services.session.create_session(user.id)
        for _ in range(3):
            await core.services.access.resolve_user(session.sid)
        stored = await database["sessions"].find_one({"sid": session.sid})
        assert stored["expires_at"] == session.expires_at

    @pytest.mark.asyncio
    async def test_orphaned_session_is_deleted(self, core, database, user):
        session = await core.services.session.create_session(user.id)
        await database["users"].delete_one({"_id": user.id})

        await assert_auth_failure(core.services.access.resolve_user(session.sid), AuthFailure.PRINCIPAL_MISSING)
        assert await database["sessions"].find_one({"sid": session.sid}) is None
        await assert_auth_failure(core.services.access.resolve_user(session.sid), AuthFailure.INVALID_OR_EXPIRED)

    @pytest.mark.asyncio
    async def test_device_key_ignored_unless_required(self, core, user):
        session = await core.services.session.create_session(user.id, device_key="sig_device")
        resolved = await core.services.access.resolve_user(session.sid, device_key="sig_other")
        assert resolved.id == user.id

    @pytest.mark.asyncio
    async def test_device_key_must_match_when_required(self, core, database, user):
        core.config.require_device_match = True
        session = await core.services.session.create_session(user.id, device_key="sig_device")

        assert (await core.services.access.resolve_user(session.sid, device_key="sig_device")).id == user.id
        await assert_auth_failure(
            core.services.access.resolve_user(session.sid, device_key="sig_other"), AuthFailure.DEVICE_MISMATCH
        )
        assert await database["sessions"].find_one({"sid": session.sid}) is None

    @pytest.mark.asyncio
    async def test_missing_device_key_rejected_when_required(self, core, user):
        core.config.require_device_match = True
        session = await core.services.session.create_session(user.id, device_key="sig_device")
        await assert_auth_failure(core.services.access.resolve_user(session.sid), AuthFailure.DEVICE_MISMATCH)


class TestResolveGuide:
    @pytest.mark.asyncio
    async def test_resolves_guide(self, core, guide):
        issued = await core.services.guide_session.create_session(guide.id)
        resolved = await core.services.access.resolve_guide(issued.token)
        assert resolved.id == guide.id
        assert resolved.city == "Jaipur"

    @pytest.mark.asyncio
    async def test_missing_token(self, core):
        await assert_auth_failure(core.services.access.resolve_guide(None), AuthFailure.NO_TOKEN)

    @pytest.mark.asyncio
    async def test_revoked_token(self, core, guide):
        issued = await core.services.guide_session.create_session(guide.id)
        await core.services.guide_session.revoke(issued.token)
        await assert_auth_failure(core.services.access.resolve_guide(issued.token), AuthFailure.INVALID_OR_EXPIRED)

    @pytest.mark.asyncio
    async def test_expired_token(self, core, guide):
        issued = await core.services.guide_session.create_session(guide.id, ttl_days=0)
        await assert_auth_failure(core.services.access.resolve_guide(issued.token), AuthFailure.INVALID_OR_EXPIRED)

    @pytest.mark.asyncio
    async def test_orphaned_guide_session_is_revoked(self, core, database, guide):
        issued = await core.services.guide_session.create_session(guide.id)
        await database["guides"].delete_one({"_id": guide.id})

        await assert_auth_failure(core.services.access.resolve_guide(issued.token), AuthFailure.PRINCIPAL_MISSING)
        stored = await database["guide_sessions"].find_one({"token": issued.token})
        assert stored["revoked"] is True
