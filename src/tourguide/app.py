from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog

from tourguide.config import Config
from tourguide.core.core import Core
from tourguide.core.modules.guide.models import GuideProfile, GuideView
from tourguide.core.modules.guide_session.models import IssuedGuideSession, RotatedRefreshToken
from tourguide.core.modules.session.models import IssuedSession
from tourguide.core.modules.signature.models import SignatureBackfillResult
from tourguide.core.modules.token.generator import sanitize_device_key
from tourguide.core.modules.user.models import User, UserView
from tourguide.errors import AuthenticationError, AuthFailure, UniquenessExhaustedError

logger = structlog.get_logger(__name__)


class App:
    """Facade for all application operations, resolves credentials before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Users ===
    async def register_user(self, name: str, username: str, email: str, password: str) -> UserView:
        """Create a traveler account."""
        user = await self._core.services.user.create_user(name, username, email, password)
        return UserView.from_domain(user)

    async def login(
        self,
        email: str,
        password: str,
        remember: bool = False,
        user_agent: str | None = None,
        source_address: str | None = None,
    ) -> IssuedSession:
        """Verify credentials, make sure the user has a device signature and open a session."""
        user = await self._core.services.user.verify_credentials(email, password)
        if user is None:
            raise AuthenticationError(AuthFailure.INVALID_OR_EXPIRED, "Invalid email or password")

        signature = user.signature or await self._ensure_signature(user)
        config = self._core.config
        session = await self._core.services.session.create_session(
            user.id,
            device_key=signature,
            user_agent=user_agent,
            source_address=source_address,
            ttl_seconds=config.remember_ttl_seconds if remember else config.session_ttl_seconds,
        )
        logger.info("user_logged_in", user_id=str(user.id), remember=remember)
        return IssuedSession(sid=session.sid, expires_at=session.expires_at, signature=signature)

    async def logout(self, sid: str | None) -> None:
        """Destroy the session if it still exists."""
        if sid:
            await self._core.services.session.destroy_session(sid)

    async def get_current_user(self, sid: str | None, device_key: str | None = None) -> UserView:
        """Get current authenticated user profile."""
        user = await self._core.services.access.resolve_user(sid, sanitize_device_key(device_key))
        return UserView.from_domain(user)

    async def change_password(
        self, sid: str | None, old_password: str, new_password: str, device_key: str | None = None
    ) -> None:
        """Change password for current user and sign the user out on every device."""
        user = await self._core.services.access.resolve_user(sid, sanitize_device_key(device_key))
        await self._core.services.user.change_password(user.id, old_password, new_password)
        await self._core.services.session.delete_sessions_for_user(user.id)

    async def delete_account(self, sid: str | None, device_key: str | None = None) -> None:
        """Delete the current user together with all of its sessions."""
        user = await self._core.services.access.resolve_user(sid, sanitize_device_key(device_key))
        await self._core.services.user.delete_user(user.id)
        await self._core.services.session.delete_sessions_for_user(user.id)

    # === Guides ===
    async def register_guide(
        self, name: str, email: str, phone: str, password: str, profile: GuideProfile | None = None
    ) -> GuideView:
        """Create a guide account."""
        guide = await self._core.services.guide.create_guide(name, email, phone, password, profile)
        return GuideView.from_domain(guide)

    async def guide_login(
        self, email: str, password: str, user_agent: str | None = None, source_address: str | None = None
    ) -> IssuedGuideSession:
        """Verify guide credentials and issue access and refresh tokens."""
        guide = await self._core.services.guide.verify_credentials(email, password)
        if guide is None:
            raise AuthenticationError(AuthFailure.INVALID_OR_EXPIRED, "Invalid email or password")
        issued = await self._core.services.guide_session.create_session(
            guide.id, user_agent=user_agent, source_address=source_address
        )
        logger.info("guide_logged_in", guide_id=str(guide.id), session_id=str(issued.session_id))
        return issued

    async def guide_logout(self, token: str | None) -> None:
        """Revoke the presented guide session."""
        if token:
            await self._core.services.guide_session.revoke(token)

    async def guide_logout_all(self, token: str | None) -> int:
        """Revoke every session of the current guide, including the presented one."""
        guide = await self._core.services.access.resolve_guide(token)
        return await self._core.services.guide_session.revoke_all(guide.id)

    async def get_current_guide(self, token: str | None) -> GuideView:
        """Get current authenticated guide profile."""
        guide = await self._core.services.access.resolve_guide(token)
        return GuideView.from_domain(guide)

    async def change_guide_password(self, token: str | None, old_password: str, new_password: str) -> None:
        """Change the guide's password and force re-authentication everywhere."""
        guide = await self._core.services.access.resolve_guide(token)
        await self._core.services.guide.change_password(guide.id, old_password, new_password)
        await self._core.services.guide_session.revoke_all(guide.id)

    async def refresh_guide_session(self, refresh_token: str | None, access_token: str | None = None) -> RotatedRefreshToken:
        """Rotate a refresh token.

        A stale refresh token may have been stolen. When configured, and the caller
        still holds a valid access token, all sessions of that guide are revoked.
        """
        if not refresh_token:
            raise AuthenticationError(AuthFailure.NO_TOKEN)

        rotated = await self._core.services.guide_session.rotate_refresh_token(refresh_token)
        if rotated is not None:
            return rotated

        logger.warning("refresh_token_reuse_suspected")
        if self._core.config.revoke_all_on_refresh_reuse and access_token:
            session = await self._core.services.guide_session.verify(access_token)
            if session is not None:
                await self._core.services.guide_session.revoke_all(session.principal_id)
        raise AuthenticationError(AuthFailure.INVALID_OR_EXPIRED)

    # === Maintenance ===
    async def sweep_expired_sessions(self) -> dict[str, int]:
        """Purge expired user and guide sessions."""
        return {
            "sessions": await self._core.services.session.sweep_expired(),
            "guide_sessions": await self._core.services.guide_session.cleanup_expired(),
        }

    async def backfill_signatures(self) -> SignatureBackfillResult:
        """Assign signatures to users created before signatures existed."""
        return await self._core.services.signature.backfill_signatures()

    # === Private helpers ===
    async def _ensure_signature(self, user: User) -> str | None:
        """Assign a signature on first login; a concurrent login may have set it already."""
        try:
            signature = await self._core.services.signature.assign_signature(user.id)
        except UniquenessExhaustedError:
            logger.exception("login_without_signature", user_id=str(user.id))
            return None
        if signature is not None:
            return signature
        refreshed = await self._core.services.user.find_user(user.id)
        return refreshed.signature if refreshed else None
