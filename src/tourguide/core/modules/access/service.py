"""Resolution of presented credentials to principals.

Resolution never changes a session's lifetime. Every failure raises
AuthenticationError; the reason is for logs, the client only learns that it
has to sign in again and should drop what it presented.
"""

import secrets

import structlog

from tourguide.core.core import Service
from tourguide.core.modules.guide.models import Guide
from tourguide.core.modules.user.models import User
from tourguide.errors import AuthenticationError, AuthFailure
from tourguide.utils import mask_token

logger = structlog.get_logger(__name__)


class AccessService(Service):
    async def resolve_user(self, sid: str | None, device_key: str | None = None) -> User:
        """Resolve a user session id to its user."""
        if not sid:
            raise AuthenticationError(AuthFailure.NO_TOKEN)

        session = await self.core.services.session.find_by_sid(sid)
        if session is None:
            logger.debug("session_not_resolved", sid=mask_token(sid))
            raise AuthenticationError(AuthFailure.INVALID_OR_EXPIRED)

        user = await self.core.services.user.find_user(session.principal_id)
        if user is None:
            logger.warning("orphaned_session_removed", sid=mask_token(sid), user_id=str(session.principal_id))
            await self.core.services.session.destroy_session(session.sid)
            raise AuthenticationError(AuthFailure.PRINCIPAL_MISSING)

        if self.core.config.require_device_match and session.device_key:
            if not device_key or not secrets.compare_digest(device_key, session.device_key):
                logger.warning("device_key_mismatch", sid=mask_token(sid), user_id=str(user.id))
                await self.core.services.session.destroy_session(session.sid)
                raise AuthenticationError(AuthFailure.DEVICE_MISMATCH)

        return user

    async def resolve_guide(self, token: str | None) -> Guide:
        """Resolve a guide access token to its guide."""
        if not token:
            raise AuthenticationError(AuthFailure.NO_TOKEN)

        session = await self.core.services.guide_session.verify(token)
        if session is None:
            logger.debug("guide_session_not_resolved", token=mask_token(token))
            raise AuthenticationError(AuthFailure.INVALID_OR_EXPIRED)

        if session.guide is None:
            logger.warning("orphaned_guide_session_revoked", session_id=str(session.id), guide_id=str(session.principal_id))
            await self.core.services.guide_session.revoke(token)
            raise AuthenticationError(AuthFailure.PRINCIPAL_MISSING)

        return session.guide
