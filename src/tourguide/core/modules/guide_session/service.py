from datetime import timedelta
from uuid import UUID

import structlog
from pymongo import ReturnDocument

from tourguide.config import ExpiryStrategy
from tourguide.core.db import translate_store_errors
from tourguide.core.modules.credential.service import CredentialSessionService
from tourguide.core.modules.guide_session.models import GuideSession, IssuedGuideSession, RotatedRefreshToken
from tourguide.core.modules.token.generator import new_token
from tourguide.utils import mask_token, now

logger = structlog.get_logger(__name__)


class GuideSessionService(CredentialSessionService[GuideSession]):
    """Service for guide sessions: access token plus a rotating refresh token."""

    collection_name = "guide_sessions"
    lookup_field = "token"
    model = GuideSession

    @property
    def expiry_strategy(self) -> ExpiryStrategy:
        return self.core.config.guide_session_expiry

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await super().on_start()
        # Only sessions that still hold a refresh token take part in uniqueness
        await self._collection.create_index(
            [("refresh_token", 1)],
            unique=True,
            partialFilterExpression={"refresh_token": {"$type": "string"}},
        )

    @translate_store_errors
    async def create_session(
        self,
        guide_id: UUID,
        *,
        ttl_days: int | None = None,
        source_address: str | None = None,
        user_agent: str | None = None,
        refresh_token: str | None = None,
    ) -> IssuedGuideSession:
        """Issue an access token and an independent refresh token for a verified guide."""
        if ttl_days is None:
            ttl_days = self.core.config.guide_session_ttl_days
        created_at = now()
        session = GuideSession(
            principal_id=guide_id,
            token=new_token(),
            refresh_token=refresh_token or new_token(),
            source_address=source_address or "",
            user_agent=user_agent or "",
            created_at=created_at,
            expires_at=created_at + timedelta(days=ttl_days),
        )
        await self._insert(session)
        logger.debug("guide_session_created", guide_id=str(guide_id), session_id=str(session.id), ttl_days=ttl_days)
        return IssuedGuideSession(
            token=session.token,
            refresh_token=session.refresh_token or "",
            expires_at=session.expires_at,
            session_id=session.id,
        )

    @translate_store_errors
    async def verify(self, token: str) -> GuideSession | None:
        """Return the active session for token with its guide populated, or None.

        The guide is None on the returned session when the account no longer exists.
        """
        if not token:
            return None
        session = await self._find_live({"token": token, "revoked": False})
        if session is None or not session.is_valid():
            return None
        session.guide = await self.core.services.guide.find_guide(session.principal_id)
        return session

    @translate_store_errors
    async def revoke(self, token: str) -> bool:
        """Mark a session revoked. Returns whether a matching record exists; revoking twice is harmless."""
        if not token:
            return False
        result = await self._collection.update_one({"token": token}, {"$set": {"revoked": True}})
        if result.matched_count:
            logger.debug("guide_session_revoked", token=mask_token(token))
        return result.matched_count > 0

    @translate_store_errors
    async def revoke_all(self, guide_id: UUID) -> int:
        """Revoke every active session of a guide in one bulk update and return how many changed."""
        result = await self._collection.update_many(
            {"principal_id": guide_id, "revoked": False}, {"$set": {"revoked": True}}
        )
        logger.info("guide_sessions_revoked", guide_id=str(guide_id), count=result.modified_count)
        return result.modified_count

    @translate_store_errors
    async def rotate_refresh_token(self, old_refresh_token: str) -> RotatedRefreshToken | None:
        """Swap a refresh token for a fresh one in a single conditional update.

        None means the token is unknown, already rotated, revoked or expired.
        Callers should treat it as possible refresh-token reuse.
        """
        if not old_refresh_token:
            return None
        new_refresh_token = new_token()
        doc = await self._collection.find_one_and_update(
            {"refresh_token": old_refresh_token, "revoked": False, "expires_at": {"$gt": now()}},
            {"$set": {"refresh_token": new_refresh_token}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return RotatedRefreshToken(new_refresh_token=new_refresh_token, session_id=doc["_id"], expires_at=doc["expires_at"])
