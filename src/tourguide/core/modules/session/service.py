from datetime import timedelta
from typing import Any
from uuid import UUID

import structlog

from tourguide.config import ExpiryStrategy
from tourguide.core.db import translate_store_errors
from tourguide.core.modules.credential.service import CredentialSessionService
from tourguide.core.modules.session.models import Session, SessionId
from tourguide.core.modules.token.generator import new_session_id
from tourguide.utils import mask_token, now

logger = structlog.get_logger(__name__)


class SessionService(CredentialSessionService[Session]):
    """Service for managing user sessions."""

    collection_name = "sessions"
    lookup_field = "sid"
    model = Session

    @property
    def expiry_strategy(self) -> ExpiryStrategy:
        return self.core.config.session_expiry

    @translate_store_errors
    async def create_session(
        self,
        user_id: UUID,
        *,
        device_key: str | None = None,
        user_agent: str | None = None,
        source_address: str | None = None,
        ttl_seconds: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Session:
        """Issue a new session for a verified user; one insert, no internal retry."""
        if ttl_seconds is None:
            ttl_seconds = self.core.config.session_ttl_seconds
        created_at = now()
        session = Session(
            sid=SessionId(new_session_id()),
            principal_id=user_id,
            device_key=device_key,
            user_agent=user_agent or "",
            source_address=source_address or "",
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=ttl_seconds),
            metadata=metadata or {},
        )
        await self._insert(session)
        logger.debug("session_created", user_id=str(user_id), sid=mask_token(session.sid), ttl_seconds=ttl_seconds)
        return session

    @translate_store_errors
    async def find_by_sid(self, sid: str) -> Session | None:
        """Return the live session for sid, or None when it never existed or has expired."""
        if not sid:
            return None
        return await self._find_live({"sid": sid})

    async def sweep_expired(self) -> int:
        """Delete all sessions whose expiry has passed and return how many were removed."""
        return await self.cleanup_expired()

    @translate_store_errors
    async def destroy_session(self, sid: str) -> bool:
        """Delete a session by sid. Returns whether a record was removed."""
        if not sid:
            return False
        result = await self._collection.delete_one({"sid": sid})
        return result.deleted_count > 0

    async def delete_sessions_for_user(self, user_id: UUID) -> int:
        """Sign a user out everywhere."""
        count = await self.delete_for_principal(user_id)
        logger.info("user_sessions_deleted", user_id=str(user_id), count=count)
        return count
