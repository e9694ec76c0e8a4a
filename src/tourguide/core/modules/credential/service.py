from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID

import structlog
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from tourguide.config import ExpiryStrategy
from tourguide.core.core import Service
from tourguide.core.db import translate_store_errors
from tourguide.core.modules.credential.models import CredentialSession
from tourguide.utils import now

logger = structlog.get_logger(__name__)


S = TypeVar("S", bound=CredentialSession)


class CredentialSessionService(Service, ABC, Generic[S]):
    """Storage shared by the per-principal session stores.

    Subclasses name their collection, model and lookup key. Whether MongoDB
    purges expired records by itself (TTL index) or only the explicit sweep
    does is decided by ``expiry_strategy``.
    """

    collection_name: ClassVar[str]
    lookup_field: ClassVar[str]
    model: type[S]

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection: AsyncCollection[dict[str, Any]] = database.get_collection(self.collection_name)

    @property
    @abstractmethod
    def expiry_strategy(self) -> ExpiryStrategy:
        """Expiry strategy configured for this collection."""

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([(self.lookup_field, 1)], unique=True)
        await self._collection.create_index([("principal_id", 1)])
        if self.expiry_strategy == ExpiryStrategy.TTL_INDEX:
            await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0, name="expires_at_ttl")
        else:
            await self._collection.create_index([("expires_at", 1)], name="expires_at_sweep")
        logger.debug(
            "credential_store_started", collection=self.collection_name, expiry_strategy=str(self.expiry_strategy)
        )

    async def _insert(self, session: S) -> S:
        await self._collection.insert_one(session.to_mongo())
        return session

    async def _find_live(self, query: dict[str, Any]) -> S | None:
        """Find one unexpired record; expiry is checked again after the read."""
        current = now()
        doc = await self._collection.find_one({**query, "expires_at": {"$gt": current}})
        if doc is None:
            return None
        session = self.model.model_validate(doc)
        if session.is_expired(current):
            return None
        return session

    @translate_store_errors
    async def delete_for_principal(self, principal_id: UUID) -> int:
        """Delete every session of a principal and return how many were removed."""
        result = await self._collection.delete_many({"principal_id": principal_id})
        return result.deleted_count

    @translate_store_errors
    async def cleanup_expired(self) -> int:
        """Delete records whose expiry has passed. Safe to call repeatedly."""
        result = await self._collection.delete_many({"expires_at": {"$lte": now()}})
        if result.deleted_count:
            logger.info("expired_sessions_removed", collection=self.collection_name, count=result.deleted_count)
        return result.deleted_count
