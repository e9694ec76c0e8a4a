from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from tourguide.core.core import Service
from tourguide.core.db import is_duplicate_key, translate_store_errors
from tourguide.core.modules.signature.models import SignatureBackfillResult
from tourguide.core.modules.token.generator import generate_signature
from tourguide.errors import UniquenessExhaustedError

logger = structlog.get_logger(__name__)


class SignatureService(Service):
    """Assigns each user a unique device signature, exactly once.

    Relies on the unique signature index of the users collection and a
    conditional update, so concurrent writers never overwrite each other.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    @translate_store_errors
    async def assign_signature(self, user_id: UUID, max_attempts: int | None = None) -> str | None:
        """Set a fresh signature on a user that has none.

        Returns the new signature, or None when the user already has one (possibly
        written by a concurrent caller) or does not exist. Candidates colliding with
        another user's signature are replaced; running out of attempts raises
        UniquenessExhaustedError.
        """
        if max_attempts is None:
            max_attempts = self.core.config.signature_max_attempts

        for attempt in range(1, max_attempts + 1):
            candidate = generate_signature()
            try:
                # Matches null and missing alike
                doc = await self._collection.find_one_and_update(
                    {"_id": user_id, "signature": None},
                    {"$set": {"signature": candidate}},
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError as e:
                if not is_duplicate_key(e, "signature"):
                    raise
                logger.warning("signature_collision", user_id=str(user_id), attempt=attempt)
                continue

            if doc is None:
                logger.debug("signature_already_assigned", user_id=str(user_id))
                return None
            logger.debug("signature_assigned", user_id=str(user_id), attempt=attempt)
            return candidate

        logger.error("signature_attempts_exhausted", user_id=str(user_id), max_attempts=max_attempts)
        raise UniquenessExhaustedError(f"Failed to assign unique signature after {max_attempts} attempts")

    @translate_store_errors
    async def backfill_signatures(self) -> SignatureBackfillResult:
        """Give every user without a signature one. A user that cannot be signed is recorded and skipped."""
        result = SignatureBackfillResult()
        cursor = self._collection.find({"signature": None}, projection={"_id": 1})
        async for doc in cursor:
            user_id = doc["_id"]
            try:
                signature = await self.assign_signature(user_id)
            except UniquenessExhaustedError:
                result.failed.append(user_id)
                continue
            if signature is None:
                result.skipped += 1
            else:
                result.assigned += 1

        logger.info(
            "signature_backfill_finished", assigned=result.assigned, skipped=result.skipped, failed=len(result.failed)
        )
        return result
