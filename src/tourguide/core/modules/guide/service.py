import re
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from tourguide.core.core import Service
from tourguide.core.db import translate_store_errors
from tourguide.core.modules.guide.models import Guide, GuideProfile
from tourguide.core.modules.user.service import check_password, hash_password
from tourguide.core.modules.user.validators import normalize_email, validate_email, validate_password
from tourguide.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

PHONE_RE = re.compile(r"^\+?[0-9]{7,15}$")


class GuideService(Service):
    """Guide accounts, looked up by the guide sessions that reference them."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("guides")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("email", 1)], unique=True)
        await self._collection.create_index([("phone", 1)], unique=True)

    @translate_store_errors
    async def find_guide(self, guide_id: UUID) -> Guide | None:
        doc = await self._collection.find_one({"_id": guide_id})
        return Guide.model_validate(doc) if doc else None

    async def get_guide(self, guide_id: UUID) -> Guide:
        guide = await self.find_guide(guide_id)
        if guide is None:
            raise NotFoundError(f"Guide '{guide_id}' not found")
        return guide

    @translate_store_errors
    async def create_guide(
        self, name: str, email: str, phone: str, password: str, profile: GuideProfile | None = None
    ) -> Guide:
        """Register a guide with a hashed password. New guides start unverified."""
        name = name.strip()
        email = normalize_email(email)
        phone = re.sub(r"[\s-]", "", phone)
        if not name:
            raise ValidationError("Name is required")
        validate_email(email)
        if not PHONE_RE.fullmatch(phone):
            raise ValidationError(f"Invalid phone number '{phone}'")
        validate_password(password)

        guide = Guide(
            name=name,
            email=email,
            phone=phone,
            password_hash=hash_password(password),
            **(profile or GuideProfile()).model_dump(),
        )
        try:
            await self._collection.insert_one(guide.to_mongo())
        except DuplicateKeyError as e:
            raise ValidationError("Email or phone is already registered") from e
        logger.info("guide_created", guide_id=str(guide.id))
        return guide

    @translate_store_errors
    async def verify_credentials(self, email: str, password: str) -> Guide | None:
        doc = await self._collection.find_one({"email": normalize_email(email)})
        if doc is None:
            return None
        guide = Guide.model_validate(doc)
        if not check_password(password, guide.password_hash):
            return None
        return guide

    @translate_store_errors
    async def change_password(self, guide_id: UUID, old_password: str, new_password: str) -> None:
        guide = await self.get_guide(guide_id)
        if not check_password(old_password, guide.password_hash):
            raise ValidationError("Invalid current password")

        validate_password(new_password)
        await self._collection.update_one({"_id": guide_id}, {"$set": {"password_hash": hash_password(new_password)}})
