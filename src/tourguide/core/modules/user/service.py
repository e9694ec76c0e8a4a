from typing import Any
from uuid import UUID

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from tourguide.core.core import Service
from tourguide.core.db import translate_store_errors
from tourguide.core.modules.user.models import User
from tourguide.core.modules.user.validators import normalize_email, validate_email, validate_password, validate_username
from tourguide.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


class UserService(Service):
    """Traveler accounts. Reads always go to the database so deleted users disappear at once."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("username", 1)], unique=True)
        await self._collection.create_index([("email", 1)], unique=True)
        # Users without a signature hold null, which must not collide with each other
        await self._collection.create_index(
            [("signature", 1)],
            unique=True,
            partialFilterExpression={"signature": {"$type": "string"}},
        )

    @translate_store_errors
    async def find_user(self, user_id: UUID) -> User | None:
        """Get user by ID, or None if the account does not exist."""
        doc = await self._collection.find_one({"_id": user_id})
        return User.model_validate(doc) if doc else None

    async def get_user(self, user_id: UUID) -> User:
        """Get user by ID."""
        user = await self.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    @translate_store_errors
    async def find_user_by_email(self, email: str) -> User | None:
        doc = await self._collection.find_one({"email": normalize_email(email)})
        return User.model_validate(doc) if doc else None

    @translate_store_errors
    async def create_user(self, name: str, username: str, email: str, password: str) -> User:
        """Create user with hashed password."""
        name = name.strip()
        username = username.strip().lower()
        email = normalize_email(email)
        if not 2 <= len(name) <= 120:
            raise ValidationError("Name must be between 2 and 120 characters")
        validate_username(username)
        validate_email(email)
        validate_password(password)

        user = User(name=name, username=username, email=email, password_hash=hash_password(password))
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            raise ValidationError("Username or email is already registered") from e
        logger.info("user_created", user_id=str(user.id), username=username)
        return user

    async def verify_credentials(self, email: str, password: str) -> User | None:
        """Return the user when the password matches the stored hash."""
        user = await self.find_user_by_email(email)
        if user is None or not check_password(password, user.password_hash):
            return None
        return user

    @translate_store_errors
    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        """Change user password after verifying current password."""
        user = await self.get_user(user_id)
        if not check_password(old_password, user.password_hash):
            raise ValidationError("Invalid current password")

        validate_password(new_password)
        await self._collection.update_one({"_id": user_id}, {"$set": {"password_hash": hash_password(new_password)}})

    @translate_store_errors
    async def delete_user(self, user_id: UUID) -> None:
        """Delete a user from the system."""
        result = await self._collection.delete_one({"_id": user_id})
        if not result.deleted_count:
            raise NotFoundError(f"User '{user_id}' not found")
        logger.info("user_deleted", user_id=str(user_id))
