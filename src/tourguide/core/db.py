import functools
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pymongo.errors import ConnectionFailure, DuplicateKeyError, ExecutionTimeout, PyMongoError

from tourguide.errors import StoreUnavailableError


class MongoModel(BaseModel):
    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_mongo(self) -> dict[str, Any]:
        """Convert the model to a dictionary for MongoDB storage with _id field."""
        data = self.model_dump()
        if "id" in data:
            data["_id"] = data.pop("id")  # Rename id → _id for MongoDB
        return data


def is_store_unavailable(exc: PyMongoError) -> bool:
    """Whether a driver error means the store is unreachable or too slow, as opposed to a rejected write."""
    if isinstance(exc, ConnectionFailure | ExecutionTimeout):
        return True
    return bool(getattr(exc, "timeout", False))


def is_duplicate_key(exc: PyMongoError, field: str | None = None) -> bool:
    """Whether the error is a unique index violation, optionally on the given field."""
    if not isinstance(exc, DuplicateKeyError):
        return False
    if field is None:
        return True
    details = exc.details or {}
    key_pattern = details.get("keyPattern") or details.get("keyValue")
    if key_pattern:
        return field in key_pattern
    return field in str(exc)


P = ParamSpec("P")
R = TypeVar("R")


def translate_store_errors(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Re-raise connectivity failures and timeouts from a service method as StoreUnavailableError."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except PyMongoError as e:
            if is_store_unavailable(e):
                raise StoreUnavailableError from e
            raise

    return wrapper
