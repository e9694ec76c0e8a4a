from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from tourguide.core.db import MongoModel
from tourguide.utils import now


class User(MongoModel):
    """Traveler account with credentials.

    signature is assigned at most once and unique across users when set.
    """

    name: str
    username: str
    email: str
    password_hash: str  # bcrypt hash
    signature: str | None = None
    created_at: datetime = Field(default_factory=now)


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="Email address")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, name=user.name, username=user.username, email=user.email)
