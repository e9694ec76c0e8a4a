"""Fields shared by every kind of credential session."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from tourguide.core.db import MongoModel
from tourguide.utils import now


class CredentialSession(MongoModel):
    """An authenticated client context owned by one principal.

    Expiry is fixed at creation; nothing ever moves expires_at forward.
    """

    principal_id: UUID
    user_agent: str = ""
    source_address: str = ""
    created_at: datetime = Field(default_factory=now)
    expires_at: datetime

    def is_expired(self, at: datetime | None = None) -> bool:
        return self.expires_at <= (at or now())
