"""Guide session models with refresh-token rotation."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from tourguide.core.modules.credential.models import CredentialSession
from tourguide.core.modules.guide.models import Guide
from tourguide.utils import now


class GuideSessionState(StrEnum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class GuideSession(CredentialSession):
    """Guide authentication session.

    principal_id references a Guide. token never changes after creation;
    refresh_token is replaced in place on rotation. revoked only goes from
    False to True. Indexed on token - unique, refresh_token, principal_id, expires_at.
    """

    token: str
    refresh_token: str | None = None
    revoked: bool = False
    guide: Guide | None = Field(default=None, exclude=True)  # Populated by verify(), never stored

    @property
    def state(self) -> GuideSessionState:
        # Revocation wins over expiry: both are terminal
        if self.revoked:
            return GuideSessionState.REVOKED
        if self.is_expired():
            return GuideSessionState.EXPIRED
        return GuideSessionState.ACTIVE

    def is_valid(self, at: datetime | None = None) -> bool:
        return not self.revoked and not self.is_expired(at or now())


class IssuedGuideSession(BaseModel):
    """Credentials handed to a guide after login."""

    token: str
    refresh_token: str
    expires_at: datetime
    session_id: UUID


class RotatedRefreshToken(BaseModel):
    new_refresh_token: str
    session_id: UUID
    expires_at: datetime  # Unchanged by rotation
