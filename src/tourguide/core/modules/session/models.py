"""Session management models."""

from datetime import datetime
from typing import Any, NewType

from pydantic import BaseModel, Field

from tourguide.core.modules.credential.models import CredentialSession

SessionId = NewType("SessionId", str)


class Session(CredentialSession):
    """User authentication session.

    principal_id references a User. Indexed on sid - unique, principal_id, expires_at.
    metadata is a free-form bag; nothing reads it as a contract.
    """

    sid: SessionId
    device_key: str | None = None  # Device signature the session was issued to
    metadata: dict[str, Any] = Field(default_factory=dict)


class IssuedSession(BaseModel):
    """Credentials handed to a user after login."""

    sid: SessionId
    expires_at: datetime
    signature: str | None = None  # Device key the client must present when device binding is enforced
