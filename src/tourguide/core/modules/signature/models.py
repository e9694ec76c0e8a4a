from uuid import UUID

from pydantic import BaseModel, Field


class SignatureBackfillResult(BaseModel):
    """Outcome of assigning signatures to every user that lacks one."""

    assigned: int = Field(default=0, ge=0, description="Users that received a signature from this run")
    skipped: int = Field(default=0, ge=0, description="Users signed concurrently by another writer")
    failed: list[UUID] = Field(default_factory=list, description="Users left without a signature")
