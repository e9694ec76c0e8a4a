from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from tourguide.core.db import MongoModel
from tourguide.utils import now


class Guide(MongoModel):
    """Guide account with credentials and public profile."""

    name: str
    email: str
    phone: str
    password_hash: str  # bcrypt hash
    city: str = ""
    state: str = ""
    country: str = "India"
    languages: list[str] = Field(default_factory=list)
    specialty: list[str] = Field(default_factory=list)
    price_per_day: int = 0
    experience_years: int = 0
    bio: str = ""
    verified: bool = False
    rating: float = 0
    created_at: datetime = Field(default_factory=now)


class GuideProfile(BaseModel):
    """Optional profile details supplied at signup."""

    city: str = ""
    state: str = ""
    country: str = "India"
    languages: list[str] = Field(default_factory=list)
    specialty: list[str] = Field(default_factory=list)
    price_per_day: int = Field(default=0, ge=0)
    experience_years: int = Field(default=0, ge=0)
    bio: str = ""


class GuideView(BaseModel):
    """Guide account information (API representation)."""

    id: UUID = Field(..., description="Guide ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Contact email")
    city: str = Field(..., description="Home city")
    languages: list[str] = Field(..., description="Spoken languages")
    verified: bool = Field(..., description="Whether the guide passed verification")

    @classmethod
    def from_domain(cls, guide: Guide) -> "GuideView":
        """Create view model from domain model."""
        return cls(
            id=guide.id,
            name=guide.name,
            email=guide.email,
            city=guide.city,
            languages=guide.languages,
            verified=guide.verified,
        )
