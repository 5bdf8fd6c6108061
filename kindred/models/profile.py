from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from kindred.core.constants import (
    MAX_AGE,
    MAX_BIO_LENGTH,
    MAX_INTEREST_LENGTH,
    MAX_LOOKING_FOR_LENGTH,
    MAX_PHOTOS,
    MIN_AGE,
)

Gender = Literal["male", "female", "other"]
InterestedIn = Literal["male", "female", "both"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


class GeoPoint(BaseModel):
    """GeoJSON point; coordinates are [longitude, latitude]."""

    type: Literal["Point"] = "Point"
    coordinates: tuple[float, float]

    @field_validator("coordinates")
    @classmethod
    def _check_range(cls, value: tuple[float, float]) -> tuple[float, float]:
        longitude, latitude = value
        if not -180 <= longitude <= 180 or not -90 <= latitude <= 90:
            raise ValueError("coordinates must be [longitude, latitude] within valid ranges")
        return value

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class ProfileFields(BaseModel):
    """Attributes a profile owner may set."""

    name: str = Field(..., min_length=1, max_length=50)
    age: int = Field(..., ge=MIN_AGE, le=MAX_AGE)
    gender: Gender | None = None
    interested_in: InterestedIn | None = None
    bio: str = Field(default="", max_length=MAX_BIO_LENGTH)
    photos: list[str] = Field(default_factory=list, max_length=MAX_PHOTOS)
    interests: list[str] = Field(default_factory=list)
    looking_for: str = Field(default="", max_length=MAX_LOOKING_FOR_LENGTH)
    hobbies: list[str] = Field(default_factory=list)
    job: str = ""
    education: str = ""
    location: str = Field(default="Unknown", max_length=100)
    location_data: GeoPoint | None = None
    religion: str | None = None
    political_views: str | None = None
    wants_children: str | None = None

    @field_validator("name", "job", "education", "location")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("interests")
    @classmethod
    def _clean_interests(cls, value: list[str]) -> list[str]:
        # Duplicates collapse so interest overlap stays symmetric
        cleaned: list[str] = []
        for interest in value:
            interest = interest.strip()
            if not interest:
                continue
            if len(interest) > MAX_INTEREST_LENGTH:
                raise ValueError(f"Interest cannot be more than {MAX_INTEREST_LENGTH} characters")
            if interest not in cleaned:
                cleaned.append(interest)
        return cleaned

    @field_validator("hobbies")
    @classmethod
    def _clean_hobbies(cls, value: list[str]) -> list[str]:
        return [h.strip() for h in value if h.strip()]


class Profile(ProfileFields):
    """A user's dating-facing attribute set, stored in the `profiles` collection."""

    id: str = Field(default_factory=new_id)
    user_id: str | None = Field(default=None, description="Owning account; seeded profiles have none")
    is_active: bool = True
    last_active: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 0

    def public(self) -> dict:
        return self.model_dump(mode="json", exclude={"version"})


class ProfileUpdate(BaseModel):
    """Partial update; unset fields keep their stored value."""

    name: str | None = None
    age: int | None = None
    gender: Gender | None = None
    interested_in: InterestedIn | None = None
    bio: str | None = None
    photos: list[str] | None = None
    interests: list[str] | None = None
    looking_for: str | None = None
    hobbies: list[str] | None = None
    job: str | None = None
    education: str | None = None
    location: str | None = None
    location_data: GeoPoint | None = None
    religion: str | None = None
    political_views: str | None = None
    wants_children: str | None = None
    is_active: bool | None = None
