from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from kindred.core.constants import MAX_AGE, MIN_AGE
from kindred.models.profile import new_id, utcnow

LikeKind = Literal["like", "super_like"]

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(value: str) -> str:
    try:
        email = _email_adapter.validate_python(value.strip())
    except PydanticValidationError:
        raise ValueError("Please enter a valid email") from None
    return email.lower()


class LikeRecord(BaseModel):
    profile_id: str
    kind: LikeKind = "like"
    liked_at: datetime = Field(default_factory=utcnow)

    @property
    def super_liked(self) -> bool:
        return self.kind == "super_like"


class MatchEntry(BaseModel):
    profile_id: str
    match_id: str
    kind: LikeKind = "like"
    matched_at: datetime = Field(default_factory=utcnow)


class AgeRange(BaseModel):
    min: int = Field(default=MIN_AGE, ge=MIN_AGE)
    max: int = Field(default=MAX_AGE, le=MAX_AGE)

    @model_validator(mode="after")
    def _ordered(self) -> "AgeRange":
        if self.min > self.max:
            raise ValueError("age range minimum cannot exceed maximum")
        return self


class NotificationSettings(BaseModel):
    email: bool = True
    push: bool = True
    matches: bool = True
    messages: bool = True


class Preferences(BaseModel):
    age_range: AgeRange = Field(default_factory=AgeRange)
    max_distance: int = Field(default=50, ge=1, le=100)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


class UserStats(BaseModel):
    total_likes: int = 0
    total_matches: int = 0
    total_super_likes: int = 0


class User(BaseModel):
    """An account, stored in the `users` collection. It owns the like and match lists."""

    id: str = Field(default_factory=new_id)
    email: EmailStr
    password_hash: str
    profile_id: str | None = None
    liked_profiles: list[LikeRecord] = Field(default_factory=list)
    matches: list[MatchEntry] = Field(default_factory=list)
    is_active: bool = True
    last_active: datetime = Field(default_factory=utcnow)
    email_verified: bool = False
    login_attempts: int = 0
    lock_until: datetime | None = None
    reset_nonce: str | None = None
    reset_expires: datetime | None = None
    preferences: Preferences = Field(default_factory=Preferences)
    stats: UserStats = Field(default_factory=UserStats)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 0

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()

    @property
    def is_locked(self) -> bool:
        return bool(self.lock_until and self.lock_until > utcnow())

    def find_like(self, profile_id: str) -> LikeRecord | None:
        return next((like for like in self.liked_profiles if like.profile_id == profile_id), None)

    def find_match(self, profile_id: str) -> MatchEntry | None:
        return next((match for match in self.matches if match.profile_id == profile_id), None)

    def public(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "profileId": self.profile_id,
        }

    def details(self) -> dict:
        return self.model_dump(
            mode="json",
            exclude={"password_hash", "reset_nonce", "reset_expires", "login_attempts", "lock_until", "version"},
        )
