import math
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, computed_field

from kindred.core.constants import MAX_MESSAGE_LENGTH, QUALITY_HIGH_MIN_SCORE, QUALITY_MEDIUM_MIN_SCORE
from kindred.models.profile import new_id, utcnow

MatchStatus = Literal["pending", "matched", "unmatched", "blocked"]
MatchType = Literal["like", "super_like"]
MessageType = Literal["text", "image", "gif", "emoji"]
BlockReason = Literal["inappropriate", "spam", "fake_profile", "harassment", "other"]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class CompatibilityFactor(BaseModel):
    factor: str
    weight: float
    score: float


class Compatibility(BaseModel):
    """
    Compatibility between two profiles.

    `score` is derived from `factors` on every read, so replacing the factor list
    is the only way to change it.
    """

    factors: list[CompatibilityFactor] = Field(default_factory=list)

    @computed_field
    @property
    def score(self) -> int:
        total = sum(f.score * f.weight for f in self.factors)
        return max(0, min(100, round_half_up(total)))

    def factor(self, name: str) -> CompatibilityFactor | None:
        return next((f for f in self.factors if f.factor == name), None)


class Message(BaseModel):
    id: str = Field(default_factory=new_id)
    sender: str
    content: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    message_type: MessageType = "text"
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Block(BaseModel):
    from_user: str
    to_profile: str
    reason: BlockReason = "other"
    blocked_at: datetime = Field(default_factory=utcnow)


class MatchMetadata(BaseModel):
    match_quality: Literal["high", "medium", "low"] = "medium"
    mutual_interests: list[str] = Field(default_factory=list)
    common_location: bool = False
    age_difference: int | None = None
    distance: float | None = None


class Match(BaseModel):
    """A relationship between an account and a profile, stored in the `matches` collection."""

    id: str = Field(default_factory=new_id)
    users: list[str]
    profiles: list[str]
    status: MatchStatus = "pending"
    match_type: MatchType
    matched_at: datetime = Field(default_factory=utcnow)
    last_interaction: datetime = Field(default_factory=utcnow)
    interaction_count: int = 0
    messages: list[Message] = Field(default_factory=list)
    blocks: list[Block] = Field(default_factory=list)
    compatibility: Compatibility = Field(default_factory=Compatibility)
    metadata: MatchMetadata = Field(default_factory=MatchMetadata)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 0

    @property
    def unread_count(self) -> int:
        return sum(1 for m in self.messages if not m.is_read)

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    @property
    def match_duration(self) -> int:
        """Days since the match was made."""
        return (utcnow() - self.matched_at).days

    def set_compatibility(self, compatibility: Compatibility) -> None:
        self.compatibility = compatibility
        score = compatibility.score
        if score >= QUALITY_HIGH_MIN_SCORE:
            self.metadata.match_quality = "high"
        elif score >= QUALITY_MEDIUM_MIN_SCORE:
            self.metadata.match_quality = "medium"
        else:
            self.metadata.match_quality = "low"

    def _touch(self) -> None:
        now = utcnow()
        self.last_interaction = now
        self.interaction_count = len(self.messages)
        self.updated_at = now

    def add_message(self, sender: str, content: str, message_type: MessageType = "text") -> Message:
        message = Message(sender=sender, content=content, message_type=message_type)
        self.messages.append(message)
        self._touch()
        return message

    def mark_as_read(self, user_id: str) -> int:
        """Mark messages from the other side as read. Returns how many changed."""
        now = utcnow()
        changed = 0
        for message in self.messages:
            if message.sender != user_id and not message.is_read:
                message.is_read = True
                message.read_at = now
                changed += 1
        if changed:
            self._touch()
        return changed

    def public(self) -> dict:
        data = self.model_dump(mode="json", exclude={"version"})
        data["unread_count"] = self.unread_count
        data["match_duration"] = self.match_duration
        last = self.last_message
        data["last_message"] = last.model_dump(mode="json") if last else None
        return data
