"""User profile model: identity, progression counters and settings."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from feynlearn.models.common import utcnow


class Persona(StrEnum):
    """AI student personalities a learner can teach."""

    CURIOUS = "curious"
    SKEPTICAL = "skeptical"
    DEVIL = "devil"
    CHALLENGING = "challenging"
    SUPPORTIVE = "supportive"


class UserPreferences(BaseModel):
    default_persona: Persona = Persona.CURIOUS
    questions_per_session: int = Field(default=7, ge=1)
    auto_play_next: bool = True
    show_hints: bool = True
    dark_mode: bool = True
    language: str = "en"


class NotificationSettings(BaseModel):
    email: bool = True
    push: bool = True
    review_reminders: bool = True
    streak_reminders: bool = True
    weekly_digest: bool = False


class UserProfile(BaseModel):
    """Per-user document. ``level`` always equals ``xp // 500 + 1``."""

    uid: str
    email: str = ""
    name: str = "User"
    avatar: str | None = None
    bio: str = ""
    xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    streak: int = Field(default=0, ge=0)
    last_active_date: datetime | None = Field(default_factory=utcnow)
    total_sessions: int = Field(default=0, ge=0)
    total_points: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


# Fields a user may edit directly; progression counters are engine-owned.
EDITABLE_PROFILE_FIELDS = frozenset({"name", "avatar", "bio"})
