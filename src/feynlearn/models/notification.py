"""Notification records."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from feynlearn.models.common import new_id, utcnow


class NotificationType(StrEnum):
    STREAK = "streak"
    ACHIEVEMENT = "achievement"
    REMINDER = "reminder"
    SYSTEM = "system"


class NotificationDraft(BaseModel):
    """Notification content before it is stored for a user."""

    type: NotificationType
    title: str
    message: str
    action_url: str | None = None


class Notification(NotificationDraft):
    id: str = Field(default_factory=new_id)
    uid: str
    read: bool = False
    created_at: datetime = Field(default_factory=utcnow)
