"""Teaching session data models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from feynlearn.models.common import new_id, utcnow


class SessionStatus(StrEnum):
    """Session lifecycle states."""

    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.IN_PROGRESS


class MessageRole(StrEnum):
    USER = "user"
    AI = "ai"


class ChatMessage(BaseModel):
    """A single turn in the teaching conversation."""

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class Session(BaseModel):
    """One "teach the AI" session owned by a user."""

    id: str = Field(default_factory=new_id)
    uid: str
    topic: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    content: str = ""  # source snippet, only used as LLM context
    score: int = Field(default=0, ge=0)
    duration: int = Field(default=0, ge=0)  # minutes
    questions_asked: int = Field(default=0, ge=0)
    questions_answered: int = Field(default=0, ge=0)
    xp_earned: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    status: SessionStatus = SessionStatus.IN_PROGRESS
    messages: list[ChatMessage] = Field(default_factory=list)


# Fields accepted by a session patch while it is in progress.
PATCHABLE_SESSION_FIELDS = frozenset({
    "topic",
    "subject",
    "content",
    "duration",
    "questions_asked",
    "questions_answered",
})
