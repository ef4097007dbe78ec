"""Events produced by the progression engine.

Each event is a small pydantic model tagged by ``kind`` so the notification
emitter can dispatch on type without the engine knowing about notification
text.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class SessionMilestone(BaseModel):
    kind: Literal["session_milestone"] = "session_milestone"
    sessions: int


class LevelUp(BaseModel):
    kind: Literal["level_up"] = "level_up"
    level: int


class XpMilestone(BaseModel):
    kind: Literal["xp_milestone"] = "xp_milestone"
    threshold: int


class StreakMilestone(BaseModel):
    kind: Literal["streak_milestone"] = "streak_milestone"
    streak: int


class StreakLost(BaseModel):
    kind: Literal["streak_lost"] = "streak_lost"
    previous_streak: int


ProgressionEvent = Annotated[
    SessionMilestone | LevelUp | XpMilestone | StreakMilestone | StreakLost,
    Field(discriminator="kind"),
]
