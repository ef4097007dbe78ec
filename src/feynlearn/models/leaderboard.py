"""Leaderboard projection model (derived, never persisted)."""

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    uid: str
    name: str
    avatar: str | None = None
    xp: int
    level: int
    streak: int
    rank: int
