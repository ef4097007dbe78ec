"""Ranked XP view over all user profiles."""

from collections.abc import Callable, Iterable, Iterator

from feynlearn.models.leaderboard import LeaderboardEntry
from feynlearn.models.user_profile import UserProfile


def project(profiles: Iterable[UserProfile], limit: int) -> Iterator[LeaderboardEntry]:
    """Yield the top ``limit`` profiles by XP, ranked from 1.

    The sort is stable, so tied profiles keep their input order.
    """
    if limit <= 0:
        return
    ranked = sorted(profiles, key=lambda p: p.xp, reverse=True)
    for rank, profile in enumerate(ranked[:limit], start=1):
        yield LeaderboardEntry(
            uid=profile.uid,
            name=profile.name or "Anonymous",
            avatar=profile.avatar,
            xp=profile.xp,
            level=profile.level,
            streak=profile.streak,
            rank=rank,
        )


class Leaderboard:
    """Restartable leaderboard: each iteration re-reads ``source``.

    No caching; every pass loads every profile, which is fine for a small
    user base.
    """

    def __init__(self, source: Callable[[], Iterable[UserProfile]], limit: int):
        self.source = source
        self.limit = limit

    def __iter__(self) -> Iterator[LeaderboardEntry]:
        return project(self.source(), self.limit)
