"""Static milestone tables consumed by the engine and the notification emitter."""

from pydantic import BaseModel


class Milestone(BaseModel):
    threshold: int
    title: str
    message: str


SESSION_MILESTONES: list[Milestone] = [
    Milestone(
        threshold=1,
        title="🎉 First Session Complete!",
        message="You've completed your first learning session. Great start!",
    ),
    Milestone(
        threshold=5,
        title="🌟 5 Sessions Done!",
        message="You're building a great learning habit. Keep it up!",
    ),
    Milestone(
        threshold=10,
        title="📚 10 Sessions Milestone!",
        message="Double digits! You're becoming a dedicated learner.",
    ),
    Milestone(
        threshold=25,
        title="🏆 25 Sessions!",
        message="Quarter century of sessions! You're on fire!",
    ),
    Milestone(
        threshold=50,
        title="⭐ 50 Sessions!",
        message="Halfway to 100! Your dedication is inspiring.",
    ),
    Milestone(
        threshold=100,
        title="💎 100 Sessions!",
        message="Triple digits! You're a true learning champion!",
    ),
]

STREAK_MILESTONES: list[Milestone] = [
    Milestone(
        threshold=3,
        title="🔥 3 Day Streak!",
        message="You're on fire! 3 days of consistent learning.",
    ),
    Milestone(
        threshold=7,
        title="🔥 1 Week Streak!",
        message="A full week of learning! You're building an amazing habit.",
    ),
    Milestone(
        threshold=14,
        title="🔥 2 Week Streak!",
        message="Two weeks strong! Your dedication is remarkable.",
    ),
    Milestone(
        threshold=21,
        title="🔥 3 Week Streak!",
        message="21 days - they say it takes this long to form a habit!",
    ),
    Milestone(
        threshold=30,
        title="🔥 1 Month Streak!",
        message="An entire month! You're a learning machine!",
    ),
    Milestone(
        threshold=60,
        title="🔥 2 Month Streak!",
        message="60 days of consistency. Absolutely incredible!",
    ),
    Milestone(
        threshold=90,
        title="🔥 3 Month Streak!",
        message="A quarter year of daily learning. You're legendary!",
    ),
    Milestone(
        threshold=365,
        title="🔥 1 Year Streak!",
        message="365 days! You've achieved something truly special.",
    ),
]

# Ordered ascending; only the lowest crossed threshold fires per completion.
XP_MILESTONES: list[int] = [100, 500, 1000, 2500, 5000, 10000]

SESSION_MILESTONE_COUNTS = frozenset(m.threshold for m in SESSION_MILESTONES)
STREAK_MILESTONE_COUNTS = frozenset(m.threshold for m in STREAK_MILESTONES)


def find_milestone(table: list[Milestone], threshold: int) -> Milestone | None:
    for milestone in table:
        if milestone.threshold == threshold:
            return milestone
    return None
