"""XP, level and streak bookkeeping.

All functions here are pure: they take the current profile state plus one
triggering event and return the next state together with the milestone events
it produced. Persisting the result and turning events into notifications is the
caller's job.
"""

from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo

from pydantic import BaseModel

from feynlearn.models.session import Session, SessionStatus
from feynlearn.models.user_profile import UserProfile
from feynlearn.progression.events import (
    LevelUp,
    ProgressionEvent,
    SessionMilestone,
    StreakLost,
    StreakMilestone,
    XpMilestone,
)
from feynlearn.progression.milestones import (
    SESSION_MILESTONE_COUNTS,
    STREAK_MILESTONE_COUNTS,
    XP_MILESTONES,
)

XP_PER_LEVEL = 500
STREAK_LOSS_NOTICE_MIN = 3


class ProfileTotals(BaseModel):
    """Counters rebuilt from a user's completed session history."""

    xp: int = 0
    level: int = 1
    total_points: int = 0
    total_sessions: int = 0


def level_for_xp(xp: int) -> int:
    """Level derived from total XP: one level per 500 XP, starting at 1."""
    return xp // XP_PER_LEVEL + 1


def apply_session_completion(
    profile: UserProfile,
    score: int,
    xp_earned: int,
) -> tuple[UserProfile, list[ProgressionEvent]]:
    """Fold one completed session into the profile counters.

    Args:
        profile: Current stored profile.
        score: Session score, already validated to lie in [0, 100].
        xp_earned: XP awarded for the session, already validated as >= 0.

    Returns:
        The updated profile and the milestone events in emission order:
        session milestone, level up, XP milestone.
    """
    new_xp = profile.xp + xp_earned
    new_level = level_for_xp(new_xp)
    new_total_sessions = profile.total_sessions + 1

    events: list[ProgressionEvent] = []
    # Exact match: a count that is skipped never fires later.
    if new_total_sessions in SESSION_MILESTONE_COUNTS:
        events.append(SessionMilestone(sessions=new_total_sessions))
    if new_level > profile.level:
        events.append(LevelUp(level=new_level))
    for threshold in XP_MILESTONES:
        if profile.xp < threshold <= new_xp:
            events.append(XpMilestone(threshold=threshold))
            break

    updated = profile.model_copy(update={
        "xp": new_xp,
        "level": new_level,
        "total_sessions": new_total_sessions,
        "total_points": profile.total_points + score,
    })
    return updated, events


def _calendar_date(moment: datetime, tz: tzinfo):
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


def apply_daily_check(
    profile: UserProfile,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> tuple[int, list[ProgressionEvent]]:
    """Compute the streak after activity at ``now``.

    Days are compared as calendar dates in ``tz``. Naive datetimes are read as
    UTC. A ``now`` that falls before the last active day is treated as the same
    day.

    Returns:
        The new streak value and any streak events.
    """
    old_streak = profile.streak
    if profile.last_active_date is None:
        return 1, []

    diff_days = (_calendar_date(now, tz) - _calendar_date(profile.last_active_date, tz)).days

    if diff_days <= 0:
        return old_streak, []
    if diff_days == 1:
        new_streak = old_streak + 1
        if new_streak in STREAK_MILESTONE_COUNTS:
            return new_streak, [StreakMilestone(streak=new_streak)]
        return new_streak, []

    events: list[ProgressionEvent] = []
    if old_streak >= STREAK_LOSS_NOTICE_MIN:
        events.append(StreakLost(previous_streak=old_streak))
    return 1, events


def recalculate(sessions: Iterable[Session]) -> ProfileTotals:
    """Rebuild the profile counters from completed sessions. Emits nothing."""
    totals = ProfileTotals()
    for session in sessions:
        if session.status != SessionStatus.COMPLETED:
            continue
        totals.xp += session.xp_earned
        totals.total_points += session.score
        totals.total_sessions += 1
    totals.level = level_for_xp(totals.xp)
    return totals
