"""Turn progression events into stored notifications.

Writes here never fail the caller: a notification that cannot be stored is
logged and dropped, and the progression update that triggered it stands.
"""

from collections.abc import Callable, Iterable

import structlog

from feynlearn.models.notification import NotificationDraft, NotificationType
from feynlearn.progression.events import (
    LevelUp,
    ProgressionEvent,
    SessionMilestone,
    StreakLost,
    StreakMilestone,
    XpMilestone,
)
from feynlearn.progression.milestones import (
    SESSION_MILESTONES,
    STREAK_MILESTONES,
    find_milestone,
)
from feynlearn.storage import notifications as notification_store

logger = structlog.get_logger()

DASHBOARD_URL = "/dashboard"

WELCOME = NotificationDraft(
    type=NotificationType.SYSTEM,
    title="👋 Welcome to FeynLearn!",
    message=(
        "Start your learning journey by creating your first study session. "
        "We're excited to have you!"
    ),
    action_url="/upload",
)


def _session_milestone(event: SessionMilestone) -> NotificationDraft:
    milestone = find_milestone(SESSION_MILESTONES, event.sessions)
    if milestone is None:
        raise ValueError(f"No session milestone for {event.sessions}")
    return NotificationDraft(
        type=NotificationType.ACHIEVEMENT,
        title=milestone.title,
        message=milestone.message,
        action_url=DASHBOARD_URL,
    )


def _level_up(event: LevelUp) -> NotificationDraft:
    return NotificationDraft(
        type=NotificationType.ACHIEVEMENT,
        title=f"🎮 Level {event.level} Reached!",
        message=(
            f"Congratulations! You've leveled up to Level {event.level}. "
            "Keep learning to reach even higher!"
        ),
        action_url=DASHBOARD_URL,
    )


def _xp_milestone(event: XpMilestone) -> NotificationDraft:
    return NotificationDraft(
        type=NotificationType.ACHIEVEMENT,
        title=f"💰 {event.threshold} XP Earned!",
        message=f"You've accumulated {event.threshold} XP! Your hard work is paying off.",
        action_url=DASHBOARD_URL,
    )


def _streak_milestone(event: StreakMilestone) -> NotificationDraft:
    milestone = find_milestone(STREAK_MILESTONES, event.streak)
    if milestone is None:
        raise ValueError(f"No streak milestone for {event.streak}")
    return NotificationDraft(
        type=NotificationType.STREAK,
        title=milestone.title,
        message=milestone.message,
        action_url=DASHBOARD_URL,
    )


def _streak_lost(event: StreakLost) -> NotificationDraft:
    return NotificationDraft(
        type=NotificationType.STREAK,
        title="😢 Streak Lost",
        message=(
            f"Your {event.previous_streak} day streak has been reset. "
            "Don't worry, start fresh today!"
        ),
        action_url=DASHBOARD_URL,
    )


_RENDERERS: dict[type, Callable[..., NotificationDraft]] = {
    SessionMilestone: _session_milestone,
    LevelUp: _level_up,
    XpMilestone: _xp_milestone,
    StreakMilestone: _streak_milestone,
    StreakLost: _streak_lost,
}


def render(event: ProgressionEvent) -> NotificationDraft:
    """Notification content for one progression event."""
    return _RENDERERS[type(event)](event)


def emit(uid: str, events: Iterable[ProgressionEvent]) -> int:
    """Store one notification per event. Returns how many were written."""
    written = 0
    for event in events:
        try:
            notification_store.create_notification(uid, render(event))
        except Exception:
            logger.exception("notification_emit_failed", uid=uid, kind=event.kind)
            continue
        written += 1
    return written


def emit_welcome(uid: str) -> bool:
    try:
        notification_store.create_notification(uid, WELCOME)
    except Exception:
        logger.exception("welcome_notification_failed", uid=uid)
        return False
    return True
