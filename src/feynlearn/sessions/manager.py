"""Store-backed session and progression operations.

Each operation that reads and rewrites a user's documents runs inside
``files.user_lock(uid)``; that lock is the per-user transaction boundary for
the XP, level, streak and session counters. Notification records are not
written here: callers hand the returned events to the notification emitter
once the lock has been released.
"""

from datetime import datetime, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

import structlog
from pydantic import BaseModel, ValidationError

from feynlearn.config import get_settings
from feynlearn.errors import NotFoundError, PreconditionError
from feynlearn.models.common import utcnow
from feynlearn.models.session import ChatMessage, Session
from feynlearn.models.user_profile import (
    EDITABLE_PROFILE_FIELDS,
    NotificationSettings,
    UserPreferences,
    UserProfile,
)
from feynlearn.progression import engine
from feynlearn.progression.events import ProgressionEvent
from feynlearn.sessions import lifecycle
from feynlearn.storage import files
from feynlearn.storage import sessions as session_store
from feynlearn.storage import user_profile as profile_store

logger = structlog.get_logger()

MAX_SCORE = 100


class CompletionResult(BaseModel):
    profile: UserProfile
    session: Session
    events: list[ProgressionEvent]


def day_boundary_tz() -> tzinfo:
    return ZoneInfo(get_settings().day_boundary_timezone)


def _require_profile(uid: str) -> UserProfile:
    profile = profile_store.load_profile(uid)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


def _require_session(uid: str, session_id: str) -> Session:
    session = session_store.load_session(uid, session_id)
    if session is None:
        raise NotFoundError("Session not found")
    return session


def validate_completion(score: int, xp_earned: int) -> None:
    if not 0 <= score <= MAX_SCORE:
        raise PreconditionError(f"Score must be between 0 and {MAX_SCORE}, got {score}")
    if xp_earned < 0:
        raise PreconditionError(f"XP earned must be non-negative, got {xp_earned}")


# ---- profiles ---------------------------------------------------------------

def get_or_create_profile(
    uid: str,
    email: str = "",
    name: str = "User",
    avatar: str | None = None,
) -> tuple[UserProfile, bool]:
    """Load the profile, provisioning a fresh one on first access."""
    with files.user_lock(uid):
        profile = profile_store.load_profile(uid)
        if profile is not None:
            return profile, False
        profile = UserProfile(uid=uid, email=email, name=name or "User", avatar=avatar)
        profile_store.save_profile(profile)
    logger.info("profile_created", uid=uid)
    return profile, True


def update_profile(
    uid: str,
    fields: dict[str, Any] | None = None,
    preferences: dict[str, Any] | None = None,
    notification_settings: dict[str, Any] | None = None,
) -> UserProfile:
    """Apply direct user edits. Progression counters are not editable."""
    fields = fields or {}
    forbidden = set(fields) - EDITABLE_PROFILE_FIELDS
    if forbidden:
        raise PreconditionError(f"Fields cannot be edited: {', '.join(sorted(forbidden))}")
    with files.user_lock(uid):
        profile = _require_profile(uid)
        update: dict[str, Any] = dict(fields)
        try:
            if preferences:
                update["preferences"] = UserPreferences(
                    **{**profile.preferences.model_dump(), **preferences}
                )
            if notification_settings:
                update["notifications"] = NotificationSettings(
                    **{**profile.notifications.model_dump(), **notification_settings}
                )
            profile = UserProfile.model_validate({**profile.model_dump(), **update})
        except ValidationError as exc:
            raise PreconditionError(f"Invalid profile update: {exc.error_count()} error(s)") from exc
        profile_store.save_profile(profile)
    return profile


def check_in_daily(
    uid: str, now: datetime | None = None
) -> tuple[UserProfile, list[ProgressionEvent]]:
    """Daily activity check: update streak and last active date.

    Returns the saved profile and any streak events.
    """
    now = now or utcnow()
    with files.user_lock(uid):
        profile = _require_profile(uid)
        streak, events = engine.apply_daily_check(profile, now, day_boundary_tz())
        profile.streak = streak
        profile.last_active_date = now
        profile_store.save_profile(profile)
    logger.info("daily_check_in", uid=uid, streak=streak, events=len(events))
    return profile, events


def recalculate_stats(uid: str) -> UserProfile:
    """Rebuild XP, level and totals from completed sessions. Emits no events."""
    with files.user_lock(uid):
        profile = _require_profile(uid)
        totals = engine.recalculate(session_store.completed_sessions(uid))
        profile = profile.model_copy(update=totals.model_dump())
        profile_store.save_profile(profile)
    logger.info("stats_recalculated", uid=uid, xp=profile.xp, total_sessions=profile.total_sessions)
    return profile


# ---- sessions ---------------------------------------------------------------

def start_session(uid: str, topic: str, subject: str, content: str = "") -> Session:
    session = lifecycle.create(uid, topic, subject, content)
    with files.user_lock(uid):
        session_store.save_session(session)
    logger.info("session_started", uid=uid, session_id=session.id, topic=topic)
    return session


def get_session(uid: str, session_id: str) -> Session:
    return _require_session(uid, session_id)


def list_sessions(uid: str, limit: int) -> list[Session]:
    return session_store.list_sessions(uid, limit)


def append_message(uid: str, session_id: str, message: ChatMessage) -> Session:
    with files.user_lock(uid):
        session = lifecycle.append_message(_require_session(uid, session_id), message)
        session_store.save_session(session)
    return session


def patch_session(uid: str, session_id: str, fields: dict[str, Any]) -> Session:
    with files.user_lock(uid):
        session = lifecycle.patch(_require_session(uid, session_id), fields)
        session_store.save_session(session)
    return session


def abandon_session(uid: str, session_id: str) -> Session:
    with files.user_lock(uid):
        session = lifecycle.abandon(_require_session(uid, session_id))
        session_store.save_session(session)
    logger.info("session_abandoned", uid=uid, session_id=session_id)
    return session


def complete_session(
    uid: str,
    session_id: str,
    score: int,
    xp_earned: int,
    now: datetime | None = None,
) -> CompletionResult:
    """Complete an in-progress session and apply its progression.

    The status check, the XP/level/total updates and the streak check all
    happen under the user's lock, so a session can only ever be counted once
    and concurrent completions for one user cannot lose increments. The
    session document is written before the profile: if the profile write
    fails, :func:`recalculate_stats` repairs the totals.

    Raises:
        PreconditionError: score outside [0, 100] or negative XP.
        NotFoundError: unknown session or profile.
        InvalidStateTransition: the session is already completed or abandoned.
    """
    validate_completion(score, xp_earned)
    now = now or utcnow()
    with files.user_lock(uid):
        session = _require_session(uid, session_id)
        profile = _require_profile(uid)
        lifecycle.complete(session, score, xp_earned, now)

        profile, events = engine.apply_session_completion(profile, score, xp_earned)
        streak, streak_events = engine.apply_daily_check(profile, now, day_boundary_tz())
        profile.streak = streak
        profile.last_active_date = now

        session_store.save_session(session)
        profile_store.save_profile(profile)

    events = events + streak_events
    logger.info(
        "session_completed",
        uid=uid,
        session_id=session_id,
        score=score,
        xp_earned=xp_earned,
        xp=profile.xp,
        level=profile.level,
        streak=streak,
        events=[e.kind for e in events],
    )
    return CompletionResult(profile=profile, session=session, events=events)
