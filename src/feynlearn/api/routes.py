"""REST API routes for profiles, sessions, notifications and the leaderboard.

Handlers that touch the store are plain functions: the per-user lock blocks,
so FastAPI runs them in its threadpool.
"""

from typing import Any

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel, Field

from feynlearn.api.deps import Identity, current_user
from feynlearn.config import get_settings
from feynlearn.errors import FeynLearnError, PreconditionError
from feynlearn.leaderboard.projector import Leaderboard
from feynlearn.models.leaderboard import LeaderboardEntry
from feynlearn.models.notification import Notification, NotificationDraft
from feynlearn.models.session import ChatMessage, Session
from feynlearn.models.user_profile import UserProfile
from feynlearn.notifications import emitter
from feynlearn.sessions import manager
from feynlearn.storage import notifications as notification_store
from feynlearn.storage.user_profile import iter_profiles

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class ProfileUpdate(BaseModel):
    name: str | None = None
    avatar: str | None = None
    bio: str | None = None
    preferences: dict[str, Any] | None = None
    notifications: dict[str, Any] | None = None
    recalculate: bool = False


class SessionCreate(BaseModel):
    topic: str = ""
    subject: str = ""
    content: str = ""


class SessionUpdate(BaseModel):
    complete: bool = False
    abandon: bool = False
    score: int = 0
    xp_earned: int = 0
    message: ChatMessage | None = None
    fields: dict[str, Any] = Field(default_factory=dict)


class NotificationUpdate(BaseModel):
    notification_id: str | None = None
    mark_all: bool = False


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


# ---- profile ----------------------------------------------------------------

@router.get("/user/profile")
def get_profile(
    background_tasks: BackgroundTasks,
    user: Identity = Depends(current_user),
) -> UserProfile:
    """Fetch the caller's profile, provisioning it on first access.

    Existing profiles get the daily streak check; a failing check is logged and
    the stored profile is returned unchanged.
    """
    profile, created = manager.get_or_create_profile(user.uid, user.email, user.name, user.avatar)
    if created:
        background_tasks.add_task(emitter.emit_welcome, user.uid)
        return profile

    try:
        profile, events = manager.check_in_daily(user.uid)
    except FeynLearnError:
        logger.exception("daily_check_failed", uid=user.uid)
        return profile
    background_tasks.add_task(emitter.emit, user.uid, events)
    return profile


@router.patch("/user/profile")
def patch_profile(
    body: ProfileUpdate,
    user: Identity = Depends(current_user),
) -> UserProfile:
    if body.recalculate:
        return manager.recalculate_stats(user.uid)
    fields = body.model_dump(include={"name", "avatar", "bio"}, exclude_none=True)
    return manager.update_profile(
        user.uid,
        fields=fields,
        preferences=body.preferences,
        notification_settings=body.notifications,
    )


@router.post("/user/checkin")
def check_in(
    background_tasks: BackgroundTasks,
    user: Identity = Depends(current_user),
) -> dict:
    profile, events = manager.check_in_daily(user.uid)
    background_tasks.add_task(emitter.emit, user.uid, events)
    return {"streak": profile.streak}


# ---- sessions ---------------------------------------------------------------

@router.get("/user/sessions")
def list_sessions(
    limit: int | None = Query(default=None, ge=1, le=200),
    user: Identity = Depends(current_user),
) -> dict:
    sessions = manager.list_sessions(user.uid, limit or get_settings().sessions_limit)
    return {"sessions": [s.model_dump(mode="json") for s in sessions]}


@router.post("/user/sessions", status_code=201)
def create_session(
    body: SessionCreate,
    user: Identity = Depends(current_user),
) -> dict:
    session = manager.start_session(user.uid, body.topic, body.subject, body.content)
    return {"session_id": session.id}


@router.get("/user/sessions/{session_id}")
def get_session(session_id: str, user: Identity = Depends(current_user)) -> Session:
    return manager.get_session(user.uid, session_id)


@router.patch("/user/sessions/{session_id}")
def update_session(
    session_id: str,
    body: SessionUpdate,
    background_tasks: BackgroundTasks,
    user: Identity = Depends(current_user),
) -> dict:
    """Complete, abandon, append a message to, or patch a session."""
    if body.complete:
        result = manager.complete_session(user.uid, session_id, body.score, body.xp_earned)
        background_tasks.add_task(emitter.emit, user.uid, result.events)
        return {
            "success": True,
            "xp": result.profile.xp,
            "level": result.profile.level,
            "streak": result.profile.streak,
            "events": [e.model_dump() for e in result.events],
        }
    if body.abandon:
        manager.abandon_session(user.uid, session_id)
        return {"success": True}
    if body.message is not None:
        manager.append_message(user.uid, session_id, body.message)
        return {"success": True}
    if not body.fields:
        raise PreconditionError("Nothing to update")
    manager.patch_session(user.uid, session_id, body.fields)
    return {"success": True}


# ---- notifications ----------------------------------------------------------

@router.get("/user/notifications")
def list_notifications(
    limit: int | None = Query(default=None, ge=1, le=200),
    count_only: bool = False,
    user: Identity = Depends(current_user),
) -> dict:
    unread = notification_store.unread_count(user.uid)
    if count_only:
        return {"unread_count": unread}
    notifications = notification_store.list_notifications(
        user.uid, limit or get_settings().notifications_limit
    )
    return {
        "notifications": [n.model_dump(mode="json") for n in notifications],
        "unread_count": unread,
    }


@router.post("/user/notifications", status_code=201)
def create_notification(
    body: NotificationDraft,
    user: Identity = Depends(current_user),
) -> Notification:
    if not body.title or not body.message:
        raise PreconditionError("Type, title, and message are required")
    return notification_store.create_notification(user.uid, body)


@router.patch("/user/notifications")
def mark_notifications(
    body: NotificationUpdate,
    user: Identity = Depends(current_user),
) -> dict:
    if body.mark_all:
        changed = notification_store.mark_all_read(user.uid)
        return {"success": True, "updated": changed}
    if body.notification_id:
        notification_store.mark_read(user.uid, body.notification_id)
        return {"success": True, "updated": 1}
    raise PreconditionError("Provide notification_id or set mark_all to true")


@router.delete("/user/notifications")
def delete_notification(
    notification_id: str | None = Query(default=None, alias="id"),
    user: Identity = Depends(current_user),
) -> dict:
    if not notification_id:
        raise PreconditionError("Notification ID is required")
    notification_store.delete_notification(user.uid, notification_id)
    return {"success": True}


# ---- leaderboard ------------------------------------------------------------

@router.get("/leaderboard")
def get_leaderboard(
    limit: int | None = Query(default=None, ge=1, le=500),
) -> dict[str, list[LeaderboardEntry]]:
    board = Leaderboard(iter_profiles, limit or get_settings().leaderboard_limit)
    return {"leaderboard": list(board)}
