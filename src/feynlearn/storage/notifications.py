"""Notification persistence under ``users/<uid>/notifications``."""

from pathlib import Path

import structlog

from feynlearn.errors import NotFoundError
from feynlearn.models.notification import Notification, NotificationDraft
from feynlearn.storage import files

logger = structlog.get_logger()

COLLECTION = "notifications"


def get_notification_path(uid: str, notification_id: str) -> Path:
    return (
        files.collection_dir(uid, COLLECTION)
        / f"{files.validate_id(notification_id, 'notification id')}.json"
    )


def _all(uid: str) -> list[Notification]:
    notifications = [
        Notification(**d) for d in files.iter_json(files.collection_dir(uid, COLLECTION))
    ]
    notifications.sort(key=lambda n: n.created_at, reverse=True)
    return notifications


def _save(notification: Notification) -> None:
    files.write_json(
        get_notification_path(notification.uid, notification.id),
        notification.model_dump(mode="json"),
    )


def create_notification(uid: str, draft: NotificationDraft) -> Notification:
    notification = Notification(uid=uid, **draft.model_dump())
    _save(notification)
    logger.info(
        "notification_created",
        uid=uid,
        notification_id=notification.id,
        type=notification.type,
    )
    return notification


def list_notifications(uid: str, limit: int = 20) -> list[Notification]:
    """Newest notifications first."""
    return _all(uid)[:limit]


def unread_count(uid: str) -> int:
    return sum(1 for n in _all(uid) if not n.read)


def mark_read(uid: str, notification_id: str) -> Notification:
    path = get_notification_path(uid, notification_id)
    with files.user_lock(uid):
        data = files.read_json(path)
        if data is None:
            raise NotFoundError("Notification not found")
        notification = Notification(**data)
        if not notification.read:
            notification.read = True
            _save(notification)
    return notification


def mark_all_read(uid: str) -> int:
    """Mark every unread notification read; returns how many changed."""
    changed = 0
    with files.user_lock(uid):
        for notification in _all(uid):
            if notification.read:
                continue
            notification.read = True
            _save(notification)
            changed += 1
    return changed


def delete_notification(uid: str, notification_id: str) -> None:
    path = get_notification_path(uid, notification_id)
    with files.user_lock(uid):
        deleted = files.delete_json(path)
    if not deleted:
        raise NotFoundError("Notification not found")
