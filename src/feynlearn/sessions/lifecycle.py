"""Session state machine.

``in-progress`` is the only non-terminal state. Every transition except
``create`` requires it and raises :class:`InvalidStateTransition` otherwise,
which also makes ``complete`` a compare-and-swap on the status.
"""

from datetime import datetime
from typing import Any

from pydantic import ValidationError

from feynlearn.errors import InvalidStateTransition, PreconditionError
from feynlearn.models.common import utcnow
from feynlearn.models.session import (
    PATCHABLE_SESSION_FIELDS,
    ChatMessage,
    Session,
    SessionStatus,
)


def _require_in_progress(session: Session, action: str) -> None:
    if session.status.is_terminal:
        raise InvalidStateTransition(session.id, session.status, action)


def create(uid: str, topic: str, subject: str, content: str = "") -> Session:
    if not topic or not subject:
        raise PreconditionError("Topic and subject are required")
    return Session(uid=uid, topic=topic, subject=subject, content=content)


def append_message(session: Session, message: ChatMessage) -> Session:
    _require_in_progress(session, "append a message to")
    session.messages.append(message)
    return session


def patch(session: Session, fields: dict[str, Any]) -> Session:
    """Merge whitelisted fields, last write wins."""
    _require_in_progress(session, "update")
    unknown = set(fields) - PATCHABLE_SESSION_FIELDS
    if unknown:
        raise PreconditionError(f"Fields cannot be patched: {', '.join(sorted(unknown))}")
    try:
        merged = Session.model_validate({**session.model_dump(), **fields})
    except ValidationError as exc:
        raise PreconditionError(f"Invalid session fields: {exc.error_count()} error(s)") from exc
    for key in fields:
        setattr(session, key, getattr(merged, key))
    return session


def complete(session: Session, score: int, xp_earned: int, now: datetime | None = None) -> Session:
    _require_in_progress(session, "complete")
    session.status = SessionStatus.COMPLETED
    session.score = score
    session.xp_earned = xp_earned
    session.completed_at = now or utcnow()
    return session


def abandon(session: Session) -> Session:
    _require_in_progress(session, "abandon")
    session.status = SessionStatus.ABANDONED
    return session
