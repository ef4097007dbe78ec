"""Session persistence under ``users/<uid>/sessions``."""

from pathlib import Path

from feynlearn.models.session import Session, SessionStatus
from feynlearn.storage import files

COLLECTION = "sessions"


def get_session_path(uid: str, session_id: str) -> Path:
    return files.collection_dir(uid, COLLECTION) / f"{files.validate_id(session_id, 'session id')}.json"


def load_session(uid: str, session_id: str) -> Session | None:
    data = files.read_json(get_session_path(uid, session_id))
    if data is None:
        return None
    return Session(**data)


def save_session(session: Session) -> None:
    files.write_json(get_session_path(session.uid, session.id), session.model_dump(mode="json"))


def list_sessions(uid: str, limit: int = 50) -> list[Session]:
    """Newest sessions first."""
    sessions = [Session(**d) for d in files.iter_json(files.collection_dir(uid, COLLECTION))]
    sessions.sort(key=lambda s: s.created_at, reverse=True)
    return sessions[:limit]


def completed_sessions(uid: str) -> list[Session]:
    """Completed sessions, oldest first."""
    sessions = [
        Session(**d)
        for d in files.iter_json(files.collection_dir(uid, COLLECTION))
        if d.get("status") == SessionStatus.COMPLETED
    ]
    sessions.sort(key=lambda s: s.completed_at or s.created_at)
    return sessions
