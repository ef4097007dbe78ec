"""JSON document store on the local filesystem (fcntl.flock + atomic write).

Layout::

    <data_dir>/users/<uid>/profile.json
    <data_dir>/users/<uid>/sessions/<session_id>.json
    <data_dir>/users/<uid>/notifications/<notification_id>.json
    <data_dir>/users/<uid>/.lock
"""

import fcntl
import json
import os
import re
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

from feynlearn.config import get_settings
from feynlearn.errors import PreconditionError, UpstreamError

logger = structlog.get_logger()

LOCK_FILENAME = ".lock"
_SAFE_ID = re.compile(r"^[A-Za-z0-9_.@+-]{1,128}$")


def validate_id(value: str, what: str = "id") -> str:
    """Reject ids that are not safe to use as a single path component."""
    if not _SAFE_ID.match(value) or value in {".", ".."}:
        raise PreconditionError(f"Invalid {what} format")
    return value


def get_data_dir() -> Path:
    return get_settings().data_dir


def users_dir() -> Path:
    d = get_data_dir() / "users"
    d.mkdir(parents=True, exist_ok=True)
    return d


def user_dir(uid: str) -> Path:
    d = users_dir() / validate_id(uid, "user id")
    d.mkdir(parents=True, exist_ok=True)
    return d


def collection_dir(uid: str, collection: str) -> Path:
    d = user_dir(uid) / collection
    d.mkdir(parents=True, exist_ok=True)
    return d


@contextmanager
def user_lock(uid: str) -> Iterator[None]:
    """Hold the exclusive per-user lock.

    Every read-modify-write of a user's profile, sessions or notifications
    runs inside this lock, so concurrent requests for one user are applied one
    after another.
    Not reentrant.
    """
    lock_path = user_dir(uid) / LOCK_FILENAME
    with open(lock_path, "w") as lock_file:
        fcntl.flock(lock_file, fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file, fcntl.LOCK_UN)


def read_json(path: Path) -> dict | None:
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            data = json.load(f)
            fcntl.flock(f, fcntl.LOCK_UN)
    except (OSError, json.JSONDecodeError) as exc:
        logger.exception("document_read_failed", path=str(path))
        raise UpstreamError("Failed to read stored document") from exc
    return data


def write_json(path: Path, data: dict) -> None:
    try:
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, suffix=".tmp", encoding="utf-8"
        ) as tmp:
            json.dump(data, tmp, default=str)
        os.replace(tmp.name, path)
    except OSError as exc:
        logger.exception("document_write_failed", path=str(path))
        raise UpstreamError("Failed to write document") from exc


def delete_json(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def iter_json(directory: Path) -> Iterator[dict]:
    """Yield every document in a directory, skipping unreadable ones."""
    for path in sorted(directory.glob("*.json")):
        try:
            data = read_json(path)
        except UpstreamError:
            logger.warning("document_parse_error", path=str(path))
            continue
        if data is not None:
            yield data
