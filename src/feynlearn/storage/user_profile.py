"""User profile persistence."""

from collections.abc import Iterator
from pathlib import Path

import structlog
from pydantic import ValidationError

from feynlearn.errors import UpstreamError
from feynlearn.models.common import utcnow
from feynlearn.models.user_profile import UserProfile
from feynlearn.storage import files

logger = structlog.get_logger()

PROFILE_FILENAME = "profile.json"


def get_profile_path(uid: str) -> Path:
    return files.user_dir(uid) / PROFILE_FILENAME


def load_profile(uid: str) -> UserProfile | None:
    data = files.read_json(get_profile_path(uid))
    if data is None:
        return None
    return UserProfile(**data)


def save_profile(profile: UserProfile) -> None:
    profile.updated_at = utcnow()
    files.write_json(get_profile_path(profile.uid), profile.model_dump(mode="json"))


def iter_profiles() -> Iterator[UserProfile]:
    """Every stored profile, in uid order. Unreadable profiles are skipped."""
    for user_path in sorted(p for p in files.users_dir().iterdir() if p.is_dir()):
        path = user_path / PROFILE_FILENAME
        try:
            data = files.read_json(path)
            if data is None:
                continue
            profile = UserProfile(**data)
        except (UpstreamError, ValidationError):
            logger.warning("profile_parse_error", path=str(path))
            continue
        yield profile
