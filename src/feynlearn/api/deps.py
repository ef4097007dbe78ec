"""Request dependencies: caller identity and the LLM client."""

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel

from feynlearn.config import Settings, get_settings
from feynlearn.errors import PreconditionError
from feynlearn.llm.client import LLMClient
from feynlearn.storage.files import validate_id


class Identity(BaseModel):
    """Authenticated caller as supplied by the identity provider."""

    uid: str
    email: str = ""
    name: str = "User"
    avatar: str | None = None


async def current_user(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    x_user_avatar: str | None = Header(default=None),
) -> Identity:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        uid = validate_id(x_user_id, "user id")
    except PreconditionError:
        raise HTTPException(status_code=401, detail="Unauthorized") from None
    return Identity(
        uid=uid,
        email=x_user_email or "",
        name=x_user_name or "User",
        avatar=x_user_avatar,
    )


def get_llm_client(settings: Settings = Depends(get_settings)) -> LLMClient:
    return LLMClient(api_key=settings.openai_api_key, model=settings.chat_model)
