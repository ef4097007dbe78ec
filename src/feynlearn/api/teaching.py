"""LLM-backed teaching routes: the AI student chat and study material."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from feynlearn.api.deps import Identity, current_user, get_llm_client
from feynlearn.llm.client import LLMClient
from feynlearn.llm.student import StudentChat, StudentTurn
from feynlearn.llm.study_material import (
    ExtractedTopics,
    StudyNotes,
    extract_topics,
    generate_notes,
)
from feynlearn.models.session import ChatMessage

router = APIRouter(prefix="/api")


class ChatRequest(BaseModel):
    topic: str = ""
    persona: str | None = None
    messages: list[ChatMessage] = Field(default_factory=list)


class TextRequest(BaseModel):
    text: str = ""
    title: str = "Study Material"


@router.post("/session/chat")
async def session_chat(
    body: ChatRequest,
    user: Identity = Depends(current_user),
    client: LLMClient = Depends(get_llm_client),
) -> StudentTurn:
    """One AI-student turn: reply to the latest explanation and score it (1-20)."""
    return await StudentChat(client).reply(body.messages, body.topic, body.persona)


@router.post("/topics/extract")
async def topics_extract(
    body: TextRequest,
    user: Identity = Depends(current_user),
    client: LLMClient = Depends(get_llm_client),
) -> ExtractedTopics:
    return await extract_topics(client, body.text)


@router.post("/notes")
async def notes(
    body: TextRequest,
    user: Identity = Depends(current_user),
    client: LLMClient = Depends(get_llm_client),
) -> dict[str, StudyNotes]:
    return {"notes": await generate_notes(client, body.text, body.title)}
