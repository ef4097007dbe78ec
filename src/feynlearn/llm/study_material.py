"""Topic extraction and study-note generation from plain text."""

from datetime import datetime

import structlog
from pydantic import BaseModel, Field, ValidationError

from feynlearn.errors import PreconditionError, UpstreamError
from feynlearn.llm.client import LLMClient, parse_json_response
from feynlearn.llm.prompts import NOTES_PROMPT, TOPICS_PROMPT
from feynlearn.models.common import utcnow

logger = structlog.get_logger()

MIN_TEXT_LENGTH = 10
TOPIC_PROMPT_CHARS = 5000
SESSION_CONTENT_CHARS = 10000
NOTES_CONTENT_CHARS = 50000
PRESELECTED_TOPICS = 3
DIFFICULTIES = ("easy", "medium", "hard")


class Topic(BaseModel):
    id: str
    name: str
    difficulty: str = "medium"
    selected: bool = False


class ExtractedTopics(BaseModel):
    topics: list[Topic]
    content: str


class KeyConcept(BaseModel):
    term: str
    definition: str


class NoteSection(BaseModel):
    heading: str
    content: str
    key_points: list[str] = Field(default_factory=list)


class Flashcard(BaseModel):
    question: str
    answer: str


class PracticeQuestion(BaseModel):
    question: str
    hint: str = ""


class StudyNotes(BaseModel):
    title: str
    summary: str = ""
    key_concepts: list[KeyConcept] = Field(default_factory=list)
    sections: list[NoteSection] = Field(default_factory=list)
    flashcards: list[Flashcard] = Field(default_factory=list)
    practice_questions: list[PracticeQuestion] = Field(default_factory=list)
    mnemonics: list[str] = Field(default_factory=list)
    real_world_examples: list[str] = Field(default_factory=list)
    original_title: str = ""
    generated_at: datetime = Field(default_factory=utcnow)


async def extract_topics(client: LLMClient, text: str) -> ExtractedTopics:
    """Ask the model for 4-6 learning topics covered by ``text``.

    The first three topics come back pre-selected.
    """
    if not text or len(text.strip()) < MIN_TEXT_LENGTH:
        raise PreconditionError("Content appears to be empty")

    raw = await client.generate(
        TOPICS_PROMPT.format(content=text[:TOPIC_PROMPT_CHARS]),
        temperature=0.4,
        json_mode=True,
    )
    try:
        data = parse_json_response(raw)
        items = data.get("topics", []) if isinstance(data, dict) else data
        topics = [
            Topic(
                id=str(index + 1),
                name=str(item["name"]),
                difficulty=item.get("difficulty") if item.get("difficulty") in DIFFICULTIES else "medium",
                selected=index < PRESELECTED_TOPICS,
            )
            for index, item in enumerate(items)
        ]
    except (ValueError, TypeError, KeyError, AttributeError) as exc:
        logger.warning("topic_extraction_unparseable", response_chars=len(raw))
        raise UpstreamError("Failed to extract topics") from exc

    if not topics:
        raise UpstreamError("No topics were extracted")
    logger.info("topics_extracted", count=len(topics))
    return ExtractedTopics(topics=topics, content=text[:SESSION_CONTENT_CHARS])


async def generate_notes(client: LLMClient, text: str, title: str = "Study Material") -> StudyNotes:
    """Structured study notes (sections, flashcards, practice questions) for ``text``."""
    if not text or not text.strip():
        raise PreconditionError("The content appears to be empty")

    raw = await client.generate(
        NOTES_PROMPT.format(content=text[:NOTES_CONTENT_CHARS]),
        temperature=0.5,
        json_mode=True,
    )
    try:
        data = parse_json_response(raw)
        notes = StudyNotes.model_validate({**data, "original_title": title})
    except (ValueError, TypeError, ValidationError) as exc:
        logger.warning("notes_unparseable", response_chars=len(raw))
        raise UpstreamError("Failed to generate notes. Please try again.") from exc

    logger.info("notes_generated", title=notes.title, sections=len(notes.sections))
    return notes
