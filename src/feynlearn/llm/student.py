"""The AI student the learner teaches, plus per-explanation scoring."""

import structlog
from pydantic import BaseModel

from feynlearn.errors import PreconditionError, UpstreamError
from feynlearn.llm.client import LLMClient, parse_json_response
from feynlearn.llm.prompts import SCORE_PROMPT, build_student_instruction
from feynlearn.models.session import ChatMessage, MessageRole

logger = structlog.get_logger()

MIN_EXPLANATION_SCORE = 1
MAX_EXPLANATION_SCORE = 20


class ExplanationScore(BaseModel):
    score: int = 12
    feedback: str = "Good explanation!"


class StudentTurn(BaseModel):
    message: str
    score: int
    feedback: str


def _to_openai_history(messages: list[ChatMessage]) -> list[dict[str, str]]:
    history = [
        {
            "role": "user" if m.role == MessageRole.USER else "assistant",
            "content": m.content,
        }
        for m in messages
    ]
    # Conversations open with the student's greeting; drop it so history starts with the teacher.
    if history and history[0]["role"] == "assistant":
        history = history[1:]
    return history


class StudentChat:
    """Plays the student persona and grades each explanation.

    Args:
        client: LLM client used for both the reply and the scoring call.
    """

    def __init__(self, client: LLMClient):
        self.client = client

    async def reply(
        self,
        messages: list[ChatMessage],
        topic: str,
        persona: str | None = None,
    ) -> StudentTurn:
        """Answer the latest teacher message and score it.

        Args:
            messages: Conversation so far; the last entry is the explanation to answer.
            topic: Topic being taught.
            persona: ``curious`` (default), ``skeptical``, ``devil``,
                ``challenging`` or ``supportive``.

        Raises:
            PreconditionError: no topic or no messages.
            UpstreamError: the reply could not be generated.
        """
        if not topic:
            raise PreconditionError("Topic is required")
        if not messages:
            raise PreconditionError("At least one message is required")

        latest = messages[-1]
        text = await self.client.generate(
            latest.content,
            system=build_student_instruction(topic, persona),
            history=_to_openai_history(messages[:-1]),
            temperature=0.8,
        )
        grade = await self.score(topic, latest.content)
        return StudentTurn(message=text, score=grade.score, feedback=grade.feedback)

    async def score(self, topic: str, explanation: str) -> ExplanationScore:
        """Score an explanation 1-20, falling back to a default grade on failure."""
        try:
            raw = await self.client.generate(
                SCORE_PROMPT.format(topic=topic, explanation=explanation),
                temperature=0.3,
            )
            data = parse_json_response(raw)
            grade = ExplanationScore(
                score=int(data.get("score", 12)),
                feedback=str(data.get("feedback") or "Good explanation!"),
            )
        except (UpstreamError, ValueError, TypeError, AttributeError):
            logger.warning("explanation_score_fallback", topic=topic)
            return ExplanationScore()
        grade.score = min(MAX_EXPLANATION_SCORE, max(MIN_EXPLANATION_SCORE, grade.score))
        return grade
