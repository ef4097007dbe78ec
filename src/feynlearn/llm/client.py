"""Thin wrapper over the OpenAI chat completions API."""

import json
import re

import structlog
from openai import AsyncOpenAI

from feynlearn.errors import UpstreamError

logger = structlog.get_logger()

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned)
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def parse_json_response(text: str):
    """Parse model output that may be wrapped in a markdown code fence.

    Raises:
        ValueError: the cleaned text is not valid JSON.
    """
    return json.loads(strip_code_fences(text))


class LLMClient:
    """Text generation against an OpenAI chat model.

    Args:
        api_key: OpenAI API key. ``None`` makes every call fail as an upstream error.
        model: Chat model name.
    """

    def __init__(self, api_key: str | None, model: str = "gpt-4o-mini"):
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None
        self.model = model

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        history: list[dict[str, str]] | None = None,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        """Generate a completion for ``prompt``.

        Args:
            prompt: The final user message.
            system: Optional system instruction.
            history: Earlier turns as OpenAI ``{"role", "content"}`` messages.
            temperature: Sampling temperature.
            json_mode: Ask the model for a JSON object.

        Raises:
            UpstreamError: the API is unconfigured, fails or returns no text.
        """
        if self.client is None:
            raise UpstreamError("LLM service is not configured")

        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.extend(history or [])
        messages.append({"role": "user", "content": prompt})

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                **kwargs,
            )
        except Exception as exc:
            logger.exception("llm_request_failed", model=self.model)
            raise UpstreamError("LLM request failed") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.warning("llm_empty_response", model=self.model)
            raise UpstreamError("LLM returned an empty response")
        return content
