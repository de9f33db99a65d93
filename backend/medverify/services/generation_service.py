"""Draft answer generation via the Anthropic Messages API."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import anthropic
from anthropic import AsyncAnthropic

from medverify.config import settings
from medverify.errors import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamGenericError,
    UpstreamRateLimitError,
)
from medverify.models.schemas import PriorExchange

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful medical assistant providing information to elderly "
    "patients. Use simple language and avoid technical jargon when possible."
)

FALLBACK_ANSWER = "I'm sorry, I couldn't generate a response."

MAX_HISTORY = 5


def build_messages(
    question: str, history: Sequence[PriorExchange] | None = None
) -> list[dict]:
    """Turn prior exchanges plus the new question into role-tagged turns.

    ``history`` is most-recent-first. Only the first ``MAX_HISTORY`` entries
    are kept, and they are replayed oldest first so the new question is the
    final user turn.
    """
    messages: list[dict] = []
    for exchange in reversed(list(history or [])[:MAX_HISTORY]):
        messages.append({"role": "user", "content": exchange.question})
        messages.append({"role": "assistant", "content": exchange.answer})
    messages.append({"role": "user", "content": question})
    return messages


def _extract_text(response) -> str:
    parts = [
        block.text
        for block in (response.content or [])
        if getattr(block, "type", None) == "text" and block.text
    ]
    return "".join(parts).strip()


class AnswerGenerator:
    """Generates draft answers. Built once per request with explicit settings."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 256,
        temperature: float = 0.2,
        client: AsyncAnthropic | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def ensure_configured(self) -> None:
        if not self.configured:
            logger.error("Anthropic API key is not configured")
            raise ConfigurationError("Generation service API key is not configured")

    @property
    def client(self) -> AsyncAnthropic:
        self.ensure_configured()
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def generate(
        self, question: str, history: Sequence[PriorExchange] | None = None
    ) -> str:
        messages = build_messages(question, history)
        logger.info(
            "Generating answer: model=%s turns=%d question_chars=%d",
            self.model,
            len(messages),
            len(question),
        )
        try:
            response = await self.client.messages.create(
                model=self.model,
                system=SYSTEM_PROMPT,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except anthropic.AuthenticationError as e:
            logger.error("Generation service rejected credentials: %s", e.message)
            raise UpstreamAuthError(
                "Authentication error with the generation service. "
                "Please check the API key."
            ) from e
        except anthropic.RateLimitError as e:
            logger.warning("Generation service rate limit hit")
            raise UpstreamRateLimitError(
                "Rate limit exceeded with the generation service. "
                "Please try again later."
            ) from e
        except anthropic.APIStatusError as e:
            logger.error("Generation service error status=%d", e.status_code)
            raise UpstreamGenericError(e.status_code, e.message) from e
        except anthropic.APIConnectionError as e:
            logger.error("Generation service unreachable: %s", e)
            raise UpstreamGenericError(None, str(e)) from e

        text = _extract_text(response)
        if not text:
            logger.warning("Generation service returned no text, using fallback")
            return FALLBACK_ANSWER
        logger.info("Generated answer (%d chars)", len(text))
        return text


def get_answer_generator() -> AnswerGenerator:
    """Dependency for FastAPI routes to get an answer generator."""
    return AnswerGenerator(
        api_key=settings.anthropic_api_key,
        model=settings.ai_model,
        max_tokens=settings.generation_max_tokens,
        temperature=settings.generation_temperature,
    )
