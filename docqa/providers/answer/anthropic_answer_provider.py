"""Anthropic answer provider adapter.

Wraps the ``anthropic`` async client to implement :class:`IAnswerProvider`.

Key differences from the OpenAI adapter:
    - Uses Anthropic's Messages API (not chat.completions)
    - System prompt is a separate parameter, not a message in the list
    - Response content is a list of blocks, so we filter for text blocks
      and join them
"""

from __future__ import annotations

import anthropic
import httpx
import structlog

from docqa.config.settings import Settings
from docqa.interfaces.answer_provider import AnswerContextInput, IAnswerProvider
from docqa.providers.answer.prompt import FALLBACK_ANSWER, SYSTEM_PROMPT, build_user_prompt
from docqa.utils.errors import ProviderError

logger = structlog.get_logger(logger_name=__name__)


class AnthropicAnswerProvider(IAnswerProvider):
    """Answer provider backed by the Anthropic Claude API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.anthropic_api_key
        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": settings.provider_timeout_seconds,
            "max_retries": 0,
        }
        if http_client is not None:
            client_kwargs["http_client"] = http_client
        # AsyncAnthropic is the async client - all calls return coroutines.
        self._client = anthropic.AsyncAnthropic(**client_kwargs)
        self._model = settings.anthropic_model
        self._temperature = settings.answer_temperature
        self._max_tokens = settings.answer_max_tokens

    async def answer(self, question: str, contexts: list[AnswerContextInput]) -> str:
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                # Anthropic takes system prompt as a separate kwarg, not a message.
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": build_user_prompt(question, contexts)}],
                temperature=self._temperature,
            )
        except anthropic.APIError as exc:
            raise ProviderError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        logger.info(
            "anthropic_answer",
            model=self._model,
            contexts=len(contexts),
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        result = "\n".join(text_blocks).strip()
        return result or FALLBACK_ANSWER

    def get_provider_name(self) -> str:
        return "anthropic"

    def is_available(self) -> bool:
        """Return ``True`` if an Anthropic API key is configured."""
        return bool(self._api_key)
