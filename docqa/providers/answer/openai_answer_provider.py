"""OpenAI-compatible answer provider adapter.

Wraps the ``openai`` async client to implement :class:`IAnswerProvider`.
When ``openai_base_url`` is configured the client points at that URL, so any
OpenAI-compatible chat endpoint can answer questions.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from docqa.config.settings import Settings
from docqa.interfaces.answer_provider import AnswerContextInput, IAnswerProvider
from docqa.providers.answer.prompt import FALLBACK_ANSWER, SYSTEM_PROMPT, build_user_prompt
from docqa.utils.errors import ProviderError

logger = structlog.get_logger(logger_name=__name__)


class OpenAIAnswerProvider(IAnswerProvider):
    """Answer provider backed by an OpenAI-compatible Chat Completions API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": settings.provider_timeout_seconds,
            "max_retries": 0,
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url
        if http_client is not None:
            client_kwargs["http_client"] = http_client

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_answer_model
        self._temperature = settings.answer_temperature
        self._max_tokens = settings.answer_max_tokens

    async def answer(self, question: str, contexts: list[AnswerContextInput]) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(question, contexts)},
                ],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except openai.APIError as exc:
            raise ProviderError(
                message=f"OpenAI API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        logger.info(
            "openai_answer",
            model=self._model,
            contexts=len(contexts),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return (content or "").strip() or FALLBACK_ANSWER

    def get_provider_name(self) -> str:
        return "openai"

    def is_available(self) -> bool:
        return bool(self._api_key)
