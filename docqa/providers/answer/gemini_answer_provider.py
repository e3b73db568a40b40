"""Google Gemini answer provider adapter.

Wraps ``google.generativeai.GenerativeModel`` to implement
:class:`IAnswerProvider`.  The system prompt is passed as the model's
``system_instruction``.  ``response.text`` raises ``ValueError`` when the
candidate was blocked or carried no text parts; that case maps to the
fallback answer rather than an error.
"""

from __future__ import annotations

import google.generativeai as genai
import structlog
from google.api_core import exceptions as google_exceptions

from docqa.config.settings import Settings
from docqa.interfaces.answer_provider import AnswerContextInput, IAnswerProvider
from docqa.providers.answer.prompt import FALLBACK_ANSWER, SYSTEM_PROMPT, build_user_prompt
from docqa.utils.errors import ProviderError

logger = structlog.get_logger(logger_name=__name__)


class GeminiAnswerProvider(IAnswerProvider):
    """Answer provider backed by the Gemini generate-content API."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.gemini_api_key
        self._model_name = settings.gemini_answer_model
        self._timeout = settings.provider_timeout_seconds
        if self._api_key:
            genai.configure(api_key=self._api_key)
        self._model = genai.GenerativeModel(
            self._model_name,
            system_instruction=SYSTEM_PROMPT,
            generation_config=genai.GenerationConfig(
                temperature=settings.answer_temperature,
                max_output_tokens=settings.answer_max_tokens,
            ),
        )

    async def answer(self, question: str, contexts: list[AnswerContextInput]) -> str:
        try:
            response = await self._model.generate_content_async(
                build_user_prompt(question, contexts),
                request_options={"timeout": self._timeout},
            )
        except google_exceptions.GoogleAPIError as exc:
            raise ProviderError(
                message=f"Gemini API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            text = response.text
        except ValueError:
            logger.warning("gemini_answer_empty", model=self._model_name)
            return FALLBACK_ANSWER

        logger.info("gemini_answer", model=self._model_name, contexts=len(contexts))
        return (text or "").strip() or FALLBACK_ANSWER

    def get_provider_name(self) -> str:
        return "gemini"

    def is_available(self) -> bool:
        return bool(self._api_key)
