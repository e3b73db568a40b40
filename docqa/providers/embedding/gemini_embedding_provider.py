"""Google Gemini embedding provider adapter.

Wraps ``google.generativeai.embed_content`` to implement
:class:`IEmbeddingProvider`.  The SDK call is synchronous, so it runs in a
worker thread via :func:`asyncio.to_thread` to keep the event loop free.

``text-embedding-004`` produces 768-dimension vectors; run with
``EMBEDDING_DIMENSION=768`` when this provider is selected.
"""

from __future__ import annotations

import asyncio

import google.generativeai as genai
import structlog
from google.api_core import exceptions as google_exceptions

from docqa.config.settings import Settings
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.utils.errors import ProviderError

logger = structlog.get_logger(logger_name=__name__)

_MODEL_DIMENSIONS: dict[str, int] = {
    "models/text-embedding-004": 768,
    "models/embedding-001": 768,
}


class GeminiEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by the Gemini embeddings API."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.gemini_api_key
        self._model = settings.gemini_embedding_model or "models/text-embedding-004"
        self._dimension = _MODEL_DIMENSIONS.get(self._model, settings.embedding_dimension)
        self._timeout = settings.provider_timeout_seconds
        if self._api_key:
            genai.configure(api_key=self._api_key)

    async def embed(self, text: str) -> list[float]:
        return await self._embed(text, "retrieval_document")

    async def embed_query(self, text: str) -> list[float]:
        return await self._embed(text, "retrieval_query")

    async def _embed(self, text: str, task_type: str) -> list[float]:
        try:
            result = await asyncio.to_thread(
                genai.embed_content,
                model=self._model,
                content=text,
                task_type=task_type,
                request_options={"timeout": self._timeout},
            )
        except google_exceptions.GoogleAPIError as exc:
            raise ProviderError(
                message=f"Gemini embedding error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        embedding = list(result.get("embedding") or [])
        logger.debug(
            "gemini_embedding",
            model=self._model,
            task_type=task_type,
            dimension=len(embedding),
        )
        return embedding

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(text) for text in texts]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "gemini_embedding"

    def is_available(self) -> bool:
        return bool(self._api_key)
