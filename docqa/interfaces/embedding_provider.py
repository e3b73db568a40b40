"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into a fixed-length vector.  Every
chunk stored by the persistence layer and every question sent to the query
pipeline passes through one of these providers, so their dimension must
match the process-wide ``EMBEDDING_DIMENSION`` setting (checked at startup
in ``docqa/main.py``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider  - text-embedding-3-small / ada-002 (1536 dims)
#   GeminiEmbeddingProvider  - text-embedding-004 (768 dims)
# Located in: docqa/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by ingestion and retrieval."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Parameters
        ----------
        text:
            The text to embed (a chunk or a question).

        Returns
        -------
        list[float]
            The embedding vector with length :meth:`get_dimension`.  An empty
            list means the upstream API returned no vector for this input;
            callers skip such chunks.

        Raises
        ------
        docqa.utils.errors.ProviderError
            If the embedding API call fails.
        """

    async def embed_query(self, text: str) -> list[float]:
        """Embed a search question.

        Providers whose models embed queries and documents differently
        override this; the default is :meth:`embed`.
        """
        return await self.embed(text)

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for several texts, positionally aligned."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the vectors this provider produces.

        Example values: ``1536`` (OpenAI ``text-embedding-3-small``),
        ``768`` (Gemini ``text-embedding-004``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai-text-embedding-3-small"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has the credentials it needs."""
