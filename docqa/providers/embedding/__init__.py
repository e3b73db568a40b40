"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning.
Every chunk is embedded at ingestion and every question at query time; the
store ranks chunks by L2 distance between the two.

Two implementations of IEmbeddingProvider:
    1. OpenAIEmbeddingProvider  - text-embedding-3-small (1536 dims, default).
    2. GeminiEmbeddingProvider  - text-embedding-004 (768 dims).
"""

from docqa.providers.embedding.gemini_embedding_provider import GeminiEmbeddingProvider
from docqa.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["GeminiEmbeddingProvider", "OpenAIEmbeddingProvider"]
