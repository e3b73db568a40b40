"""Public interface definitions for every external collaborator.

Every external API or service docqa talks to is accessed exclusively through
the abstract base classes defined in this package.  Concrete adapters
implement them and are chosen once, at startup, in ``docqa/main.py``.

ADAPTER PATTERN EXPLAINED (for junior developers):
    Instead of calling ``openai.embeddings.create(...)`` inside the ingestion
    service, the service calls ``embedding_provider.embed(...)`` where
    ``embedding_provider`` is any object implementing ``IEmbeddingProvider``.
    Swapping OpenAI for Gemini is then a configuration change, and unit tests
    can inject a deterministic fake with no network access.

CONCRETE PROVIDER MAP:
    Interface              →  Concrete implementations (in docqa/providers/)
    ─────────────────────────────────────────────────────────────────────
    IEmbeddingProvider     →  OpenAIEmbeddingProvider, GeminiEmbeddingProvider
    IAnswerProvider        →  AnthropicAnswerProvider, OpenAIAnswerProvider,
                              GeminiAnswerProvider
    IDocumentStore         →  SQLiteDocumentStore, PgVectorDocumentStore
    IBlobStore             →  S3BlobStore, LocalBlobStore
"""

from docqa.interfaces.answer_provider import AnswerContextInput, IAnswerProvider
from docqa.interfaces.blob_store import IBlobStore
from docqa.interfaces.document_store import IDocumentStore
from docqa.interfaces.embedding_provider import IEmbeddingProvider

__all__ = [
    "AnswerContextInput",
    "IAnswerProvider",
    "IBlobStore",
    "IDocumentStore",
    "IEmbeddingProvider",
]
