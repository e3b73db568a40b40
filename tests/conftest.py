"""Shared pytest fixtures for the docqa test suite."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest
import pytest_asyncio

from docqa.config.settings import Settings
from docqa.interfaces.answer_provider import AnswerContextInput, IAnswerProvider
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.models import Document, DocumentStatus, FileType
from docqa.providers.blob.local_blob_store import LocalBlobStore
from docqa.providers.store.sqlite_document_store import SQLiteDocumentStore

# ---------------------------------------------------------------------------
# Deterministic embeddings
# ---------------------------------------------------------------------------

EMBEDDING_DIM = 8


def _hash_to_vector(text: str, dim: int = EMBEDDING_DIM) -> list[float]:
    """Generate a deterministic fixed-length unit vector by hashing *text*.

    Each SHA-256 byte becomes one component in [-0.5, 0.5]; the digest is
    re-hashed until it covers ``dim`` components.  Same text, same vector.
    """
    raw = hashlib.sha256(text.encode("utf-8")).digest()
    while len(raw) < dim:
        raw += hashlib.sha256(raw).digest()
    values = [b / 255.0 - 0.5 for b in raw[:dim]]
    magnitude = max(sum(v * v for v in values) ** 0.5, 1e-10)
    return [v / magnitude for v in values]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests.

    *overrides* pins the vector returned for specific texts, which lets a
    test place a question right on top of a chunk.
    """

    def __init__(
        self,
        dim: int = EMBEDDING_DIM,
        overrides: dict[str, list[float]] | None = None,
    ) -> None:
        self._dim = dim
        self.overrides: dict[str, list[float]] = dict(overrides or {})
        self.calls: list[str] = []
        self.query_calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.overrides:
            return list(self.overrides[text])
        return _hash_to_vector(text, self._dim)

    async def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return await self.embed(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(t) for t in texts]

    def get_dimension(self) -> int:
        return self._dim

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


class MockAnswerProvider(IAnswerProvider):
    """Answer provider that echoes the top context and records every call."""

    def __init__(self, reply: str | None = None) -> None:
        self._reply = reply
        self.calls: list[tuple[str, list[str]]] = []

    async def answer(self, question: str, contexts: list[AnswerContextInput]) -> str:
        self.calls.append((question, [c.content for c in contexts]))
        if self._reply is not None:
            return self._reply
        return contexts[0].content if contexts else ""

    def get_provider_name(self) -> str:
        return "mock-answer"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep API keys and other settings exported in the shell out of tests."""
    for name in Settings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def mock_answer_provider() -> MockAnswerProvider:
    return MockAnswerProvider()


@pytest_asyncio.fixture
async def document_store(tmp_path: Path) -> SQLiteDocumentStore:
    """Create and initialize a SQLite store with a temp DB."""
    store = SQLiteDocumentStore(tmp_path / "docqa_test.db", embedding_dimension=EMBEDDING_DIM)
    await store.initialize()
    return store


@pytest.fixture
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "blobs")


def make_document(
    document_id: str = "doc-1",
    filename: str = "notes.txt",
    file_type: FileType = FileType.TXT,
    status: DocumentStatus = DocumentStatus.PROCESSING,
    blob_url: str | None = None,
) -> Document:
    return Document(
        id=document_id,
        filename=filename,
        file_type=file_type,
        blob_url=blob_url or f"local://blobs/documents/1700000000000-{filename}",
        status=status,
    )
