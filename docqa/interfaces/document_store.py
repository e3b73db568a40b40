"""Abstract base class for the relational + vector persistence layer.

One store owns four tables: documents, chunks (with embeddings), answers and
answer_contexts.  Services never issue SQL themselves; every read and write
goes through this contract so the SQLite and PostgreSQL/pgvector backends
are interchangeable.

Status invariant: ``update_document_status`` is the ONLY way a document's
status changes.  It performs a single conditional UPDATE that matches only
rows still in ``processing``, so READY and FAILED are terminal and two
racing writers cannot both win.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from docqa.models import (
    Answer,
    AnswerContext,
    Chunk,
    Document,
    DocumentStatus,
    RetrievedChunk,
)


# Concrete implementations:
#   SQLiteDocumentStore    - aiosqlite, embeddings as JSON, L2 ranking in numpy
#   PgVectorDocumentStore  - SQLAlchemy async + pgvector, ORDER BY embedding <-> :q
# Located in: docqa/providers/store/
class IDocumentStore(ABC):
    """Contract for document, chunk and answer persistence."""

    # -- lifecycle ---------------------------------------------------------

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indexes if they do not exist."""

    @abstractmethod
    async def close(self) -> None:
        """Release connections held by the store."""

    # -- documents ---------------------------------------------------------

    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        """Insert a new document row and return it."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """Return the document with *document_id*, or ``None``."""

    @abstractmethod
    async def list_documents(
        self,
        status: DocumentStatus | None = None,
        updated_before: datetime | None = None,
    ) -> list[Document]:
        """Return documents newest first, optionally filtered.

        Parameters
        ----------
        status:
            Only documents in this status.
        updated_before:
            Only documents whose ``updated_at`` is strictly earlier.  Used by
            the startup reconciliation sweep to find stale ``processing`` rows.
        """

    @abstractmethod
    async def update_document_status(
        self,
        document_id: str,
        status: DocumentStatus,
        error: str | None = None,
    ) -> Document | None:
        """Move a ``processing`` document to *status*.

        Returns
        -------
        Document | None
            The updated document, or ``None`` when no row matched (unknown id
            or the document already reached a terminal status).
        """

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete a document with its answer contexts, answers and chunks.

        Returns ``True`` if a document row was removed.
        """

    # -- chunks ------------------------------------------------------------

    @abstractmethod
    async def create_chunk(self, chunk: Chunk) -> Chunk:
        """Insert one chunk.  A present embedding must have the store's dimension."""

    @abstractmethod
    async def delete_chunks(self, document_id: str) -> int:
        """Delete every chunk of *document_id* and return how many were removed.

        Answer contexts pointing at those chunks are removed too.
        """

    @abstractmethod
    async def get_chunks(self, document_id: str) -> list[Chunk]:
        """Return a document's chunks ordered by ``chunk_index``."""

    @abstractmethod
    async def get_chunks_by_ids(self, chunk_ids: list[str]) -> list[Chunk]:
        """Return the chunks with the given ids, in the order of *chunk_ids*.

        Ids with no matching row are omitted.
        """

    @abstractmethod
    async def count_chunks(self, document_id: str | None = None) -> int:
        """Count chunks, for one document or across the whole store."""

    @abstractmethod
    async def search_similar_chunks(
        self,
        embedding: list[float],
        limit: int,
        document_id: str | None = None,
    ) -> list[RetrievedChunk]:
        """Return up to *limit* chunks nearest to *embedding*.

        Ordered by L2 distance ascending; ties keep chunk insertion order.
        Chunks without an embedding are never returned.  *document_id*
        restricts the search to one document.
        """

    # -- answers -----------------------------------------------------------

    @abstractmethod
    async def create_answer(self, answer: Answer, chunk_ids: list[str]) -> list[AnswerContext]:
        """Insert *answer* and one context row per chunk id (rank = position).

        Both are written together; returns the created context rows.
        """

    @abstractmethod
    async def get_answer(self, answer_id: str) -> Answer | None:
        """Return the answer with *answer_id*, or ``None``."""

    @abstractmethod
    async def get_answer_contexts(self, answer_id: str) -> list[AnswerContext]:
        """Return an answer's context rows ordered by rank."""

    @abstractmethod
    async def list_recent_answers(self, limit: int = 5) -> list[Answer]:
        """Return the *limit* most recently created answers, newest first."""

    @abstractmethod
    async def list_answers_for_document(self, document_id: str) -> list[Answer]:
        """Return every answer attributed to *document_id*, newest first."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"sqlite"`` or ``"pgvector"``."""
