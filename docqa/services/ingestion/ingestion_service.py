"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **extract -> chunk -> embed -> store -> mark ready**.

The :class:`IngestionService` implements the **Orchestrator pattern**: it
coordinates four collaborators (text extractor, chunker, embedding provider,
document store) without any of them knowing about each other.  All
dependencies are injected via the constructor, so providers can be swapped
(e.g. OpenAI -> Gemini, SQLite -> pgvector) without changing this class.

Re-running ingestion for the same document is safe: existing chunks are
deleted before new ones are written, so a retry never leaves duplicates.
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

import structlog

from docqa.models import Chunk, DocumentStatus, FileType, IngestionResult
from docqa.services.ingestion.chunker import TextChunker
from docqa.services.ingestion.extractor import TextExtractor
from docqa.utils.errors import ProcessingError, ProviderError

if TYPE_CHECKING:
    from docqa.interfaces.document_store import IDocumentStore
    from docqa.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)


def page_number_for(chunk_index: int) -> int:
    """Rough page hint: two chunks per page, 1-based."""
    return chunk_index // 2 + 1


class IngestionService:
    """Turns an uploaded file into stored, embedded chunks.

    Parameters
    ----------
    document_store:
        Where chunks are written and document status is updated.
    embedding_provider:
        Produces one vector per chunk.
    chunker:
        Splits extracted text; defaults to ``TextChunker()``.
    extractor:
        Converts bytes to text; defaults to ``TextExtractor()``.
    embedding_dimension:
        Required length of every stored vector.
    """

    def __init__(
        self,
        document_store: IDocumentStore,
        embedding_provider: IEmbeddingProvider,
        chunker: TextChunker | None = None,
        extractor: TextExtractor | None = None,
        embedding_dimension: int = 1536,
    ) -> None:
        self._store = document_store
        self._embedder = embedding_provider
        self._chunker = chunker or TextChunker()
        self._extractor = extractor or TextExtractor()
        self._dimension = embedding_dimension

    async def ingest(self, document_id: str, file_bytes: bytes, file_type: FileType) -> IngestionResult:
        """Run the full pipeline for one document.

        On success the document is ``ready``.  On any failure the document
        is marked ``failed`` with the error message recorded and the
        exception is re-raised for the caller (the job queue) to log.
        """
        start = time.monotonic()
        logger.info(
            "ingestion_started",
            document_id=document_id,
            file_type=file_type.value,
            bytes=len(file_bytes),
        )
        try:
            result = await self._run(document_id, file_bytes, file_type, start)
        except Exception as exc:
            await self._store.update_document_status(
                document_id, DocumentStatus.FAILED, error=str(exc) or type(exc).__name__
            )
            logger.error(
                "ingestion_failed",
                document_id=document_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise

        await self._store.update_document_status(document_id, DocumentStatus.READY)
        logger.info(
            "ingestion_complete",
            document_id=document_id,
            chunks=result.stored_chunks,
            skipped=result.skipped_chunks,
            duration_ms=result.duration_ms,
        )
        return result

    async def _run(
        self,
        document_id: str,
        file_bytes: bytes,
        file_type: FileType,
        start: float,
    ) -> IngestionResult:
        text = await self._extractor.extract(file_bytes, file_type)
        pieces = self._chunker.split(text)
        if not pieces:
            raise ProcessingError(message="no extractable text")

        removed = await self._store.delete_chunks(document_id)
        if removed:
            logger.info("ingestion_previous_chunks_removed", document_id=document_id, removed=removed)

        stored = 0
        skipped = 0
        for index, content in enumerate(pieces):
            embedding = await self._embedder.embed(content)
            if not embedding:
                skipped += 1
                logger.warning("chunk_embedding_empty", document_id=document_id, chunk_index=index)
                continue
            if len(embedding) != self._dimension:
                raise ProviderError(
                    message=(
                        f"Embedding for chunk {index} has dimension {len(embedding)}, "
                        f"expected {self._dimension}"
                    ),
                    provider_name=self._embedder.get_provider_name(),
                )
            await self._store.create_chunk(
                Chunk(
                    id=str(uuid.uuid4()),
                    document_id=document_id,
                    chunk_index=index,
                    content=content,
                    page_number=page_number_for(index),
                    embedding=embedding,
                )
            )
            stored += 1

        if stored == 0:
            raise ProcessingError(
                message=f"All {len(pieces)} chunks returned empty embeddings",
                provider_name=self._embedder.get_provider_name(),
            )

        return IngestionResult(
            document_id=document_id,
            total_chunks=len(pieces),
            stored_chunks=stored,
            skipped_chunks=skipped,
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
