"""Query pipeline: question -> embedding -> nearest chunks -> LLM answer.

:meth:`QAService.ask` is the whole retrieval-augmented generation loop:

    1. Validate and strip the question.
    2. Embed it with the same provider used at ingestion.
    3. Fetch the ``limit`` nearest chunks (L2 distance), bounded by a timeout.
    4. No chunks -> fixed "couldn't find" answer; nothing is persisted.
    5. Attribute the answer to the document owning the nearest chunk.
    6. Ask the answer provider, passing every retrieved chunk.
    7. Persist the answer with one context row per chunk, in rank order.

Retrieval is global across all documents unless ``document_id`` narrows it.
Each returned context carries its own ``document_id`` so answers drawing on
several documents stay traceable.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import TYPE_CHECKING

import structlog

from docqa.models import Answer, AnswerDetail, ContextView, QAResult
from docqa.utils.errors import NotFoundError, StorageError, ValidationError

if TYPE_CHECKING:
    from docqa.interfaces.answer_provider import IAnswerProvider
    from docqa.interfaces.document_store import IDocumentStore
    from docqa.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)

NO_CONTEXT_ANSWER = (
    "I couldn't find any relevant information in your documents to answer that question."
)


class QAService:
    """Answers questions from stored document chunks."""

    def __init__(
        self,
        document_store: IDocumentStore,
        embedding_provider: IEmbeddingProvider,
        answer_provider: IAnswerProvider,
        search_timeout_seconds: float = 10.0,
        default_limit: int = 5,
    ) -> None:
        self._store = document_store
        self._embedder = embedding_provider
        self._answerer = answer_provider
        self._search_timeout = search_timeout_seconds
        self._default_limit = default_limit

    async def ask(
        self,
        question: str,
        limit: int | None = None,
        document_id: str | None = None,
    ) -> QAResult:
        """Answer *question* from the nearest stored chunks.

        Raises
        ------
        ValidationError
            If the question is empty after stripping.
        NotFoundError
            If *document_id* is given but does not exist.
        StorageError
            If the similarity search exceeds its timeout.
        ProviderError
            If the embedding or answer provider fails.
        """
        question = (question or "").strip()
        if not question:
            raise ValidationError(message="Question is required")
        limit = limit or self._default_limit

        if document_id is not None and await self._store.get_document(document_id) is None:
            raise NotFoundError(message=f"Document {document_id} not found")

        start = time.monotonic()
        query_embedding = await self._embedder.embed_query(question)

        try:
            retrieved = await asyncio.wait_for(
                self._store.search_similar_chunks(query_embedding, limit, document_id=document_id),
                timeout=self._search_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise StorageError(
                message=f"Similarity search timed out after {self._search_timeout}s",
                provider_name=self._store.get_provider_name(),
            ) from exc

        if not retrieved:
            logger.info("qa_no_context", question_chars=len(question), document_id=document_id)
            return QAResult(answer_id=None, question=question, answer=NO_CONTEXT_ANSWER)

        top_document_id = retrieved[0].chunk.document_id
        document = await self._store.get_document(top_document_id)
        if document is None:
            raise NotFoundError(message=f"Document {top_document_id} not found")

        chunks = [hit.chunk for hit in retrieved]
        answer_text = await self._answerer.answer(question, chunks)

        answer = Answer(
            id=str(uuid.uuid4()),
            question=question,
            answer=answer_text,
            document_id=document.id,
        )
        await self._store.create_answer(answer, [c.id for c in chunks])

        contexts = [
            ContextView.from_chunk(hit.chunk, rank=rank, distance=hit.distance)
            for rank, hit in enumerate(retrieved)
        ]
        logger.info(
            "qa_answered",
            answer_id=answer.id,
            document_id=document.id,
            contexts=len(contexts),
            documents=len({c.document_id for c in contexts}),
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        return QAResult(
            answer_id=answer.id,
            question=question,
            answer=answer_text,
            document=document,
            contexts=contexts,
            created_at=answer.created_at,
        )

    async def get_answer(self, answer_id: str) -> AnswerDetail:
        """Return a stored answer with its document and contexts in rank order."""
        answer = await self._store.get_answer(answer_id)
        if answer is None:
            raise NotFoundError(message=f"Answer {answer_id} not found")
        document = await self._store.get_document(answer.document_id)
        if document is None:
            raise NotFoundError(message=f"Document {answer.document_id} not found")

        rows = await self._store.get_answer_contexts(answer_id)
        chunks = await self._store.get_chunks_by_ids([row.chunk_id for row in rows])
        by_id = {chunk.id: chunk for chunk in chunks}
        contexts = [
            ContextView.from_chunk(by_id[row.chunk_id], rank=row.rank)
            for row in rows
            if row.chunk_id in by_id
        ]
        return AnswerDetail(answer=answer, document=document, contexts=contexts)

    async def recent_answers(self, limit: int = 5) -> list[Answer]:
        return await self._store.list_recent_answers(limit)
