"""PostgreSQL + pgvector document store.

Uses SQLAlchemy's async engine over ``asyncpg``.  Chunk embeddings live in a
``vector(D)`` column and similarity search is delegated to the database:

    SELECT ... FROM chunks
    WHERE embedding IS NOT NULL
    ORDER BY embedding <-> :query, seq
    LIMIT :limit

The tables are declared with SQLAlchemy Core rather than ORM classes because
the vector dimension is only known at runtime (``EMBEDDING_DIMENSION``).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Identity,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    delete,
    func,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from docqa.interfaces.document_store import IDocumentStore
from docqa.models import (
    Answer,
    AnswerContext,
    Chunk,
    Document,
    DocumentStatus,
    FileType,
    RetrievedChunk,
)
from docqa.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)


def _async_url(database_url: str) -> str:
    """Point a plain ``postgresql://`` URL at the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if database_url.startswith(prefix):
            return "postgresql+asyncpg://" + database_url[len(prefix):]
    return database_url


def _build_tables(metadata: MetaData, dimension: int) -> tuple[Table, Table, Table, Table]:
    documents = Table(
        "documents",
        metadata,
        Column("id", String(36), primary_key=True),
        Column("seq", BigInteger, Identity(), nullable=False),
        Column("filename", String(1024), nullable=False),
        Column("file_type", String(16), nullable=False),
        Column("blob_url", String(2048), nullable=False),
        Column("status", String(16), nullable=False, server_default="processing"),
        Column("error", Text, nullable=True),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
        Index("idx_documents_status", "status"),
    )
    chunks = Table(
        "chunks",
        metadata,
        Column("id", String(36), primary_key=True),
        Column("seq", BigInteger, Identity(), nullable=False),
        Column("document_id", String(36), ForeignKey("documents.id"), nullable=False),
        Column("chunk_index", Integer, nullable=False),
        Column("content", Text, nullable=False),
        Column("page_number", Integer, nullable=True),
        Column("embedding", Vector(dimension), nullable=True),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Index("idx_chunks_document", "document_id"),
    )
    answers = Table(
        "answers",
        metadata,
        Column("id", String(36), primary_key=True),
        Column("seq", BigInteger, Identity(), nullable=False),
        Column("question", Text, nullable=False),
        Column("answer", Text, nullable=False),
        Column("document_id", String(36), ForeignKey("documents.id"), nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Index("idx_answers_document", "document_id"),
    )
    answer_contexts = Table(
        "answer_contexts",
        metadata,
        Column("id", String(36), primary_key=True),
        Column("answer_id", String(36), ForeignKey("answers.id"), nullable=False),
        Column("chunk_id", String(36), ForeignKey("chunks.id"), nullable=False),
        Column("rank", Integer, nullable=False),
        Index("idx_contexts_answer", "answer_id"),
        Index("idx_contexts_chunk", "chunk_id"),
    )
    return documents, chunks, answers, answer_contexts


class PgVectorDocumentStore(IDocumentStore):
    """PostgreSQL/pgvector-backed document, chunk and answer persistence."""

    def __init__(
        self,
        database_url: str,
        embedding_dimension: int = 1536,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._dimension = embedding_dimension
        self._engine = engine or create_async_engine(_async_url(database_url), pool_pre_ping=True)
        self._metadata = MetaData()
        (
            self._documents,
            self._chunks,
            self._answers,
            self._contexts,
        ) = _build_tables(self._metadata, embedding_dimension)

    # -- row conversion ----------------------------------------------------

    def _document_columns(self) -> list:
        d = self._documents.c
        return [d.id, d.filename, d.file_type, d.blob_url, d.status, d.error, d.created_at, d.updated_at]

    def _chunk_columns(self) -> list:
        c = self._chunks.c
        return [c.id, c.document_id, c.chunk_index, c.content, c.page_number, c.embedding, c.created_at]

    def _answer_columns(self) -> list:
        a = self._answers.c
        return [a.id, a.question, a.answer, a.document_id, a.created_at]

    @staticmethod
    def _to_document(row) -> Document:  # noqa: ANN001
        return Document(
            id=row.id,
            filename=row.filename,
            file_type=FileType(row.file_type),
            blob_url=row.blob_url,
            status=DocumentStatus(row.status),
            error=row.error,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _to_chunk(row) -> Chunk:  # noqa: ANN001
        return Chunk(
            id=row.id,
            document_id=row.document_id,
            chunk_index=row.chunk_index,
            content=row.content,
            page_number=row.page_number,
            embedding=[float(x) for x in row.embedding] if row.embedding is not None else None,
            created_at=row.created_at,
        )

    @staticmethod
    def _to_answer(row) -> Answer:  # noqa: ANN001
        return Answer(
            id=row.id,
            question=row.question,
            answer=row.answer,
            document_id=row.document_id,
            created_at=row.created_at,
        )

    def _check_dimension(self, embedding: list[float], what: str) -> None:
        if len(embedding) != self._dimension:
            raise StorageError(
                message=(
                    f"{what} dimension {len(embedding)} does not match "
                    f"store dimension {self._dimension}"
                ),
                provider_name=self.get_provider_name(),
            )

    def _wrap(self, exc: SQLAlchemyError) -> StorageError:
        return StorageError(message=f"Database error: {exc}", provider_name=self.get_provider_name())

    # -- lifecycle ---------------------------------------------------------

    async def initialize(self) -> None:
        try:
            async with self._engine.begin() as conn:
                await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
                await conn.run_sync(self._metadata.create_all)
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        logger.info("pgvector_store_initialized", dimension=self._dimension)

    async def close(self) -> None:
        await self._engine.dispose()

    # -- documents ---------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    insert(self._documents).values(
                        id=document.id,
                        filename=document.filename,
                        file_type=document.file_type.value,
                        blob_url=document.blob_url,
                        status=document.status.value,
                        error=document.error,
                        created_at=document.created_at,
                        updated_at=document.updated_at,
                    )
                )
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        logger.info("document_created", document_id=document.id, filename=document.filename)
        return document

    async def get_document(self, document_id: str) -> Document | None:
        stmt = select(*self._document_columns()).where(self._documents.c.id == document_id)
        try:
            async with self._engine.connect() as conn:
                row = (await conn.execute(stmt)).first()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        return self._to_document(row) if row else None

    async def list_documents(
        self,
        status: DocumentStatus | None = None,
        updated_before: datetime | None = None,
    ) -> list[Document]:
        d = self._documents.c
        stmt = select(*self._document_columns()).order_by(d.created_at.desc(), d.seq.desc())
        if status is not None:
            stmt = stmt.where(d.status == status.value)
        if updated_before is not None:
            stmt = stmt.where(d.updated_at < updated_before)
        try:
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        return [self._to_document(r) for r in rows]

    async def update_document_status(
        self,
        document_id: str,
        status: DocumentStatus,
        error: str | None = None,
    ) -> Document | None:
        if status is DocumentStatus.PROCESSING:
            raise ValueError("A document cannot be moved back to processing")
        d = self._documents.c
        stmt = (
            update(self._documents)
            .where(d.id == document_id, d.status == DocumentStatus.PROCESSING.value)
            .values(status=status.value, error=error, updated_at=datetime.now(timezone.utc))
            .returning(*self._document_columns())
        )
        try:
            async with self._engine.begin() as conn:
                row = (await conn.execute(stmt)).first()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        if row is None:
            logger.warning("document_status_unchanged", document_id=document_id, status=status.value)
            return None
        logger.info("document_status_updated", document_id=document_id, status=status.value)
        return self._to_document(row)

    async def delete_document(self, document_id: str) -> bool:
        a, c, ctx = self._answers.c, self._chunks.c, self._contexts.c
        answer_ids = select(a.id).where(a.document_id == document_id)
        chunk_ids = select(c.id).where(c.document_id == document_id)
        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    delete(self._contexts).where(
                        ctx.answer_id.in_(answer_ids) | ctx.chunk_id.in_(chunk_ids)
                    )
                )
                await conn.execute(delete(self._answers).where(a.document_id == document_id))
                await conn.execute(delete(self._chunks).where(c.document_id == document_id))
                result = await conn.execute(
                    delete(self._documents).where(self._documents.c.id == document_id)
                )
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        deleted = result.rowcount > 0
        logger.info("document_deleted", document_id=document_id, deleted=deleted)
        return deleted

    # -- chunks ------------------------------------------------------------

    async def create_chunk(self, chunk: Chunk) -> Chunk:
        if chunk.embedding is not None:
            self._check_dimension(chunk.embedding, "Embedding")
        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    insert(self._chunks).values(
                        id=chunk.id,
                        document_id=chunk.document_id,
                        chunk_index=chunk.chunk_index,
                        content=chunk.content,
                        page_number=chunk.page_number,
                        embedding=chunk.embedding,
                        created_at=chunk.created_at,
                    )
                )
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        return chunk

    async def delete_chunks(self, document_id: str) -> int:
        c = self._chunks.c
        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    delete(self._contexts).where(
                        self._contexts.c.chunk_id.in_(select(c.id).where(c.document_id == document_id))
                    )
                )
                result = await conn.execute(delete(self._chunks).where(c.document_id == document_id))
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        return result.rowcount

    async def get_chunks(self, document_id: str) -> list[Chunk]:
        c = self._chunks.c
        stmt = (
            select(*self._chunk_columns())
            .where(c.document_id == document_id)
            .order_by(c.chunk_index, c.seq)
        )
        try:
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        return [self._to_chunk(r) for r in rows]

    async def get_chunks_by_ids(self, chunk_ids: list[str]) -> list[Chunk]:
        if not chunk_ids:
            return []
        stmt = select(*self._chunk_columns()).where(self._chunks.c.id.in_(chunk_ids))
        try:
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        by_id = {row.id: self._to_chunk(row) for row in rows}
        return [by_id[cid] for cid in chunk_ids if cid in by_id]

    async def count_chunks(self, document_id: str | None = None) -> int:
        stmt = select(func.count()).select_from(self._chunks)
        if document_id is not None:
            stmt = stmt.where(self._chunks.c.document_id == document_id)
        try:
            async with self._engine.connect() as conn:
                return int((await conn.execute(stmt)).scalar_one())
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc

    async def search_similar_chunks(
        self,
        embedding: list[float],
        limit: int,
        document_id: str | None = None,
    ) -> list[RetrievedChunk]:
        if limit <= 0:
            return []
        self._check_dimension(embedding, "Query embedding")
        c = self._chunks.c
        distance = c.embedding.l2_distance(embedding).label("distance")
        stmt = (
            select(*self._chunk_columns(), distance)
            .where(c.embedding.is_not(None))
            .order_by(distance, c.seq)
            .limit(limit)
        )
        if document_id is not None:
            stmt = stmt.where(c.document_id == document_id)
        try:
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        return [RetrievedChunk(chunk=self._to_chunk(r), distance=float(r.distance)) for r in rows]

    # -- answers -----------------------------------------------------------

    async def create_answer(self, answer: Answer, chunk_ids: list[str]) -> list[AnswerContext]:
        contexts = [
            AnswerContext(id=str(uuid.uuid4()), answer_id=answer.id, chunk_id=chunk_id, rank=rank)
            for rank, chunk_id in enumerate(chunk_ids)
        ]
        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    insert(self._answers).values(
                        id=answer.id,
                        question=answer.question,
                        answer=answer.answer,
                        document_id=answer.document_id,
                        created_at=answer.created_at,
                    )
                )
                if contexts:
                    await conn.execute(
                        insert(self._contexts), [ctx.model_dump() for ctx in contexts]
                    )
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        logger.info("answer_created", answer_id=answer.id, contexts=len(contexts))
        return contexts

    async def get_answer(self, answer_id: str) -> Answer | None:
        stmt = select(*self._answer_columns()).where(self._answers.c.id == answer_id)
        try:
            async with self._engine.connect() as conn:
                row = (await conn.execute(stmt)).first()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        return self._to_answer(row) if row else None

    async def get_answer_contexts(self, answer_id: str) -> list[AnswerContext]:
        ctx = self._contexts.c
        stmt = (
            select(ctx.id, ctx.answer_id, ctx.chunk_id, ctx.rank)
            .where(ctx.answer_id == answer_id)
            .order_by(ctx.rank)
        )
        try:
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        return [AnswerContext(**row._mapping) for row in rows]

    async def list_recent_answers(self, limit: int = 5) -> list[Answer]:
        a = self._answers.c
        stmt = select(*self._answer_columns()).order_by(a.created_at.desc(), a.seq.desc()).limit(limit)
        try:
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        return [self._to_answer(r) for r in rows]

    async def list_answers_for_document(self, document_id: str) -> list[Answer]:
        a = self._answers.c
        stmt = (
            select(*self._answer_columns())
            .where(a.document_id == document_id)
            .order_by(a.created_at.desc(), a.seq.desc())
        )
        try:
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
        return [self._to_answer(r) for r in rows]

    def get_provider_name(self) -> str:
        return "pgvector"
