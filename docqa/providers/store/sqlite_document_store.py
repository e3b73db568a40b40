"""SQLite-backed document store.

Persists documents, chunks, answers and answer contexts to a local SQLite
database using ``aiosqlite`` for async I/O.  Each operation opens its own
connection, so the store is safe to share across concurrent requests and the
ingestion worker.

Embeddings are stored as JSON arrays.  Similarity search loads the candidate
vectors and ranks them by L2 distance in numpy; this is linear in the number
of chunks, which is fine for a single-user corpus.  Use
:class:`~docqa.providers.store.pgvector_document_store.PgVectorDocumentStore`
for anything larger.

Timestamps are stored as ISO-8601 UTC strings with fixed microsecond
precision so that string comparison matches time order.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import numpy as np
import structlog

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

_DEFAULT_DB_PATH = Path("data/docqa.db")

# ``seq`` columns give every row a monotonically increasing insertion order;
# AUTOINCREMENT keeps values from being reused after deletes.
_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    seq         INTEGER PRIMARY KEY AUTOINCREMENT,
    id          TEXT    NOT NULL UNIQUE,
    filename    TEXT    NOT NULL,
    file_type   TEXT    NOT NULL,
    blob_url    TEXT    NOT NULL,
    status      TEXT    NOT NULL DEFAULT 'processing',
    error       TEXT,
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS chunks (
    seq          INTEGER PRIMARY KEY AUTOINCREMENT,
    id           TEXT    NOT NULL UNIQUE,
    document_id  TEXT    NOT NULL REFERENCES documents(id),
    chunk_index  INTEGER NOT NULL,
    content      TEXT    NOT NULL,
    page_number  INTEGER,
    embedding    TEXT,
    created_at   TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS answers (
    seq          INTEGER PRIMARY KEY AUTOINCREMENT,
    id           TEXT    NOT NULL UNIQUE,
    question     TEXT    NOT NULL,
    answer       TEXT    NOT NULL,
    document_id  TEXT    NOT NULL REFERENCES documents(id),
    created_at   TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS answer_contexts (
    seq        INTEGER PRIMARY KEY AUTOINCREMENT,
    id         TEXT    NOT NULL UNIQUE,
    answer_id  TEXT    NOT NULL REFERENCES answers(id),
    chunk_id   TEXT    NOT NULL REFERENCES chunks(id),
    rank       INTEGER NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_status ON documents(status);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id);",
    "CREATE INDEX IF NOT EXISTS idx_answers_document ON answers(document_id);",
    "CREATE INDEX IF NOT EXISTS idx_answers_created ON answers(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_contexts_answer ON answer_contexts(answer_id);",
    "CREATE INDEX IF NOT EXISTS idx_contexts_chunk ON answer_contexts(chunk_id);",
]

_DOCUMENT_COLUMNS = "id, filename, file_type, blob_url, status, error, created_at, updated_at"
_CHUNK_COLUMNS = "id, document_id, chunk_index, content, page_number, embedding, created_at"
_ANSWER_COLUMNS = "id, question, answer, document_id, created_at"

_UPDATE_STATUS_SQL = """\
UPDATE documents
SET status = ?, error = ?, updated_at = ?
WHERE id = ? AND status = 'processing';
"""


def _ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _now() -> str:
    return _ts(datetime.now(timezone.utc))


def _row_to_document(row: aiosqlite.Row) -> Document:
    return Document(
        id=row["id"],
        filename=row["filename"],
        file_type=FileType(row["file_type"]),
        blob_url=row["blob_url"],
        status=DocumentStatus(row["status"]),
        error=row["error"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_chunk(row: aiosqlite.Row) -> Chunk:
    raw = row["embedding"]
    return Chunk(
        id=row["id"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        content=row["content"],
        page_number=row["page_number"],
        embedding=json.loads(raw) if raw is not None else None,
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _row_to_answer(row: aiosqlite.Row) -> Answer:
    return Answer(
        id=row["id"],
        question=row["question"],
        answer=row["answer"],
        document_id=row["document_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class SQLiteDocumentStore(IDocumentStore):
    """SQLite-backed document, chunk and answer persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH, embedding_dimension: int = 1536) -> None:
        self._db_path = Path(db_path)
        self._dimension = embedding_dimension

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON;")
                yield db
        except aiosqlite.Error as exc:
            raise StorageError(message=f"SQLite error: {exc}", provider_name="sqlite") from exc

    # -- lifecycle ---------------------------------------------------------

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute("PRAGMA journal_mode = WAL;")
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_db_initialized", path=str(self._db_path))

    async def close(self) -> None:
        # Connections are per-operation; nothing is held open.
        return None

    # -- documents ---------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        async with self._connect() as db:
            await db.execute(
                f"INSERT INTO documents ({_DOCUMENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    document.id,
                    document.filename,
                    document.file_type.value,
                    document.blob_url,
                    document.status.value,
                    document.error,
                    _ts(document.created_at),
                    _ts(document.updated_at),
                ),
            )
            await db.commit()
        logger.info("document_created", document_id=document.id, filename=document.filename)
        return document

    async def get_document(self, document_id: str) -> Document | None:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?", (document_id,)
            )
            row = await cursor.fetchone()
        return _row_to_document(row) if row else None

    async def list_documents(
        self,
        status: DocumentStatus | None = None,
        updated_before: datetime | None = None,
    ) -> list[Document]:
        clauses: list[str] = []
        params: list[str] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if updated_before is not None:
            clauses.append("updated_at < ?")
            params.append(_ts(updated_before))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents {where} "
                "ORDER BY created_at DESC, seq DESC",
                params,
            )
            rows = await cursor.fetchall()
        return [_row_to_document(r) for r in rows]

    async def update_document_status(
        self,
        document_id: str,
        status: DocumentStatus,
        error: str | None = None,
    ) -> Document | None:
        if status is DocumentStatus.PROCESSING:
            raise ValueError("A document cannot be moved back to processing")
        async with self._connect() as db:
            cursor = await db.execute(
                _UPDATE_STATUS_SQL, (status.value, error, _now(), document_id)
            )
            await db.commit()
            if cursor.rowcount == 0:
                logger.warning(
                    "document_status_unchanged", document_id=document_id, status=status.value
                )
                return None
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?", (document_id,)
            )
            row = await cursor.fetchone()
        logger.info("document_status_updated", document_id=document_id, status=status.value)
        return _row_to_document(row) if row else None

    async def delete_document(self, document_id: str) -> bool:
        async with self._connect() as db:
            await db.execute(
                "DELETE FROM answer_contexts WHERE answer_id IN "
                "(SELECT id FROM answers WHERE document_id = ?) "
                "OR chunk_id IN (SELECT id FROM chunks WHERE document_id = ?)",
                (document_id, document_id),
            )
            await db.execute("DELETE FROM answers WHERE document_id = ?", (document_id,))
            await db.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
            cursor = await db.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        logger.info("document_deleted", document_id=document_id, deleted=deleted)
        return deleted

    # -- chunks ------------------------------------------------------------

    async def create_chunk(self, chunk: Chunk) -> Chunk:
        if chunk.embedding is not None and len(chunk.embedding) != self._dimension:
            raise StorageError(
                message=(
                    f"Embedding dimension {len(chunk.embedding)} does not match "
                    f"store dimension {self._dimension}"
                ),
                provider_name="sqlite",
            )
        async with self._connect() as db:
            await db.execute(
                f"INSERT INTO chunks ({_CHUNK_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    chunk.id,
                    chunk.document_id,
                    chunk.chunk_index,
                    chunk.content,
                    chunk.page_number,
                    json.dumps(chunk.embedding) if chunk.embedding is not None else None,
                    _ts(chunk.created_at),
                ),
            )
            await db.commit()
        return chunk

    async def delete_chunks(self, document_id: str) -> int:
        async with self._connect() as db:
            await db.execute(
                "DELETE FROM answer_contexts WHERE chunk_id IN "
                "(SELECT id FROM chunks WHERE document_id = ?)",
                (document_id,),
            )
            cursor = await db.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
            await db.commit()
            return cursor.rowcount

    async def get_chunks(self, document_id: str) -> list[Chunk]:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_CHUNK_COLUMNS} FROM chunks WHERE document_id = ? "
                "ORDER BY chunk_index, seq",
                (document_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_chunk(r) for r in rows]

    async def get_chunks_by_ids(self, chunk_ids: list[str]) -> list[Chunk]:
        if not chunk_ids:
            return []
        placeholders = ", ".join("?" for _ in chunk_ids)
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_CHUNK_COLUMNS} FROM chunks WHERE id IN ({placeholders})", chunk_ids
            )
            rows = await cursor.fetchall()
        by_id = {row["id"]: _row_to_chunk(row) for row in rows}
        return [by_id[cid] for cid in chunk_ids if cid in by_id]

    async def count_chunks(self, document_id: str | None = None) -> int:
        async with self._connect() as db:
            if document_id is None:
                cursor = await db.execute("SELECT COUNT(*) FROM chunks")
            else:
                cursor = await db.execute(
                    "SELECT COUNT(*) FROM chunks WHERE document_id = ?", (document_id,)
                )
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def search_similar_chunks(
        self,
        embedding: list[float],
        limit: int,
        document_id: str | None = None,
    ) -> list[RetrievedChunk]:
        if limit <= 0:
            return []
        if len(embedding) != self._dimension:
            raise StorageError(
                message=(
                    f"Query embedding dimension {len(embedding)} does not match "
                    f"store dimension {self._dimension}"
                ),
                provider_name="sqlite",
            )

        sql = f"SELECT {_CHUNK_COLUMNS} FROM chunks WHERE embedding IS NOT NULL"
        params: tuple = ()
        if document_id is not None:
            sql += " AND document_id = ?"
            params = (document_id,)
        sql += " ORDER BY seq"

        async with self._connect() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        if not rows:
            return []

        chunks = [_row_to_chunk(r) for r in rows]
        matrix = np.asarray([c.embedding for c in chunks], dtype=np.float64)
        query = np.asarray(embedding, dtype=np.float64)
        distances = np.linalg.norm(matrix - query, axis=1)
        # Stable sort: equal distances keep insertion (seq) order.
        order = np.argsort(distances, kind="stable")[:limit]
        return [RetrievedChunk(chunk=chunks[i], distance=float(distances[i])) for i in order]

    # -- answers -----------------------------------------------------------

    async def create_answer(self, answer: Answer, chunk_ids: list[str]) -> list[AnswerContext]:
        contexts = [
            AnswerContext(id=str(uuid.uuid4()), answer_id=answer.id, chunk_id=chunk_id, rank=rank)
            for rank, chunk_id in enumerate(chunk_ids)
        ]
        async with self._connect() as db:
            await db.execute(
                f"INSERT INTO answers ({_ANSWER_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    answer.id,
                    answer.question,
                    answer.answer,
                    answer.document_id,
                    _ts(answer.created_at),
                ),
            )
            await db.executemany(
                "INSERT INTO answer_contexts (id, answer_id, chunk_id, rank) VALUES (?, ?, ?, ?)",
                [(c.id, c.answer_id, c.chunk_id, c.rank) for c in contexts],
            )
            # Both inserts share one implicit transaction.
            await db.commit()
        logger.info("answer_created", answer_id=answer.id, contexts=len(contexts))
        return contexts

    async def get_answer(self, answer_id: str) -> Answer | None:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_ANSWER_COLUMNS} FROM answers WHERE id = ?", (answer_id,)
            )
            row = await cursor.fetchone()
        return _row_to_answer(row) if row else None

    async def get_answer_contexts(self, answer_id: str) -> list[AnswerContext]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, answer_id, chunk_id, rank FROM answer_contexts "
                "WHERE answer_id = ? ORDER BY rank",
                (answer_id,),
            )
            rows = await cursor.fetchall()
        return [AnswerContext(**dict(r)) for r in rows]

    async def list_recent_answers(self, limit: int = 5) -> list[Answer]:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_ANSWER_COLUMNS} FROM answers ORDER BY created_at DESC, seq DESC LIMIT ?",
                (limit,),
            )
            rows = await cursor.fetchall()
        return [_row_to_answer(r) for r in rows]

    async def list_answers_for_document(self, document_id: str) -> list[Answer]:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_ANSWER_COLUMNS} FROM answers WHERE document_id = ? "
                "ORDER BY created_at DESC, seq DESC",
                (document_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_answer(r) for r in rows]

    def get_provider_name(self) -> str:
        return "sqlite"
