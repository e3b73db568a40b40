"""Persistent data models: documents, chunks, answers and answer contexts.

These mirror the four tables every :class:`~docqa.interfaces.document_store.IDocumentStore`
implementation keeps.  All models use frozen config; a status change produces
a new ``Document`` returned by the store rather than mutating the old one.

Relationships for junior developers:

    Document 1 ──< Chunk          (a document is split into many chunks)
    Document 1 ──< Answer         (answers are attributed to the document
                                   that owned the top-ranked chunk)
    Answer   1 ──< AnswerContext >── 1 Chunk
                                  (which chunks were shown to the LLM, in rank order)
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FileType(str, Enum):
    """Supported upload formats."""

    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"


# MIME type sent by the browser -> stored file type.  Anything else is rejected
# at upload with a 400.
MIME_TO_FILE_TYPE: dict[str, FileType] = {
    "application/pdf": FileType.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": FileType.DOCX,
    "text/plain": FileType.TXT,
}


class DocumentStatus(str, Enum):
    """Ingestion status of a document.

    The only legal transitions are PROCESSING -> READY and
    PROCESSING -> FAILED; both targets are terminal.
    """

    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


class Document(BaseModel):
    """An uploaded file and its ingestion status."""

    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    file_type: FileType
    # scheme://bucket/key address produced by the blob store at upload.
    blob_url: str
    status: DocumentStatus = DocumentStatus.PROCESSING
    # Failure reason recorded when ingestion ends in FAILED.
    error: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Chunk(BaseModel):
    """One overlapping word window of a document's text plus its embedding."""

    model_config = ConfigDict(frozen=True)

    id: str
    document_id: str
    chunk_index: int = Field(ge=0)
    content: str = Field(min_length=1)
    # Rough position hint only: chunk_index // 2 + 1.
    page_number: int | None = None
    embedding: list[float] | None = None
    created_at: datetime = Field(default_factory=utc_now)


class Answer(BaseModel):
    """A persisted question/answer pair."""

    model_config = ConfigDict(frozen=True)

    id: str
    question: str
    answer: str
    document_id: str
    created_at: datetime = Field(default_factory=utc_now)


class AnswerContext(BaseModel):
    """Join row recording that *chunk_id* was shown for *answer_id* at *rank*."""

    model_config = ConfigDict(frozen=True)

    id: str
    answer_id: str
    chunk_id: str
    rank: int = Field(ge=0)
