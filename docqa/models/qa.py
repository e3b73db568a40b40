"""Query-pipeline result models.

``RetrievedChunk`` is what the store's nearest-neighbour search yields: the
chunk plus its L2 distance to the question embedding.  ``QAResult`` is what
``QAService.ask`` returns; ``AnswerDetail`` is what ``QAService.get_answer``
returns for a previously persisted answer.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from docqa.models.document import Answer, Chunk, Document, utc_now


class RetrievedChunk(BaseModel):
    """A chunk returned by similarity search, nearest first."""

    model_config = ConfigDict(frozen=True)

    chunk: Chunk
    # L2 distance between the chunk embedding and the query embedding.
    distance: float = Field(ge=0.0)


class ContextView(BaseModel):
    """Public view of one retrieved chunk (embedding omitted)."""

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    document_id: str
    content: str
    page_number: int | None = None
    rank: int = Field(ge=0)
    distance: float | None = None

    @classmethod
    def from_chunk(cls, chunk: Chunk, rank: int, distance: float | None = None) -> ContextView:
        return cls(
            chunk_id=chunk.id,
            document_id=chunk.document_id,
            content=chunk.content,
            page_number=chunk.page_number,
            rank=rank,
            distance=distance,
        )


class QAResult(BaseModel):
    """Composed answer returned by the query pipeline.

    ``answer_id`` and ``document`` are ``None`` when no chunk was retrieved;
    nothing is persisted in that case.
    """

    model_config = ConfigDict(frozen=True)

    answer_id: str | None
    question: str
    answer: str
    document: Document | None = None
    contexts: list[ContextView] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)


class AnswerDetail(BaseModel):
    """A persisted answer with its document and resolved contexts."""

    model_config = ConfigDict(frozen=True)

    answer: Answer
    document: Document
    contexts: list[ContextView] = Field(default_factory=list)
