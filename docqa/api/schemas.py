"""Pydantic request/response schemas for the docqa API.

# ─── HOW SCHEMAS WORK (Junior Developer Guide) ────────────────────────
#
# These Pydantic models define the *shape* of every HTTP request body
# and response body in the API.  FastAPI uses them for:
#
#   1. **Validation** - Incoming JSON is validated against the schema.
#      Invalid requests are turned into a 400 by the handler in main.py.
#   2. **Serialization** - Outgoing objects are converted to JSON
#      matching the schema (via response_model=...).
#   3. **Documentation** - FastAPI generates OpenAPI docs at /docs.
#
# Convention: Request schemas end with "Request", response schemas
# end with "Response".  Domain models (Document, ContextView,
# IngestionJob, Answer) are returned as-is where their shape already
# is the public contract.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from docqa.models import Answer, AnswerDetail, ContextView, Document, QAResult


class AskQuestionRequest(BaseModel):
    """A question, optionally scoped to one document."""

    question: str = Field(..., max_length=4000)
    document_id: str | None = None


class AskQuestionResponse(BaseModel):
    """Answer composed by the query pipeline.

    ``id`` and ``document`` are null when no chunk matched the question.
    """

    id: str | None
    question: str
    answer: str
    document: Document | None = None
    contexts: list[ContextView] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_result(cls, result: QAResult) -> AskQuestionResponse:
        return cls(
            id=result.answer_id,
            question=result.question,
            answer=result.answer,
            document=result.document,
            contexts=result.contexts,
            created_at=result.created_at,
        )


class AnswerResponse(BaseModel):
    """A stored answer with its document and contexts."""

    id: str
    question: str
    answer: str
    document_id: str
    created_at: datetime
    document: Document
    contexts: list[ContextView] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: AnswerDetail) -> AnswerResponse:
        return cls(
            **detail.answer.model_dump(),
            document=detail.document,
            contexts=detail.contexts,
        )


class RecentAnswerResponse(BaseModel):
    """One entry of ``GET /api/recent-answers``."""

    id: str
    question: str
    answer: str
    document_id: str
    created_at: datetime

    @classmethod
    def from_answer(cls, answer: Answer) -> RecentAnswerResponse:
        return cls(**answer.model_dump())


class DownloadUrlResponse(BaseModel):
    url: str


class DeleteResponse(BaseModel):
    success: bool = True


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]
    chunks: int
    ingestion_workers_running: bool


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    message: str
