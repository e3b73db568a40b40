"""docqa domain models - re-exports all public model classes.

Organised by concern:
    - document.py   - persisted rows (Document, Chunk, Answer, AnswerContext)
    - ingestion.py  - background job snapshots and ingestion results
    - qa.py         - retrieval hits and composed answers
"""

from __future__ import annotations

from docqa.models.document import (
    MIME_TO_FILE_TYPE,
    Answer,
    AnswerContext,
    Chunk,
    Document,
    DocumentStatus,
    FileType,
)
from docqa.models.ingestion import IngestionJob, IngestionResult, JobState
from docqa.models.qa import AnswerDetail, ContextView, QAResult, RetrievedChunk

__all__ = [
    "MIME_TO_FILE_TYPE",
    "Answer",
    "AnswerContext",
    "AnswerDetail",
    "Chunk",
    "ContextView",
    "Document",
    "DocumentStatus",
    "FileType",
    "IngestionJob",
    "IngestionResult",
    "JobState",
    "QAResult",
    "RetrievedChunk",
]
