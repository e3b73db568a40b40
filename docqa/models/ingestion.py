"""Ingestion job and result models.

An :class:`IngestionJob` is the in-memory record the job queue keeps for one
document's background ingestion.  It is immutable: the queue advances a
job by replacing it with ``job.model_copy(update={...})``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from docqa.models.document import FileType, utc_now


class JobState(str, Enum):
    """Lifecycle of one ingestion job: QUEUED -> RUNNING -> READY | FAILED."""

    QUEUED = "queued"
    RUNNING = "running"
    READY = "ready"
    FAILED = "failed"


class IngestionJob(BaseModel):
    """Snapshot of a queued or finished ingestion job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    document_id: str
    file_type: FileType
    state: JobState = JobState.QUEUED
    # True when the job was created by the startup reconciliation sweep;
    # such jobs read their bytes back from the blob store.
    requeued: bool = False
    error: str | None = None
    enqueued_at: datetime = Field(default_factory=utc_now)
    started_at: datetime | None = None
    finished_at: datetime | None = None


class IngestionResult(BaseModel):
    """Outcome of a successful :meth:`IngestionService.ingest` call."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    total_chunks: int = Field(ge=0)
    stored_chunks: int = Field(ge=0)
    # Chunks whose embedding came back empty and were not persisted.
    skipped_chunks: int = Field(default=0, ge=0)
    duration_ms: float = 0.0
