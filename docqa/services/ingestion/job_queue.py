"""In-memory background queue for document ingestion.

Upload handlers enqueue a job and return immediately; N worker tasks drain
an :class:`asyncio.Queue` and run :meth:`IngestionService.ingest` for each
job.  Every job has an inspectable state:

    QUEUED ──> RUNNING ──> READY
                      └──> FAILED

A document may have at most one QUEUED or RUNNING job at a time; a second
enqueue for the same document is refused.

The queue lives in process memory, so jobs do not survive a restart.  At
startup :meth:`IngestionJobQueue.reconcile` requeues every document still
``processing`` that has no job in this process.  While running, an optional
sweep task repeats the reconciliation for documents that have sat
``processing`` longer than the stale threshold.  Requeued jobs read their
bytes back from the blob store.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog

from docqa.models import DocumentStatus, FileType, IngestionJob, JobState

if TYPE_CHECKING:
    from docqa.interfaces.blob_store import IBlobStore
    from docqa.interfaces.document_store import IDocumentStore
    from docqa.services.ingestion.ingestion_service import IngestionService

logger = structlog.get_logger(logger_name=__name__)

# Finished job snapshots kept for GET /api/jobs; older ones are dropped.
_MAX_FINISHED_JOBS = 200


class IngestionJobQueue:
    """Runs ingestion jobs on background asyncio worker tasks."""

    def __init__(
        self,
        ingestion_service: IngestionService,
        document_store: IDocumentStore,
        blob_store: IBlobStore,
        workers: int = 1,
        stale_after_seconds: int = 900,
        sweep_interval_seconds: float | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self._ingestion = ingestion_service
        self._store = document_store
        self._blobs = blob_store
        self._worker_count = workers
        self._stale_after = timedelta(seconds=stale_after_seconds)
        self._sweep_interval = sweep_interval_seconds

        self._queue: asyncio.Queue[tuple[str, bytes | None]] = asyncio.Queue()
        self._jobs: OrderedDict[str, IngestionJob] = OrderedDict()
        # document_id -> job_id of its QUEUED/RUNNING job.
        self._active: dict[str, str] = {}
        self._workers: list[asyncio.Task] = []
        self._sweeper: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return bool(self._workers)

    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None

    def start(self) -> None:
        """Spawn the worker tasks.  Must be called from a running event loop."""
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(n), name=f"ingestion-worker-{n}")
            for n in range(self._worker_count)
        ]
        logger.info("ingestion_workers_started", workers=self._worker_count)
        if self._sweep_interval:
            self._sweeper = asyncio.create_task(self._sweep(), name="ingestion-sweeper")

    async def stop(self) -> None:
        """Cancel the workers and the sweep task and wait for them to exit."""
        tasks = list(self._workers)
        if self._sweeper is not None:
            tasks.append(self._sweeper)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._workers = []
        self._sweeper = None
        logger.info("ingestion_workers_stopped")

    async def join(self) -> None:
        """Wait until every enqueued job has finished."""
        await self._queue.join()

    # ------------------------------------------------------------------
    # Enqueue / inspect
    # ------------------------------------------------------------------

    def enqueue(
        self,
        document_id: str,
        file_type: FileType,
        file_bytes: bytes | None = None,
        requeued: bool = False,
    ) -> IngestionJob | None:
        """Queue ingestion of *document_id*.

        When *file_bytes* is ``None`` the worker downloads the document's
        blob first.  Returns the new job, or ``None`` if the document
        already has a queued or running job.
        """
        if document_id in self._active:
            logger.warning(
                "ingestion_job_refused",
                document_id=document_id,
                active_job_id=self._active[document_id],
            )
            return None

        job = IngestionJob(
            job_id=str(uuid.uuid4()),
            document_id=document_id,
            file_type=file_type,
            requeued=requeued,
        )
        self._jobs[job.job_id] = job
        self._active[document_id] = job.job_id
        self._queue.put_nowait((job.job_id, file_bytes))
        logger.info(
            "ingestion_job_queued",
            job_id=job.job_id,
            document_id=document_id,
            requeued=requeued,
            queue_size=self._queue.qsize(),
        )
        return job

    def get_job(self, job_id: str) -> IngestionJob | None:
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[IngestionJob]:
        """Return job snapshots, most recently enqueued first."""
        return list(reversed(self._jobs.values()))

    def is_active(self, document_id: str) -> bool:
        return document_id in self._active

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def reconcile(self, stale_only: bool = False) -> list[IngestionJob]:
        """Requeue ``processing`` documents that have no job in this process.

        At startup every such document is an orphan of a previous process,
        so all of them are requeued.  With *stale_only* only documents not
        updated within the stale threshold are considered; the periodic
        sweep uses this so uploads that are still being handed to the queue
        are left alone.
        """
        cutoff = datetime.now(timezone.utc) - self._stale_after if stale_only else None
        pending = await self._store.list_documents(
            status=DocumentStatus.PROCESSING, updated_before=cutoff
        )
        requeued: list[IngestionJob] = []
        for document in pending:
            if self.is_active(document.id):
                continue
            job = self.enqueue(document.id, document.file_type, requeued=True)
            if job is not None:
                requeued.append(job)
        logger.info(
            "ingestion_reconciled",
            stale_only=stale_only,
            processing_documents=len(pending),
            requeued=len(requeued),
        )
        return requeued

    async def _sweep(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                await self.reconcile(stale_only=True)
            except Exception as exc:
                # A failed sweep is retried on the next tick.
                logger.error(
                    "ingestion_sweep_failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    def _update(self, job_id: str, **changes) -> IngestionJob:  # noqa: ANN003
        job = self._jobs[job_id].model_copy(update=changes)
        self._jobs[job_id] = job
        return job

    def _prune(self) -> None:
        finished = [
            job_id
            for job_id, job in self._jobs.items()
            if job.state in (JobState.READY, JobState.FAILED)
        ]
        for job_id in finished[: max(0, len(finished) - _MAX_FINISHED_JOBS)]:
            del self._jobs[job_id]

    async def _worker(self, worker_id: int) -> None:
        while True:
            job_id, file_bytes = await self._queue.get()
            try:
                await self._run_job(job_id, file_bytes)
            finally:
                self._queue.task_done()
            logger.debug("ingestion_worker_idle", worker_id=worker_id)

    async def _run_job(self, job_id: str, file_bytes: bytes | None) -> None:
        job = self._update(job_id, state=JobState.RUNNING, started_at=datetime.now(timezone.utc))
        try:
            if file_bytes is None:
                file_bytes = await self._load_bytes(job)
            await self._ingestion.ingest(job.document_id, file_bytes, job.file_type)
        except Exception as exc:
            # The worker must outlive a failed job; the failure is already
            # recorded on the document row.
            self._update(
                job_id,
                state=JobState.FAILED,
                error=str(exc) or type(exc).__name__,
                finished_at=datetime.now(timezone.utc),
            )
            logger.error(
                "ingestion_job_failed",
                job_id=job_id,
                document_id=job.document_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
        else:
            self._update(job_id, state=JobState.READY, finished_at=datetime.now(timezone.utc))
            logger.info("ingestion_job_complete", job_id=job_id, document_id=job.document_id)
        finally:
            self._active.pop(job.document_id, None)
            self._prune()

    async def _load_bytes(self, job: IngestionJob) -> bytes:
        """Download a requeued document's bytes, failing the document if that fails."""
        document = await self._store.get_document(job.document_id)
        if document is None:
            raise LookupError(f"Document {job.document_id} no longer exists")
        try:
            return await self._blobs.download(document.blob_url)
        except Exception as exc:
            await self._store.update_document_status(
                document.id, DocumentStatus.FAILED, error=str(exc) or type(exc).__name__
            )
            raise
