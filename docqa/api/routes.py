"""FastAPI API routes for docqa.

Provides REST endpoints for document upload, listing, download and
deletion, question answering, answer history, ingestion job inspection and
health.  Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP (Junior Developer Guide) ───────────────────────────
#
# Endpoint                          Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/upload                       POST    Store file, queue ingestion (201)
# /api/documents                    GET     All documents, newest first
# /api/documents/{id}               GET     One document (status, error)
# /api/documents/{id}/download      GET     Presigned / direct download URL
# /api/documents/{id}               DELETE  Remove blob + document cascade
# /api/ask-question                 POST    Retrieve chunks → LLM answer
# /api/answers/{id}                 GET     Stored answer + document + contexts
# /api/recent-answers?limit=N       GET     N most recent answers (1..50)
# /api/jobs                         GET     Ingestion job snapshots
# /api/health                       GET     Provider names + chunk count
#
# DEPENDENCY INJECTION PATTERN:
# Each route declares its dependencies as type-annotated params.
# FastAPI resolves these via Depends() which calls helper functions that
# read from app.state (populated at startup in main.py's _build_all).
#
# Errors are raised as DocQAError subclasses and converted to JSON by
# ErrorHandlingMiddleware; routes never build error responses themselves.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, File, Query, Request, UploadFile

from docqa import __version__
from docqa.api.schemas import (
    AnswerResponse,
    AskQuestionRequest,
    AskQuestionResponse,
    DeleteResponse,
    DownloadUrlResponse,
    ErrorResponse,
    HealthResponse,
    RecentAnswerResponse,
)
from docqa.config.settings import Settings
from docqa.interfaces.answer_provider import IAnswerProvider
from docqa.interfaces.blob_store import IBlobStore
from docqa.interfaces.document_store import IDocumentStore
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.models import Document, IngestionJob
from docqa.services.document_service import DocumentService
from docqa.services.ingestion.job_queue import IngestionJobQueue
from docqa.services.qa_service import QAService
from docqa.utils.errors import FileTooLargeError, ValidationError
from docqa.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# All routes in this file are prefixed with /api.
router = APIRouter(prefix="/api")

# Read uploads in 64 KB increments so oversized files are rejected without
# buffering the whole payload.
_UPLOAD_CHUNK_SIZE = 64 * 1024

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


def _get_qa_service(request: Request) -> QAService:
    return request.app.state.qa_service


def _get_job_queue(request: Request) -> IngestionJobQueue:
    return request.app.state.job_queue


def _get_document_store(request: Request) -> IDocumentStore:
    return request.app.state.document_store


SettingsDep = Annotated[Settings, Depends(_get_settings)]
DocumentServiceDep = Annotated[DocumentService, Depends(_get_document_service)]
QAServiceDep = Annotated[QAService, Depends(_get_qa_service)]
JobQueueDep = Annotated[IngestionJobQueue, Depends(_get_job_queue)]
DocumentStoreDep = Annotated[IDocumentStore, Depends(_get_document_store)]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/upload",
    status_code=201,
    response_model=Document,
    responses={**_ERROR_RESPONSES, 413: {"model": ErrorResponse}},
)
async def upload_document(
    settings: SettingsDep,
    documents: DocumentServiceDep,
    file: Annotated[UploadFile | None, File()] = None,
) -> Document:
    """Accept one PDF/DOCX/TXT file and queue it for ingestion."""
    if file is None:
        raise ValidationError(message="No file uploaded")

    max_bytes = settings.max_upload_bytes
    parts: list[bytes] = []
    total_size = 0
    while True:
        part = await file.read(_UPLOAD_CHUNK_SIZE)
        if not part:
            break
        total_size += len(part)
        if total_size > max_bytes:
            raise FileTooLargeError(
                message=f"File too large: maximum is {max_bytes // (1024 * 1024)} MB"
            )
        parts.append(part)
    data = b"".join(parts)
    del parts

    return await documents.upload(data, file.filename or "upload", file.content_type)


@router.get("/documents", response_model=list[Document])
async def list_documents(documents: DocumentServiceDep) -> list[Document]:
    return await documents.list_documents()


@router.get("/documents/{document_id}", response_model=Document, responses=_ERROR_RESPONSES)
async def get_document(document_id: str, documents: DocumentServiceDep) -> Document:
    return await documents.get_document(document_id)


@router.get(
    "/documents/{document_id}/download",
    response_model=DownloadUrlResponse,
    responses=_ERROR_RESPONSES,
)
async def get_download_url(document_id: str, documents: DocumentServiceDep) -> DownloadUrlResponse:
    return DownloadUrlResponse(url=await documents.get_download_url(document_id))


@router.delete("/documents/{document_id}", response_model=DeleteResponse, responses=_ERROR_RESPONSES)
async def delete_document(document_id: str, documents: DocumentServiceDep) -> DeleteResponse:
    await documents.delete_document(document_id)
    return DeleteResponse(success=True)


# ---------------------------------------------------------------------------
# Questions & answers
# ---------------------------------------------------------------------------


@router.post("/ask-question", response_model=AskQuestionResponse, responses=_ERROR_RESPONSES)
async def ask_question(body: AskQuestionRequest, qa: QAServiceDep) -> AskQuestionResponse:
    result = await qa.ask(body.question, document_id=body.document_id)
    return AskQuestionResponse.from_result(result)


@router.get("/answers/{answer_id}", response_model=AnswerResponse, responses=_ERROR_RESPONSES)
async def get_answer(answer_id: str, qa: QAServiceDep) -> AnswerResponse:
    return AnswerResponse.from_detail(await qa.get_answer(answer_id))


@router.get("/recent-answers", response_model=list[RecentAnswerResponse], responses=_ERROR_RESPONSES)
async def recent_answers(
    qa: QAServiceDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
) -> list[RecentAnswerResponse]:
    answers = await qa.recent_answers(limit)
    return [RecentAnswerResponse.from_answer(a) for a in answers]


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


@router.get("/jobs", response_model=list[IngestionJob])
async def list_jobs(queue: JobQueueDep) -> list[IngestionJob]:
    return queue.list_jobs()


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, store: DocumentStoreDep, queue: JobQueueDep) -> HealthResponse:
    """Report which providers are wired in and how many chunks are stored."""
    state = request.app.state
    embedder: IEmbeddingProvider = state.embedding_provider
    answerer: IAnswerProvider = state.answer_provider
    blobs: IBlobStore = state.blob_store

    providers = {
        "embedding": {
            "name": embedder.get_provider_name(),
            "available": embedder.is_available(),
            "dimension": embedder.get_dimension(),
        },
        "answer": {"name": answerer.get_provider_name(), "available": answerer.is_available()},
        "store": {"name": store.get_provider_name()},
        "blob": {"name": blobs.get_provider_name()},
    }
    healthy = embedder.is_available() and answerer.is_available()
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version=__version__,
        providers=providers,
        chunks=await store.count_chunks(),
        ingestion_workers_running=queue.running,
    )
