"""docqa FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from the environment / ``.env`` and configures
structured logging.

Provider selection happens exactly once, here:

    EMBEDDING_PROVIDER  openai | gemini            -> IEmbeddingProvider
    ANSWER_PROVIDER     anthropic | openai | gemini -> IAnswerProvider
    DATABASE_URL        sqlite:///... | postgresql://... -> IDocumentStore
    BLOB_BACKEND        local | s3                  -> IBlobStore

Everything downstream receives the chosen adapters through its constructor.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from docqa import __version__
from docqa.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    request_validation_handler,
)
from docqa.api.routes import router as api_router
from docqa.config.settings import Settings
from docqa.interfaces.answer_provider import IAnswerProvider
from docqa.interfaces.blob_store import IBlobStore
from docqa.interfaces.document_store import IDocumentStore
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.providers.answer import (
    AnthropicAnswerProvider,
    GeminiAnswerProvider,
    OpenAIAnswerProvider,
)
from docqa.providers.blob import LocalBlobStore, S3BlobStore
from docqa.providers.embedding import GeminiEmbeddingProvider, OpenAIEmbeddingProvider
from docqa.providers.store import PgVectorDocumentStore, SQLiteDocumentStore
from docqa.services.document_service import DocumentService
from docqa.services.ingestion import IngestionJobQueue, IngestionService, TextChunker
from docqa.services.qa_service import QAService
from docqa.utils.errors import ConfigurationError
from docqa.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_embedding_provider(
    app_settings: Settings, http_client: httpx.AsyncClient | None = None
) -> IEmbeddingProvider:
    """Build the configured embedding provider and check its dimension."""
    name = app_settings.embedding_provider
    provider: IEmbeddingProvider
    if name == "openai":
        provider = OpenAIEmbeddingProvider(settings=app_settings, http_client=http_client)
    elif name == "gemini":
        provider = GeminiEmbeddingProvider(settings=app_settings)
    else:
        raise ConfigurationError(message=f"Unknown EMBEDDING_PROVIDER {name!r}")

    if not provider.is_available():
        raise ConfigurationError(
            message=f"EMBEDDING_PROVIDER={name} selected but its API key is not set",
            provider_name=name,
        )
    if provider.get_dimension() != app_settings.embedding_dimension:
        raise ConfigurationError(
            message=(
                f"{provider.get_provider_name()} produces {provider.get_dimension()}-dimension "
                f"vectors but EMBEDDING_DIMENSION={app_settings.embedding_dimension}"
            ),
            provider_name=name,
        )
    return provider


def _build_answer_provider(
    app_settings: Settings, http_client: httpx.AsyncClient | None = None
) -> IAnswerProvider:
    name = app_settings.answer_provider
    provider: IAnswerProvider
    if name == "anthropic":
        provider = AnthropicAnswerProvider(settings=app_settings, http_client=http_client)
    elif name == "openai":
        provider = OpenAIAnswerProvider(settings=app_settings, http_client=http_client)
    elif name == "gemini":
        provider = GeminiAnswerProvider(settings=app_settings)
    else:
        raise ConfigurationError(message=f"Unknown ANSWER_PROVIDER {name!r}")

    if not provider.is_available():
        raise ConfigurationError(
            message=f"ANSWER_PROVIDER={name} selected but its API key is not set",
            provider_name=name,
        )
    return provider


def _sqlite_path(database_url: str) -> str:
    """``sqlite:///data/x.db`` -> ``data/x.db``; ``sqlite:////abs/x.db`` -> ``/abs/x.db``."""
    for prefix in ("sqlite+aiosqlite:///", "sqlite:///"):
        if database_url.startswith(prefix):
            return database_url[len(prefix):]
    return database_url


def _build_document_store(app_settings: Settings) -> IDocumentStore:
    url = app_settings.database_url
    if url.startswith(("postgresql", "postgres://")):
        return PgVectorDocumentStore(url, embedding_dimension=app_settings.embedding_dimension)
    if url.startswith("sqlite") or "://" not in url:
        return SQLiteDocumentStore(
            _sqlite_path(url), embedding_dimension=app_settings.embedding_dimension
        )
    raise ConfigurationError(message=f"Unsupported DATABASE_URL scheme: {url.split('://')[0]!r}")


def _build_blob_store(app_settings: Settings) -> IBlobStore:
    if app_settings.blob_backend == "s3":
        return S3BlobStore(settings=app_settings)
    return LocalBlobStore(app_settings.local_blob_dir)


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.provider_timeout_seconds)

    # -- Adapters --
    embedding_provider = _build_embedding_provider(app_settings, http_client)
    answer_provider = _build_answer_provider(app_settings, http_client)
    document_store = _build_document_store(app_settings)
    blob_store = _build_blob_store(app_settings)

    # -- Services --
    ingestion_service = IngestionService(
        document_store=document_store,
        embedding_provider=embedding_provider,
        chunker=TextChunker(
            max_chunk_size=app_settings.chunk_max_size,
            overlap=app_settings.chunk_overlap,
        ),
        embedding_dimension=app_settings.embedding_dimension,
    )
    job_queue = IngestionJobQueue(
        ingestion_service=ingestion_service,
        document_store=document_store,
        blob_store=blob_store,
        workers=app_settings.ingestion_workers,
        stale_after_seconds=app_settings.ingestion_stale_after_seconds,
        sweep_interval_seconds=app_settings.ingestion_sweep_interval_seconds,
    )
    document_service = DocumentService(
        document_store=document_store,
        blob_store=blob_store,
        job_queue=job_queue,
        download_url_expires_seconds=app_settings.download_url_expires_seconds,
    )
    qa_service = QAService(
        document_store=document_store,
        embedding_provider=embedding_provider,
        answer_provider=answer_provider,
        search_timeout_seconds=app_settings.search_timeout_seconds,
        default_limit=app_settings.retrieval_limit,
    )

    return {
        "http_client": http_client,
        "embedding_provider": embedding_provider,
        "answer_provider": answer_provider,
        "document_store": document_store,
        "blob_store": blob_store,
        "ingestion_service": ingestion_service,
        "job_queue": job_queue,
        "document_service": document_service,
        "qa_service": qa_service,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    app_settings: Settings = application.state.settings
    components = _build_all(app_settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    document_store: IDocumentStore = components["document_store"]
    job_queue: IngestionJobQueue = components["job_queue"]

    await document_store.initialize()
    job_queue.start()
    requeued = await job_queue.reconcile()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=app_settings.app_env,
        embedding_provider=components["embedding_provider"].get_provider_name(),
        answer_provider=components["answer_provider"].get_provider_name(),
        document_store=document_store.get_provider_name(),
        blob_store=components["blob_store"].get_provider_name(),
        requeued_documents=len(requeued),
    )

    yield

    await job_queue.stop()
    await document_store.close()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    app_settings = app_settings or settings
    application = FastAPI(
        title="docqa API",
        version=__version__,
        description=(
            "Upload PDF, DOCX or TXT documents and ask questions answered from "
            "their content by nearest-chunk retrieval and an LLM."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=app_settings.cors_origins)
    application.add_exception_handler(RequestValidationError, request_validation_handler)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def run() -> None:
    uvicorn.run(
        "docqa.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    run()
