"""Unit tests for DocumentService upload ordering, MIME checks and deletion."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from docqa.models import DocumentStatus, FileType
from docqa.providers.blob.local_blob_store import LocalBlobStore
from docqa.providers.store.sqlite_document_store import SQLiteDocumentStore
from docqa.services.document_service import DocumentService
from docqa.services.ingestion.job_queue import IngestionJobQueue
from docqa.utils.errors import NotFoundError, StorageError, ValidationError

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _service(store, blobs, queue=None) -> DocumentService:  # noqa: ANN001
    return DocumentService(
        document_store=store,
        blob_store=blobs,
        job_queue=queue or MagicMock(spec=IngestionJobQueue),
    )


class TestUpload:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("mime", "file_type"),
        [("application/pdf", FileType.PDF), (DOCX_MIME, FileType.DOCX), ("text/plain", FileType.TXT)],
    )
    async def test_accepted_types(
        self,
        document_store: SQLiteDocumentStore,
        blob_store: LocalBlobStore,
        mime: str,
        file_type: FileType,
    ) -> None:
        queue = MagicMock(spec=IngestionJobQueue)
        service = _service(document_store, blob_store, queue)

        doc = await service.upload(b"payload", "file.bin", mime)

        assert doc.file_type is file_type
        assert doc.status is DocumentStatus.PROCESSING
        assert await blob_store.download(doc.blob_url) == b"payload"
        assert await document_store.get_document(doc.id) is not None
        queue.enqueue.assert_called_once_with(doc.id, file_type, file_bytes=b"payload")

    @pytest.mark.asyncio
    async def test_rejected_type_writes_nothing(
        self, document_store: SQLiteDocumentStore, blob_store: LocalBlobStore
    ) -> None:
        queue = MagicMock(spec=IngestionJobQueue)
        service = _service(document_store, blob_store, queue)

        with pytest.raises(ValidationError):
            await service.upload(b"x", "a.csv", "text/csv")
        with pytest.raises(ValidationError):
            await service.upload(b"x", "a", None)

        assert await document_store.list_documents() == []
        queue.enqueue.assert_not_called()

    @pytest.mark.asyncio
    async def test_blob_failure_leaves_no_document(
        self, document_store: SQLiteDocumentStore
    ) -> None:
        blobs = MagicMock()
        blobs.upload = AsyncMock(side_effect=StorageError(message="bucket unreachable"))
        service = _service(document_store, blobs)

        with pytest.raises(StorageError):
            await service.upload(b"x", "a.txt", "text/plain")
        assert await document_store.list_documents() == []


class TestLookupAndDelete:
    @pytest.mark.asyncio
    async def test_get_missing(
        self, document_store: SQLiteDocumentStore, blob_store: LocalBlobStore
    ) -> None:
        service = _service(document_store, blob_store)
        with pytest.raises(NotFoundError):
            await service.get_document("nope")
        with pytest.raises(NotFoundError):
            await service.get_download_url("nope")

    @pytest.mark.asyncio
    async def test_delete_removes_blob_and_row(
        self, document_store: SQLiteDocumentStore, blob_store: LocalBlobStore
    ) -> None:
        service = _service(document_store, blob_store)
        doc = await service.upload(b"The sky is blue.", "sky.txt", "text/plain")

        await service.delete_document(doc.id)

        assert await document_store.get_document(doc.id) is None
        with pytest.raises(StorageError):
            await blob_store.download(doc.blob_url)
