"""Document lifecycle: upload, listing, download links and deletion.

Upload order matters: the blob is written first, then the ``processing``
document row, then the ingestion job is queued.  A failure before the row
exists leaves at most an orphaned blob, never a document pointing at
nothing.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog

from docqa.models import MIME_TO_FILE_TYPE, Document, DocumentStatus
from docqa.utils.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from docqa.interfaces.blob_store import IBlobStore
    from docqa.interfaces.document_store import IDocumentStore
    from docqa.services.ingestion.job_queue import IngestionJobQueue

logger = structlog.get_logger(logger_name=__name__)


class DocumentService:
    """Coordinates the blob store, document store and ingestion queue."""

    def __init__(
        self,
        document_store: IDocumentStore,
        blob_store: IBlobStore,
        job_queue: IngestionJobQueue,
        download_url_expires_seconds: int = 3600,
    ) -> None:
        self._store = document_store
        self._blobs = blob_store
        self._queue = job_queue
        self._expires = download_url_expires_seconds

    async def upload(self, data: bytes, filename: str, content_type: str | None) -> Document:
        """Store an uploaded file and queue it for ingestion.

        Raises
        ------
        ValidationError
            If *content_type* is not PDF, DOCX or plain text, or the file is empty.
        StorageError
            If the blob or the document row could not be written.
        """
        mime = (content_type or "").split(";")[0].strip().lower()
        file_type = MIME_TO_FILE_TYPE.get(mime)
        if file_type is None:
            raise ValidationError(
                message=f"Unsupported file type {content_type!r}. Please upload PDF, DOCX, or TXT files."
            )
        if not data:
            raise ValidationError(message="Uploaded file is empty")

        filename = filename or "upload"
        blob_url = await self._blobs.upload(data, filename, mime)
        document = await self._store.create_document(
            Document(
                id=str(uuid.uuid4()),
                filename=filename,
                file_type=file_type,
                blob_url=blob_url,
                status=DocumentStatus.PROCESSING,
            )
        )
        self._queue.enqueue(document.id, file_type, file_bytes=data)
        logger.info(
            "document_uploaded",
            document_id=document.id,
            filename=filename,
            file_type=file_type.value,
            bytes=len(data),
        )
        return document

    async def list_documents(self) -> list[Document]:
        return await self._store.list_documents()

    async def get_document(self, document_id: str) -> Document:
        document = await self._store.get_document(document_id)
        if document is None:
            raise NotFoundError(message=f"Document {document_id} not found")
        return document

    async def get_download_url(self, document_id: str) -> str:
        document = await self.get_document(document_id)
        return await self._blobs.get_download_url(document.blob_url, expires_in=self._expires)

    async def delete_document(self, document_id: str) -> None:
        """Delete the blob, then the document with its chunks and answers."""
        document = await self.get_document(document_id)
        await self._blobs.delete(document.blob_url)
        await self._store.delete_document(document_id)
        logger.info("document_removed", document_id=document_id, filename=document.filename)
