"""Application services: document lifecycle, ingestion and question answering."""

from docqa.services.document_service import DocumentService
from docqa.services.qa_service import QAService

__all__ = ["DocumentService", "QAService"]
