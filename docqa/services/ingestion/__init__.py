"""Document ingestion: text extraction, chunking, embedding, storage and the background job queue."""

from docqa.services.ingestion.chunker import TextChunker
from docqa.services.ingestion.extractor import TextExtractor
from docqa.services.ingestion.ingestion_service import IngestionService
from docqa.services.ingestion.job_queue import IngestionJobQueue

__all__ = ["IngestionJobQueue", "IngestionService", "TextChunker", "TextExtractor"]
