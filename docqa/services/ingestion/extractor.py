"""Plain-text extraction from uploaded file bytes.

# ─── DESIGN ────────────────────────────────────────────────────────────
#
# One extractor per supported file type, chosen by a dispatch table:
#   PDF   → text via PyMuPDF (fitz), pages joined by newlines
#   DOCX  → text via python-docx, non-empty paragraphs joined by blank lines
#   TXT   → UTF-8 decode (BOM stripped, invalid bytes replaced)
#
# PyMuPDF and python-docx are synchronous and CPU-bound, so they run in a
# worker thread via asyncio.to_thread.  Any parser failure surfaces as
# ProcessingError so the ingestion pipeline can mark the document failed.
#
# Pattern: Strategy (file type → extractor function dispatch).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import io
import zipfile
from collections.abc import Callable

import docx
import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog
from docx.opc.exceptions import PackageNotFoundError

from docqa.models import FileType
from docqa.utils.errors import ProcessingError

logger = structlog.get_logger(logger_name=__name__)


def _extract_pdf(data: bytes) -> str:
    try:
        with fitz.open(stream=data, filetype="pdf") as pdf:
            pages = [page.get_text() for page in pdf]
    except (RuntimeError, ValueError) as exc:
        # fitz.FileDataError / EmptyFileError derive from RuntimeError.
        raise ProcessingError(message=f"Could not read PDF: {exc}", provider_name="pymupdf") from exc
    logger.debug("pdf_extracted", pages=len(pages))
    return "\n".join(pages)


def _extract_docx(data: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise ProcessingError(message=f"Could not read DOCX: {exc}", provider_name="python-docx") from exc
    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    logger.debug("docx_extracted", paragraphs=len(paragraphs))
    return "\n\n".join(paragraphs)


def _extract_txt(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="replace")


_EXTRACTORS: dict[FileType, Callable[[bytes], str]] = {
    FileType.PDF: _extract_pdf,
    FileType.DOCX: _extract_docx,
    FileType.TXT: _extract_txt,
}


class TextExtractor:
    """Converts raw upload bytes into plain text according to file type."""

    async def extract(self, data: bytes, file_type: FileType) -> str:
        """Return the text content of *data*.

        Raises
        ------
        ProcessingError
            If *file_type* is unsupported or the file cannot be parsed.
        """
        extractor = _EXTRACTORS.get(file_type)
        if extractor is None:
            raise ProcessingError(message=f"Unsupported file type: {file_type}")
        if file_type is FileType.TXT:
            return extractor(data)
        return await asyncio.to_thread(extractor, data)
