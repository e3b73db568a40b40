"""Utility modules for docqa.

- **errors** -- Domain exception hierarchy rooted at DocQAError; each class
  carries the HTTP status the API boundary reports for it.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from docqa.utils.errors import (
    ConfigurationError,
    DocQAError,
    FileTooLargeError,
    NotFoundError,
    ProcessingError,
    ProviderError,
    StorageError,
    ValidationError,
)
from docqa.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DocQAError",
    "FileTooLargeError",
    "NotFoundError",
    "ProcessingError",
    "ProviderError",
    "StorageError",
    "ValidationError",
    "configure_logging",
    "get_logger",
]
