"""Custom exception hierarchy for docqa.

All application exceptions inherit from :class:`DocQAError`, which carries
an optional ``provider_name`` so error handlers can identify which external
service (e.g. "openai", "s3", "sqlite") caused the failure.

The hierarchy is organized by how the HTTP boundary reports it:

    DocQAError  (base -- catch-all for any docqa error)
    +-- ValidationError      (bad input: empty question, disallowed file type)  -> 400
    |   +-- FileTooLargeError  (upload over MAX_UPLOAD_BYTES)                   -> 413
    +-- NotFoundError        (missing document / answer)                        -> 404
    +-- ProviderError        (embedding or answer API failure)                  -> 500
    +-- ProcessingError      (text extraction / chunking failure)               -> 500
    +-- StorageError         (blob store or database failure)                   -> 500
    +-- ConfigurationError   (startup / missing or inconsistent config)         -> 500

Each class declares its ``status_code`` so the API middleware can map an
exception to a response without a lookup table.  Nothing in docqa retries
automatically; callers decide what to do with each class.
"""


class DocQAError(Exception):
    """Base exception for all docqa errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Embedding request failed``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Client errors
# ---------------------------------------------------------------------------

class ValidationError(DocQAError):
    """Raised when request input is invalid (empty question, bad file type)."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class FileTooLargeError(ValidationError):
    """Raised when an upload exceeds ``MAX_UPLOAD_BYTES``."""

    status_code = 413

    def __init__(
        self,
        message: str = "Uploaded file is too large",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(DocQAError):
    """Raised when a requested document or answer does not exist."""

    status_code = 404

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / pipeline errors
# ---------------------------------------------------------------------------

class ProviderError(DocQAError):
    """Raised when an embedding or answer-generation API call fails."""

    def __init__(
        self,
        message: str = "Model provider call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProcessingError(DocQAError):
    """Raised when text extraction or chunking of an uploaded file fails."""

    def __init__(
        self,
        message: str = "Document processing failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(DocQAError):
    """Raised when the blob store or the database fails."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(DocQAError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
