"""Abstract base class for blob (object) storage.

A blob store keeps the original uploaded bytes.  It addresses each object by
a ``scheme://bucket/key`` URL which it builds on upload and parses on
download/delete; callers treat the URL as opaque.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   S3BlobStore     - boto3, scheme "s3"
#   LocalBlobStore  - local filesystem directory, scheme "local"
# Located in: docqa/providers/blob/
class IBlobStore(ABC):
    """Contract for storing and retrieving uploaded file bytes."""

    @abstractmethod
    async def upload(self, data: bytes, filename: str, content_type: str) -> str:
        """Store *data* and return its ``scheme://bucket/key`` URL.

        The key is ``documents/<upload-timestamp-ms>-<filename>``.

        Raises
        ------
        docqa.utils.errors.StorageError
            If the object could not be written.
        """

    @abstractmethod
    async def download(self, url: str) -> bytes:
        """Return the bytes stored at *url*.

        Raises
        ------
        docqa.utils.errors.StorageError
            If *url* is malformed or the object cannot be read.
        """

    @abstractmethod
    async def delete(self, url: str) -> None:
        """Delete the object at *url*.  Deleting a missing object is not an error."""

    @abstractmethod
    async def get_download_url(self, url: str, expires_in: int = 3600) -> str:
        """Return a URL a browser can fetch the object from directly."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"s3"`` or ``"local"``."""
