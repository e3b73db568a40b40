"""Filesystem blob store for local development and tests.

Objects live under ``<LOCAL_BLOB_DIR>/<key>``.  URLs use the ``local``
scheme with the fixed bucket name ``blobs``, e.g.
``local://blobs/documents/1712345678901-notes.txt``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from docqa.interfaces.blob_store import IBlobStore
from docqa.providers.blob.blob_url import build_key, build_url, parse_url
from docqa.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_SCHEME = "local"
_BUCKET = "blobs"


class LocalBlobStore(IBlobStore):
    """Blob store that writes objects to a local directory."""

    def __init__(self, root_dir: str | Path) -> None:
        self._root = Path(root_dir).resolve()

    def _path_for(self, url: str) -> Path:
        location = parse_url(url, expected_scheme=_SCHEME)
        if location.bucket != _BUCKET:
            raise StorageError(message=f"Unknown local bucket {location.bucket!r}", provider_name=_SCHEME)
        path = (self._root / location.key).resolve()
        if not path.is_relative_to(self._root):
            raise StorageError(message=f"Blob key escapes storage root: {url!r}", provider_name=_SCHEME)
        return path

    async def upload(self, data: bytes, filename: str, content_type: str) -> str:
        key = build_key(filename)
        path = self._root / key
        try:
            await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as exc:
            raise StorageError(message=f"Local write failed for {key!r}: {exc}", provider_name=_SCHEME) from exc
        url = build_url(_SCHEME, _BUCKET, key)
        logger.info("blob_uploaded", url=url, bytes=len(data), content_type=content_type)
        return url

    async def download(self, url: str) -> bytes:
        path = self._path_for(url)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise StorageError(message=f"Local read failed for {url!r}: {exc}", provider_name=_SCHEME) from exc

    async def delete(self, url: str) -> None:
        path = self._path_for(url)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            raise StorageError(message=f"Local delete failed for {url!r}: {exc}", provider_name=_SCHEME) from exc
        logger.info("blob_deleted", url=url)

    async def get_download_url(self, url: str, expires_in: int = 3600) -> str:
        # No signing for local files; a file:// URI is enough for development.
        return self._path_for(url).as_uri()

    def get_provider_name(self) -> str:
        return _SCHEME
