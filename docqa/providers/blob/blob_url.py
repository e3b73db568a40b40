"""Build and parse ``scheme://bucket/key`` blob URLs.

Both blob store implementations hand out URLs in this shape and accept only
URLs in this shape back.  The key may itself contain slashes
(``documents/1712345678901-report.pdf``); only the first slash after the
bucket separates bucket from key.
"""

from __future__ import annotations

import time
from typing import NamedTuple

from docqa.utils.errors import StorageError

KEY_PREFIX = "documents"


class BlobLocation(NamedTuple):
    scheme: str
    bucket: str
    key: str


def build_key(filename: str, timestamp_ms: int | None = None) -> str:
    """Return ``documents/<timestamp-ms>-<filename>``.

    Path separators in *filename* are replaced so a crafted name cannot
    escape the ``documents/`` prefix.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    safe_name = filename.replace("/", "_").replace("\\", "_") or "upload"
    return f"{KEY_PREFIX}/{timestamp_ms}-{safe_name}"


def build_url(scheme: str, bucket: str, key: str) -> str:
    return f"{scheme}://{bucket}/{key}"


def parse_url(url: str, expected_scheme: str | None = None) -> BlobLocation:
    """Split *url* into scheme, bucket and key.

    Raises
    ------
    StorageError
        If the URL has no ``://``, no bucket, no ``/`` after the bucket, an
        empty key, or a scheme other than *expected_scheme*.
    """
    scheme, sep, rest = url.partition("://")
    if not sep or not scheme:
        raise StorageError(message=f"Invalid blob URL format: {url!r}")
    if expected_scheme is not None and scheme != expected_scheme:
        raise StorageError(
            message=f"Blob URL scheme {scheme!r} does not match {expected_scheme!r}: {url!r}"
        )
    bucket, slash, key = rest.partition("/")
    if not bucket or not slash or not key:
        raise StorageError(message=f"Invalid blob URL format: {url!r}")
    return BlobLocation(scheme=scheme, bucket=bucket, key=key)
