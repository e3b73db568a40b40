"""Unit tests for blob URL helpers and both blob store adapters."""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from docqa.config.settings import Settings
from docqa.providers.blob.blob_url import build_key, build_url, parse_url
from docqa.providers.blob.local_blob_store import LocalBlobStore
from docqa.providers.blob.s3_blob_store import S3BlobStore
from docqa.utils.errors import ConfigurationError, StorageError


# ======================================================================
# blob_url
# ======================================================================


class TestBlobUrl:
    def test_build_key(self) -> None:
        assert build_key("report.pdf", timestamp_ms=1712345678901) == (
            "documents/1712345678901-report.pdf"
        )

    def test_build_key_strips_separators(self) -> None:
        key = build_key("../../etc/passwd", timestamp_ms=1)
        assert key == "documents/1-.._.._etc_passwd"

    def test_parse_keeps_slashes_in_key(self) -> None:
        location = parse_url("s3://my-bucket/documents/1-a.pdf")
        assert location.scheme == "s3"
        assert location.bucket == "my-bucket"
        assert location.key == "documents/1-a.pdf"

    def test_build_then_parse(self) -> None:
        url = build_url("s3", "b", "documents/2-x.txt")
        assert parse_url(url, expected_scheme="s3").key == "documents/2-x.txt"

    @pytest.mark.parametrize(
        "url",
        ["no-scheme/key", "s3://bucket-only", "s3:///key", "s3://bucket/", "://bucket/key"],
    )
    def test_malformed(self, url: str) -> None:
        with pytest.raises(StorageError):
            parse_url(url)

    def test_scheme_mismatch(self) -> None:
        with pytest.raises(StorageError, match="scheme"):
            parse_url("local://blobs/documents/1-a.txt", expected_scheme="s3")


# ======================================================================
# LocalBlobStore
# ======================================================================


class TestLocalBlobStore:
    @pytest.mark.asyncio
    async def test_upload_download_delete(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path)
        url = await store.upload(b"hello", "notes.txt", "text/plain")

        assert url.startswith("local://blobs/documents/")
        assert url.endswith("-notes.txt")
        assert await store.download(url) == b"hello"

        await store.delete(url)
        with pytest.raises(StorageError):
            await store.download(url)

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path)
        await store.delete("local://blobs/documents/1-gone.txt")

    @pytest.mark.asyncio
    async def test_download_url_is_file_uri(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path)
        url = await store.upload(b"x", "a.txt", "text/plain")
        link = await store.get_download_url(url)
        assert link.startswith("file://")
        assert link.endswith("-a.txt")

    @pytest.mark.asyncio
    async def test_rejects_foreign_urls(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path)
        with pytest.raises(StorageError):
            await store.download("s3://bucket/documents/1-a.txt")
        with pytest.raises(StorageError):
            await store.download("local://other/documents/1-a.txt")

    @pytest.mark.asyncio
    async def test_rejects_path_escape(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path / "root")
        with pytest.raises(StorageError, match="escapes"):
            await store.download("local://blobs/../../outside.txt")

    def test_provider_name(self, tmp_path: Path) -> None:
        assert LocalBlobStore(tmp_path).get_provider_name() == "local"


# ======================================================================
# S3BlobStore
# ======================================================================


def _s3_settings(**overrides) -> Settings:  # noqa: ANN003
    values = {"blob_backend": "s3", "s3_bucket_name": "docs-bucket", **overrides}
    return Settings(_env_file=None, **values)


def _client_error(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, operation)


class TestS3BlobStore:
    def test_requires_bucket(self) -> None:
        with pytest.raises(ConfigurationError):
            S3BlobStore(settings=_s3_settings(s3_bucket_name=""))

    @pytest.mark.asyncio
    async def test_upload(self) -> None:
        client = MagicMock()
        store = S3BlobStore(settings=_s3_settings(), client=client)

        url = await store.upload(b"%PDF-1.4", "report.pdf", "application/pdf")

        assert url.startswith("s3://docs-bucket/documents/")
        assert url.endswith("-report.pdf")
        kwargs = client.upload_fileobj.call_args.kwargs
        assert kwargs["Bucket"] == "docs-bucket"
        assert kwargs["Key"] == url.removeprefix("s3://docs-bucket/")
        assert kwargs["ExtraArgs"] == {"ContentType": "application/pdf"}
        assert kwargs["Fileobj"].read() == b"%PDF-1.4"

    @pytest.mark.asyncio
    async def test_download(self) -> None:
        client = MagicMock()
        client.get_object.return_value = {"Body": io.BytesIO(b"payload")}
        store = S3BlobStore(settings=_s3_settings(), client=client)

        data = await store.download("s3://docs-bucket/documents/1-a.txt")

        assert data == b"payload"
        client.get_object.assert_called_once_with(Bucket="docs-bucket", Key="documents/1-a.txt")

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        client = MagicMock()
        store = S3BlobStore(settings=_s3_settings(), client=client)
        await store.delete("s3://docs-bucket/documents/1-a.txt")
        client.delete_object.assert_called_once_with(Bucket="docs-bucket", Key="documents/1-a.txt")

    @pytest.mark.asyncio
    async def test_presigned_url(self) -> None:
        client = MagicMock()
        client.generate_presigned_url.return_value = "https://signed.example/a.txt?sig=1"
        store = S3BlobStore(settings=_s3_settings(), client=client)

        link = await store.get_download_url("s3://docs-bucket/documents/1-a.txt", expires_in=120)

        assert link == "https://signed.example/a.txt?sig=1"
        client.generate_presigned_url.assert_called_once_with(
            ClientMethod="get_object",
            Params={"Bucket": "docs-bucket", "Key": "documents/1-a.txt"},
            ExpiresIn=120,
        )

    @pytest.mark.asyncio
    async def test_client_error_wrapped(self) -> None:
        client = MagicMock()
        client.get_object.side_effect = _client_error("GetObject")
        store = S3BlobStore(settings=_s3_settings(), client=client)

        with pytest.raises(StorageError) as exc_info:
            await store.download("s3://docs-bucket/documents/1-a.txt")
        assert exc_info.value.provider_name == "s3"

    @pytest.mark.asyncio
    async def test_rejects_non_s3_url(self) -> None:
        store = S3BlobStore(settings=_s3_settings(), client=MagicMock())
        with pytest.raises(StorageError):
            await store.delete("local://blobs/documents/1-a.txt")
