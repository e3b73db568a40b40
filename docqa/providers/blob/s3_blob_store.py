"""S3 blob store adapter.

Wraps a boto3 S3 client to implement :class:`IBlobStore`.  Works against AWS
or any S3-compatible endpoint (MinIO, R2) via ``S3_ENDPOINT_URL``.  boto3 is
synchronous, so every call runs in a worker thread through
:func:`asyncio.to_thread`.
"""

from __future__ import annotations

import asyncio
import io

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from docqa.config.settings import Settings
from docqa.interfaces.blob_store import IBlobStore
from docqa.providers.blob.blob_url import build_key, build_url, parse_url
from docqa.utils.errors import ConfigurationError, StorageError

logger = structlog.get_logger(logger_name=__name__)

_SCHEME = "s3"


class S3BlobStore(IBlobStore):
    """Blob store backed by an S3 bucket."""

    def __init__(self, settings: Settings, client=None) -> None:  # noqa: ANN001
        if not settings.s3_bucket_name:
            raise ConfigurationError(
                message="Missing S3 configuration. Please set S3_BUCKET_NAME.",
                provider_name=_SCHEME,
            )
        self._bucket = settings.s3_bucket_name

        if client is not None:
            self._client = client
            return

        client_kwargs: dict = {
            "region_name": settings.s3_region,
            "config": Config(
                signature_version="s3v4",
                connect_timeout=settings.provider_timeout_seconds,
                read_timeout=settings.provider_timeout_seconds,
            ),
        }
        if settings.s3_endpoint_url:
            client_kwargs["endpoint_url"] = settings.s3_endpoint_url
        # Without explicit keys boto3 falls back to its default credential
        # chain (env, shared config, instance role).
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
            client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
        self._client = boto3.client("s3", **client_kwargs)

    async def upload(self, data: bytes, filename: str, content_type: str) -> str:
        key = build_key(filename)
        try:
            await asyncio.to_thread(
                self._client.upload_fileobj,
                Fileobj=io.BytesIO(data),
                Bucket=self._bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                message=f"S3 upload failed for {key!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        url = build_url(_SCHEME, self._bucket, key)
        logger.info("blob_uploaded", url=url, bytes=len(data))
        return url

    async def download(self, url: str) -> bytes:
        location = parse_url(url, expected_scheme=_SCHEME)
        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=location.bucket, Key=location.key
            )
            return await asyncio.to_thread(response["Body"].read)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                message=f"S3 download failed for {url!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def delete(self, url: str) -> None:
        location = parse_url(url, expected_scheme=_SCHEME)
        try:
            await asyncio.to_thread(
                self._client.delete_object, Bucket=location.bucket, Key=location.key
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                message=f"S3 delete failed for {url!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("blob_deleted", url=url)

    async def get_download_url(self, url: str, expires_in: int = 3600) -> str:
        location = parse_url(url, expected_scheme=_SCHEME)
        try:
            return await asyncio.to_thread(
                self._client.generate_presigned_url,
                ClientMethod="get_object",
                Params={"Bucket": location.bucket, "Key": location.key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                message=f"Could not presign {url!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return _SCHEME
