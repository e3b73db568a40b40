"""Blob store implementations (S3 via boto3, local filesystem)."""

from docqa.providers.blob.local_blob_store import LocalBlobStore
from docqa.providers.blob.s3_blob_store import S3BlobStore

__all__ = ["LocalBlobStore", "S3BlobStore"]
