"""S3-compatible object storage (AWS S3, Cloudflare R2, LocalStack)."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


class StorageError(Exception):
    """Raised when the object store rejects or cannot serve a request."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class StoredObject:
    key: str
    url: str
    size: int
    content_type: str


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)


class StorageService:
    """
    Thin wrapper around a boto3 S3 client bound to one bucket.

    Objects are addressed by key; public URLs are built as {public_url}/{key}.
    """

    def __init__(self, client: Any, bucket: str, public_url: str) -> None:
        self.client = client
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> StorageService:
        secret = settings.S3_SECRET_ACCESS_KEY
        client = boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=secret.get_secret_value() if secret else None,
            config=Config(signature_version="s3v4"),
        )
        public_url = settings.S3_PUBLIC_URL
        if not public_url:
            base = (settings.S3_ENDPOINT_URL or "").rstrip("/")
            public_url = f"{base}/{settings.S3_BUCKET_NAME}"
        return cls(client=client, bucket=settings.S3_BUCKET_NAME, public_url=public_url)

    def upload(self, key: str, body: bytes, content_type: str) -> StoredObject:
        try:
            self.client.put_object(
                Bucket=self.bucket, Key=key, Body=body, ContentType=content_type
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to upload file %s: %s", key, e)
            raise StorageError(f"Failed to upload file: {e}") from e
        logger.info("File uploaded", extra={"storage_key": key, "size": len(body)})
        return StoredObject(
            key=key, url=self.get_public_url(key), size=len(body), content_type=content_type
        )

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to delete file %s: %s", key, e)
            raise StorageError(f"Failed to delete file: {e}") from e
        logger.info("File deleted", extra={"storage_key": key})

    def presigned_download_url(self, key: str, expires_in: int = 3600) -> str:
        return self._presign("get_object", {"Bucket": self.bucket, "Key": key}, expires_in)

    def presigned_upload_url(self, key: str, content_type: str, expires_in: int = 3600) -> str:
        params = {"Bucket": self.bucket, "Key": key, "ContentType": content_type}
        return self._presign("put_object", params, expires_in)

    def _presign(self, operation: str, params: dict[str, str], expires_in: int) -> str:
        try:
            return self.client.generate_presigned_url(
                operation, Params=params, ExpiresIn=expires_in
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to presign %s for %s: %s", operation, params["Key"], e)
            raise StorageError(f"Failed to generate presigned URL: {e}") from e

    def get_public_url(self, key: str) -> str:
        return f"{self.public_url}/{key}"

    @staticmethod
    def generate_key(folder: str, filename: str) -> str:
        """Build {folder}/{epoch millis}-{filename with unsafe characters replaced by _}."""
        timestamp = int(time.time() * 1000)
        return f"{folder}/{timestamp}-{sanitize_filename(filename)}"
