"""Media collaborator backed by Cloudflare R2 (S3-compatible API)."""

from __future__ import annotations

import asyncio
import logging

import aioboto3
from botocore.exceptions import ClientError

from backend.config import settings
from engine.kernel.media import MediaStore

logger = logging.getLogger(__name__)

# Retryable S3 error codes
_RETRYABLE_CODES = {"RequestTimeout", "ServiceUnavailable", "ThrottlingException", "Throttling", "SlowDown"}


class R2MediaStore(MediaStore):
    """
    Media ids are object keys in the media bucket.
    Display URLs are built from the public base URL, no request needed.
    """

    def __init__(self) -> None:
        self.session = aioboto3.Session()
        self.endpoint = settings.R2_ENDPOINT
        self.access_key = settings.R2_ACCESS_KEY
        self.secret_key = settings.R2_SECRET_KEY
        self.bucket = settings.R2_MEDIA_BUCKET
        self.public_url = settings.MEDIA_PUBLIC_URL.rstrip("/")
        self.placeholder_url = settings.PLACEHOLDER_IMAGE_URL

    def resolve_display_url(self, media_id: str) -> str:
        return f"{self.public_url}/{media_id}"

    async def release(self, media_id: str, max_retries: int = 1) -> None:
        """
        Delete the object behind a media id, retrying transient failures.

        Args:
            media_id: Object key in the media bucket
            max_retries: Number of retries on transient failures (default 1)
        """
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                async with self.session.client(
                    "s3",
                    endpoint_url=self.endpoint,
                    aws_access_key_id=self.access_key,
                    aws_secret_access_key=self.secret_key,
                ) as s3:
                    await s3.delete_object(Bucket=self.bucket, Key=media_id)
                return
            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code", "")
                if error_code in _RETRYABLE_CODES and attempt < max_retries:
                    wait_time = 2**attempt
                    logger.warning("R2 delete error (attempt %d), retrying in %ds: %s", attempt + 1, wait_time, e)
                    await asyncio.sleep(wait_time)
                    last_error = e
                else:
                    raise

        raise last_error  # type: ignore[misc]
