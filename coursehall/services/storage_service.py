"""
Storage Service

Presigned download URLs for lesson attachments on S3-compatible storage
(Cloudflare R2, DO Spaces, AWS S3). When storage is not configured the
stored URL is served as-is.
"""

import logging
from functools import lru_cache
from typing import Any, Optional
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from coursehall.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def extract_key(url_or_key: str) -> str:
    """
    Get the object key from a stored attachment URL.

    Plain keys (no scheme) are returned unchanged.
    """
    if "://" not in url_or_key:
        return url_or_key
    return urlparse(url_or_key).path.lstrip("/")


class StorageService:
    """S3-compatible storage client used for attachment downloads."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._client: Optional[Any] = None

    @property
    def is_configured(self) -> bool:
        return self._settings.storage_configured

    def _get_client(self) -> Any:
        if self._client is None:
            endpoint = self._settings.S3_ENDPOINT
            if "://" not in endpoint:
                endpoint = f"https://{endpoint}"

            self._client = boto3.client(
                "s3",
                endpoint_url=endpoint,
                region_name=self._settings.S3_REGION,
                aws_access_key_id=self._settings.S3_ACCESS_KEY,
                aws_secret_access_key=self._settings.S3_SECRET_KEY,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    def presigned_url(self, url_or_key: str, expires_in: Optional[int] = None) -> str:
        """
        Get a time-limited download URL for an attachment.

        Args:
            url_or_key: Stored attachment URL or bare object key.
            expires_in: Lifetime in seconds (defaults to ATTACHMENT_URL_TTL).

        Returns:
            Presigned URL, or the stored URL if storage is not configured
            or presigning fails.
        """
        if not self.is_configured:
            return url_or_key

        try:
            return self._get_client().generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self._settings.S3_BUCKET,
                    "Key": extract_key(url_or_key),
                },
                ExpiresIn=expires_in or self._settings.ATTACHMENT_URL_TTL,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Presigning attachment %s failed: %s", url_or_key, e)
            return url_or_key


@lru_cache
def get_storage_service() -> StorageService:
    """Get the process-wide storage client (FastAPI dependency)."""
    return StorageService(get_settings())
