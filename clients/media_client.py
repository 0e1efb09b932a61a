"""
S3-compatible media storage for invoice and profile images.

Uploads are written under invoiceapp/<folder>/ and addressed by a stable
public URL. Callers only ever store the returned URL string.
"""

import logging
import re
from typing import Any
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from clients.vault_client import get_media_config

logger = logging.getLogger(__name__)

KEY_PREFIX = "invoiceapp"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class MediaUploadError(Exception):
    """Upload rejected or storage backend failed."""


class MediaClient:
    """
    Media host client.

    Usage:
        media = MediaClient()
        url = media.upload(data, folder="logos", filename="logo.png", content_type="image/png")
    """

    def __init__(
        self,
        config: dict[str, str] | None = None,
        client: Any = None,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ):
        """
        Args:
            config: bucket, region, endpoint_url, access_key, secret_key,
                public_base_url. If None, fetched from Vault.
            client: Preconfigured boto3 S3 client (tests)
            max_bytes: Largest accepted upload
        """
        config = config or get_media_config()
        self.bucket = config["bucket"]
        self.public_base_url = config["public_base_url"].rstrip("/")
        self.max_bytes = max_bytes
        self._client = client or boto3.client(
            "s3",
            endpoint_url=config.get("endpoint_url") or None,
            region_name=config.get("region") or None,
            aws_access_key_id=config.get("access_key"),
            aws_secret_access_key=config.get("secret_key"),
        )

    def build_key(self, folder: str, filename: str | None) -> str:
        """Storage key for a new object in folder."""
        safe_name = _UNSAFE_FILENAME_CHARS.sub("_", filename or "upload").strip("_") or "upload"
        return f"{KEY_PREFIX}/{folder}/{uuid4().hex}_{safe_name}"

    def upload(
        self,
        data: bytes,
        folder: str,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> str:
        """
        Store an image and return its public URL.

        Raises:
            MediaUploadError: Empty, oversized or non-image upload, or the
                storage backend failed
        """
        if not data:
            raise MediaUploadError("Upload is empty")
        if len(data) > self.max_bytes:
            raise MediaUploadError(
                f"Upload is {len(data)} bytes; limit is {self.max_bytes} bytes"
            )
        if not content_type or not content_type.startswith("image/"):
            raise MediaUploadError("Please upload a valid image")

        key = self.build_key(folder, filename)
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl="public, max-age=86400",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Media upload failed for {key}: {e}")
            raise MediaUploadError(f"Media upload failed: {e}") from e

        logger.info(f"Uploaded {len(data)} bytes to {key}")
        return f"{self.public_base_url}/{key}"
