"""
S3-compatible object store client.

Streams uploaded images and relayed generation output into the public
bucket and composes the public URLs they are served from. Works against
AWS S3, Cloudflare R2 and MinIO through a custom endpoint.

Dependencies: boto3
System role: Object store adapter
"""

import asyncio
import logging
from typing import IO

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from media_studio.configs.object_store import ObjectStoreSettings
from media_studio.core.exceptions import ObjectStoreError

logger = logging.getLogger(__name__)


class ObjectStore:
    """Writes objects into the media bucket and builds their public URLs."""

    def __init__(self, bucket: str, public_base_url: str, s3_client=None) -> None:
        """
        Initialize object store.

        Args:
            bucket: Target bucket name
            public_base_url: Base URL the bucket is publicly served under
            s3_client: Boto3 S3 client
        """
        if not bucket:
            raise ValueError("bucket is required")
        self._bucket = bucket
        self._public_base_url = public_base_url.rstrip("/")
        self._s3_client = s3_client or boto3.client("s3")

    @classmethod
    def from_settings(cls, settings: ObjectStoreSettings) -> "ObjectStore":
        """Build a store with a client pointed at the configured endpoint."""
        session = boto3.session.Session(
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
            region_name=settings.region,
        )
        client = session.client(
            "s3",
            endpoint_url=settings.endpoint_url,
            config=BotoConfig(
                s3={"addressing_style": "path"},
                signature_version="s3v4",
            ),
        )
        return cls(settings.bucket, settings.public_url, s3_client=client)

    def public_url(self, key: str) -> str:
        """Public URL of an object key."""
        return f"{self._public_base_url}/{key}"

    async def upload_stream(self, key: str, fileobj: IO[bytes], content_type: str) -> None:
        """
        Stream a file object into the bucket.

        Uses managed (multipart) upload so the body is read in chunks and
        never held in memory as a whole.

        Args:
            key: Destination object key
            fileobj: Readable binary file object positioned at the start
            content_type: MIME type stored with the object

        Raises:
            ObjectStoreError: If the write fails
        """
        logger.debug(
            f"{__name__}:upload_stream - Uploading to object store "
            f"key={key}, content_type={content_type}"
        )
        try:
            await asyncio.to_thread(
                self._s3_client.upload_fileobj,
                fileobj,
                self._bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                f"{__name__}:upload_stream - {type(e).__name__}: {e}",
                exc_info=True,
            )
            raise ObjectStoreError(f"Failed to write {key} to object store: {e}", key=key) from e

        logger.info(
            f"{__name__}:upload_stream - Successfully uploaded "
            f"key={key}, content_type={content_type}"
        )
