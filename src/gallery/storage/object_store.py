"""
Object storage for uploaded assets (plugin images).
"""

import asyncio
import io
from abc import ABC, abstractmethod

from minio import Minio

from gallery.platform.config import settings
from gallery.platform.logging import get_logger

logger = get_logger(__name__)


class ObjectStore(ABC):
    """Abstract interface for blob storage."""

    @abstractmethod
    async def upload(self, bucket: str, name: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Store ``data`` and return its public URL."""
        pass

    @abstractmethod
    async def remove(self, bucket: str, name: str) -> None:
        """Delete a stored object."""
        pass


class MinioObjectStore(ObjectStore):
    """MinIO implementation of ObjectStore. The client is blocking, so calls run in a thread."""

    def __init__(self, client: Minio | None = None, public_url: str | None = None):
        self.client = client or Minio(
            settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
        )
        self.public_url = (public_url or settings.MINIO_PUBLIC_URL).rstrip("/")

    def object_url(self, bucket: str, name: str) -> str:
        return f"{self.public_url}/{bucket}/{name}"

    def _put(self, bucket: str, name: str, data: bytes, content_type: str) -> None:
        if not self.client.bucket_exists(bucket):
            self.client.make_bucket(bucket)
        self.client.put_object(bucket, name, io.BytesIO(data), length=len(data), content_type=content_type)

    async def upload(self, bucket: str, name: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        await asyncio.to_thread(self._put, bucket, name, data, content_type)
        logger.info("object_uploaded", bucket=bucket, name=name, size=len(data))
        return self.object_url(bucket, name)

    async def remove(self, bucket: str, name: str) -> None:
        await asyncio.to_thread(self.client.remove_object, bucket, name)
        logger.info("object_removed", bucket=bucket, name=name)
