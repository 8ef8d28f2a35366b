from typing import List, Optional, Sequence

import redis.asyncio as redis

from gallery.cache.base import Cache
from gallery.platform.config import settings
from gallery.platform.logging import get_logger

logger = get_logger(__name__)


class RedisCache(Cache):
    """Redis implementation of the ephemeral cache using redis.asyncio."""

    def __init__(
        self,
        redis_url: str | None = None,
        socket_timeout: float | None = None,
    ):
        self.redis_url = redis_url or settings.REDIS_EPHEMERAL_URL
        self.socket_timeout = socket_timeout or settings.REDIS_SOCKET_TIMEOUT
        self.client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        if self.client:
            return

        logger.info("connecting_to_redis", url=self.redis_url)
        self.client = redis.from_url(
            self.redis_url,
            decode_responses=True,
            socket_timeout=self.socket_timeout,
            socket_connect_timeout=self.socket_timeout,
        )
        await self.client.ping()
        logger.info("redis_connected")

    async def disconnect(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("redis_disconnected")

    async def health_check(self) -> bool:
        if not self.client:
            return False
        try:
            return bool(await self.client.ping())
        except Exception as e:
            logger.error("redis_health_check_failed", error=str(e))
            return False

    def _require_client(self) -> redis.Redis:
        if not self.client:
            raise ConnectionError("Redis is not connected. Call connect() first.")
        return self.client

    async def get(self, key: str) -> Optional[str]:
        return await self._require_client().get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._require_client().set(key, value, ex=ttl_seconds)

    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        if not keys:
            return []
        return list(await self._require_client().mget(list(keys)))

    async def delete(self, key: str) -> None:
        await self._require_client().delete(key)

    async def keys(self, pattern: str) -> List[str]:
        # SCAN instead of KEYS so a large keyspace does not block the server
        client = self._require_client()
        return [key async for key in client.scan_iter(match=pattern)]
