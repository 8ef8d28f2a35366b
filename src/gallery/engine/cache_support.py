"""
Error boundaries around the ephemeral cache.

The cache is advisory: the store is the source of truth, so no cache failure
may fail a request. Reads degrade to a miss, writes and deletes are dropped,
and every failure is logged.
"""

import json
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from gallery.cache.base import Cache
from gallery.platform.logging import get_logger

logger = get_logger(__name__)


class CacheBoundary:
    """Wraps a Cache so that backend errors never propagate to callers."""

    def __init__(self, cache: Cache):
        self.cache = cache

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.cache.get(key)
        except Exception as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return None

    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        if not keys:
            return []
        try:
            values = await self.cache.mget(keys)
        except Exception as e:
            logger.warning("cache_mget_failed", count=len(keys), error=str(e))
            return [None] * len(keys)
        if len(values) != len(keys):
            logger.warning("cache_mget_misaligned", expected=len(keys), received=len(values))
            return [None] * len(keys)
        return values

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self.cache.set(key, value, ttl_seconds)
        except Exception as e:
            logger.warning("cache_set_failed", key=key, error=str(e))

    async def delete(self, key: str) -> None:
        try:
            await self.cache.delete(key)
        except Exception as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))

    async def delete_pattern(self, pattern: str) -> int:
        try:
            return await self.cache.delete_pattern(pattern)
        except Exception as e:
            logger.warning("cache_delete_pattern_failed", pattern=pattern, error=str(e))
            return 0

    async def get_id_list(self, key: str) -> Optional[List[str]]:
        """Read a cached id-list; a corrupt entry counts as a miss."""
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            ids = json.loads(raw)
        except ValueError:
            logger.warning("cache_entry_corrupt", key=key)
            return None
        if not isinstance(ids, list):
            logger.warning("cache_entry_corrupt", key=key)
            return None
        return [str(i) for i in ids]

    async def set_id_list(self, key: str, ids: Sequence[str], ttl_seconds: int) -> None:
        await self.set(key, json.dumps(list(ids)), ttl_seconds)


class PostCommitHooks:
    """
    Side effects to run once the store transaction has committed.

    Hooks are queued while an operation runs and executed in order by
    ``run()``. Each runs in its own error boundary, so a failed invalidation
    never undoes or fails the committed write.
    """

    def __init__(self) -> None:
        self._hooks: List[Tuple[str, Callable[[], Awaitable[Any]]]] = []

    def add(self, name: str, hook: Callable[[], Awaitable[Any]]) -> None:
        self._hooks.append((name, hook))

    def __len__(self) -> int:
        return len(self._hooks)

    async def run(self) -> List[str]:
        """
        Execute and clear all queued hooks.

        Returns:
            Names of hooks that failed
        """
        hooks, self._hooks = self._hooks, []
        failed = []
        for name, hook in hooks:
            try:
                await hook()
            except Exception as e:
                logger.error("post_commit_hook_failed", hook=name, error=str(e))
                failed.append(name)
        return failed
