"""
Ephemeral Cache - Abstract interface for key-value caching with expiry.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence


class Cache(ABC):
    """
    Abstract base class for ephemeral cache implementations.

    Values are strings (serialized id-lists or entity payloads). A missing key
    is a normal outcome and is reported as ``None``, never as an error.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the cache backend."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the cache backend."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the cache backend is reachable."""
        ...

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key`` or None."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key``, expiring after ``ttl_seconds``."""
        ...

    @abstractmethod
    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        """
        Fetch several keys at once.

        Returns:
            A list aligned with ``keys``; misses are None.
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a single key. Deleting a missing key is a no-op."""
        ...

    @abstractmethod
    async def keys(self, pattern: str) -> List[str]:
        """List keys matching a glob-style pattern (e.g. ``theme_search:*``)."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching ``pattern``.

        Lists then deletes one by one, so it is not atomic: a key written
        mid-scan may survive until the next invalidation.

        Returns:
            Number of keys deleted
        """
        matched = await self.keys(pattern)
        for key in matched:
            await self.delete(key)
        return len(matched)
