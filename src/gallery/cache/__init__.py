"""
Gallery Ephemeral Cache

Key-value cache with per-key expiry used by the cache-aside services.
"""

from .base import Cache
from .redis_cache import RedisCache

__all__ = [
    "Cache",
    "RedisCache",
]
