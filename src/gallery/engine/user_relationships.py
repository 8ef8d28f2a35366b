"""
User Relationship Service - cached favorite and ownership lists.

Both lists are cached as id-lists per (relationship, user) and resolved to
payloads through the catalog cache, so a list hit can still fill individual
items from the store when their own entries have expired.
"""

from typing import Generic, List, Optional

from sqlalchemy.orm import Session

from gallery.cache.base import Cache
from gallery.engine.cache_support import CacheBoundary
from gallery.engine.catalog_cache import D, CatalogCacheService
from gallery.platform.config import settings
from gallery.storage.repositories.favorite_repository import FavoriteRepository


class UserRelationshipService(Generic[D]):

    def __init__(
        self,
        cache: Cache,
        catalog: CatalogCacheService[D],
        favorites: FavoriteRepository,
        favorites_prefix: str,
        ownership_prefix: str,
        ttl: Optional[int] = None,
    ):
        self.cache = CacheBoundary(cache)
        self.catalog = catalog
        self.favorites = favorites
        self.favorites_prefix = favorites_prefix
        self.ownership_prefix = ownership_prefix
        self.ttl = ttl or settings.USER_CACHE_TTL

    def favorites_key(self, user_id: str) -> str:
        return f"{self.favorites_prefix}:{user_id}"

    def ownership_key(self, user_id: str) -> str:
        return f"{self.ownership_prefix}:{user_id}"

    async def get_favorite_ids(self, session: Session, user_id: str) -> List[str]:
        key = self.favorites_key(user_id)
        ids = await self.cache.get_id_list(key)
        if ids is None:
            ids = self.favorites.list_item_ids_for_user(session, user_id)
            await self.cache.set_id_list(key, ids, self.ttl)
        return ids

    async def get_favorites(self, session: Session, user_id: str) -> List[D]:
        ids = await self.get_favorite_ids(session, user_id)
        return [item for item in await self.catalog.get_by_ids(session, ids) if item is not None]

    async def get_owned_ids(self, session: Session, user_id: str) -> List[str]:
        key = self.ownership_key(user_id)
        ids = await self.cache.get_id_list(key)
        if ids is None:
            ids = self.catalog.repository.list_ids_by_owner(session, user_id)
            await self.cache.set_id_list(key, ids, self.ttl)
        return ids

    async def get_owned(self, session: Session, user_id: str) -> List[D]:
        ids = await self.get_owned_ids(session, user_id)
        return [item for item in await self.catalog.get_by_ids(session, ids) if item is not None]

    async def invalidate_favorites(self, user_id: str) -> None:
        await self.cache.delete(self.favorites_key(user_id))

    async def invalidate_owned(self, user_id: str) -> None:
        await self.cache.delete(self.ownership_key(user_id))


def theme_relationships(cache: Cache, catalog: CatalogCacheService, favorites: FavoriteRepository) -> UserRelationshipService:
    return UserRelationshipService(
        cache,
        catalog,
        favorites,
        favorites_prefix=settings.USER_THEME_FAVORITES_CACHE_PREFIX,
        ownership_prefix=settings.USER_THEME_OWNERSHIP_CACHE_PREFIX,
    )


def plugin_relationships(cache: Cache, catalog: CatalogCacheService, favorites: FavoriteRepository) -> UserRelationshipService:
    return UserRelationshipService(
        cache,
        catalog,
        favorites,
        favorites_prefix=settings.USER_PLUGIN_FAVORITES_CACHE_PREFIX,
        ownership_prefix=settings.USER_PLUGIN_OWNERSHIP_CACHE_PREFIX,
    )
