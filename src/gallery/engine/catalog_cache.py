"""
Catalog Cache Service - cache-aside access to themes and plugins.

Two kinds of entries are kept per entity type:

* search results, stored as an ordered id-list keyed by the normalised query
  parameters (a pointer set, never payloads);
* per-id payloads, stored as the DTO's JSON.

Updating one item therefore only needs a point invalidation, while anything
that can reorder results (favorites, create, delete) drops every search entry
for the entity type.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from gallery.cache.base import Cache
from gallery.engine.cache_support import CacheBoundary
from gallery.engine.schemas import (
    CatalogItemData,
    PluginData,
    PluginVersionData,
    ThemeData,
    ThemeVersionData,
)
from gallery.platform.config import settings
from gallery.platform.logging import get_logger
from gallery.storage.repositories.catalog_repository import (
    SORTABLE_COLUMNS,
    CatalogRepository,
    PluginRepository,
    ThemeRepository,
)

logger = get_logger(__name__)

D = TypeVar("D", bound=CatalogItemData)

DEFAULT_SORT_COLUMN = "updated_at"
DEFAULT_SORT_DIRECTION = "DESC"

# API-facing sort names
SORT_ALIASES = {
    "favoritesCount": "favorites_count",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


@dataclass(frozen=True)
class SearchParams:
    """Normalised search parameters. Build with ``normalize``."""

    query: str
    page: int
    page_size: int
    sort_by: str
    sort_direction: str

    @classmethod
    def normalize(
        cls,
        query: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_direction: Optional[str] = None,
    ) -> "SearchParams":
        page = page if page and page >= 1 else 1

        if not page_size or page_size < 1:
            page_size = settings.DEFAULT_PAGE_SIZE
        page_size = min(page_size, settings.MAX_PAGE_SIZE)

        column = SORT_ALIASES.get(sort_by or "", sort_by)
        if column not in SORTABLE_COLUMNS:
            column = DEFAULT_SORT_COLUMN

        direction = (sort_direction or "").upper()
        if direction not in ("ASC", "DESC"):
            direction = DEFAULT_SORT_DIRECTION

        return cls(
            query=(query or "").strip(),
            page=page,
            page_size=page_size,
            sort_by=column,
            sort_direction=direction,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def cache_key(self, prefix: str) -> str:
        return f"{prefix}:{self.query}:{self.page}:{self.page_size}:{self.sort_by}:{self.sort_direction}"


@dataclass(frozen=True)
class CacheNamespace:
    """Key prefixes for one entity type."""

    search_prefix: str
    data_prefix: str
    versions_prefix: str

    def data_key(self, item_id: str) -> str:
        return f"{self.data_prefix}:{item_id}"

    def versions_key(self, item_id: str) -> str:
        return f"{self.versions_prefix}:{item_id}"

    @property
    def search_pattern(self) -> str:
        return f"{self.search_prefix}:*"

    @classmethod
    def themes(cls) -> "CacheNamespace":
        return cls(
            search_prefix=settings.THEME_SEARCH_CACHE_PREFIX,
            data_prefix=settings.THEME_DATA_CACHE_PREFIX,
            versions_prefix=settings.THEME_VERSIONS_CACHE_PREFIX,
        )

    @classmethod
    def plugins(cls) -> "CacheNamespace":
        return cls(
            search_prefix=settings.PLUGIN_SEARCH_CACHE_PREFIX,
            data_prefix=settings.PLUGIN_DATA_CACHE_PREFIX,
            versions_prefix=settings.PLUGIN_VERSIONS_CACHE_PREFIX,
        )


class CatalogCacheService(ABC, Generic[D]):
    """
    Cache-aside reads and invalidation for one catalog entity type.

    Store reads go through ``repository`` using the caller's session; every
    cache call goes through a CacheBoundary so the cache can never fail a read.
    """

    dto: Type[D]
    version_dto: Type = ThemeVersionData

    def __init__(
        self,
        cache: Cache,
        repository: CatalogRepository,
        namespace: CacheNamespace,
        search_ttl: Optional[int] = None,
        data_ttl: Optional[int] = None,
        versions_ttl: Optional[int] = None,
    ):
        self.cache = CacheBoundary(cache)
        self.repository = repository
        self.namespace = namespace
        self.search_ttl = search_ttl or settings.SEARCH_CACHE_TTL
        self.data_ttl = data_ttl or settings.DATA_CACHE_TTL
        self.versions_ttl = versions_ttl or settings.VERSIONS_CACHE_TTL
        self._versions_adapter = TypeAdapter(List[self.version_dto])

    # --- Reads ---

    async def search(self, session: Session, params: SearchParams) -> List[D]:
        """
        Return one page of items for normalised search parameters.

        On a miss the store is queried once; the id-list and each payload are
        cached separately. On a hit the ids are resolved through get_by_ids.
        """
        key = params.cache_key(self.namespace.search_prefix)
        ids = await self.cache.get_id_list(key)

        if ids is None:
            rows = self.repository.search(
                session,
                params.query,
                limit=params.page_size,
                offset=params.offset,
                sort_column=params.sort_by,
                sort_direction=params.sort_direction,
            )
            items = [self.dto.model_validate(row) for row in rows]
            await self.cache.set_id_list(key, [item.id for item in items], self.search_ttl)
            for item in items:
                await self.cache.set(self.namespace.data_key(item.id), item.model_dump_json(), self.data_ttl)
            logger.debug("search_cache_miss", key=key, count=len(items))
            return items

        resolved = await self.get_by_ids(session, ids)
        return [item for item in resolved if item is not None]

    async def get_by_ids(self, session: Session, ids: Sequence[str]) -> List[Optional[D]]:
        """
        Resolve ids to payloads, preserving input order.

        All ids are read from the cache in one round-trip and the misses are
        loaded from the store in one query, then written back. Ids unknown to
        the store come back as ``None``.
        """
        if not ids:
            return []

        keys = [self.namespace.data_key(item_id) for item_id in ids]
        cached = await self.cache.mget(keys)

        results: List[Optional[D]] = [None] * len(ids)
        missing: List[str] = []
        for index, raw in enumerate(cached):
            if raw is not None:
                try:
                    results[index] = self.dto.model_validate_json(raw)
                    continue
                except PydanticValidationError:
                    logger.warning("cache_entry_corrupt", key=keys[index])
            missing.append(ids[index])

        if not missing:
            return results

        unique_missing = list(dict.fromkeys(missing))
        rows = self.repository.list_by_ids(session, unique_missing)
        found = {row.id: self.dto.model_validate(row) for row in rows}

        for index, item_id in enumerate(ids):
            if results[index] is None and item_id in found:
                results[index] = found[item_id]

        for item_id, item in found.items():
            await self.cache.set(self.namespace.data_key(item_id), item.model_dump_json(), self.data_ttl)

        return results

    async def get(self, session: Session, item_id: str) -> Optional[D]:
        return (await self.get_by_ids(session, [item_id]))[0]

    async def get_versions(self, session: Session, item_id: str) -> list:
        key = self.namespace.versions_key(item_id)
        raw = await self.cache.get(key)
        if raw is not None:
            try:
                return self._versions_adapter.validate_json(raw)
            except PydanticValidationError:
                logger.warning("cache_entry_corrupt", key=key)

        versions = await self._load_versions(session, item_id)
        if versions is None:
            # Source unavailable: serve nothing, cache nothing
            return []
        await self.cache.set(key, self._versions_adapter.dump_json(versions).decode(), self.versions_ttl)
        return versions

    @abstractmethod
    async def _load_versions(self, session: Session, item_id: str) -> Optional[list]:
        """Version list from the source of truth, or None when it is unreachable."""
        pass

    # --- Invalidation ---

    async def invalidate(self, item_id: str) -> None:
        """Point invalidation: drop one item's payload."""
        await self.cache.delete(self.namespace.data_key(item_id))

    async def invalidate_versions(self, item_id: str) -> None:
        await self.cache.delete(self.namespace.versions_key(item_id))

    async def invalidate_search(self) -> int:
        """Drop every search result for this entity type."""
        removed = await self.cache.delete_pattern(self.namespace.search_pattern)
        logger.debug("search_cache_invalidated", pattern=self.namespace.search_pattern, removed=removed)
        return removed


class ThemeCacheService(CatalogCacheService[ThemeData]):
    dto = ThemeData
    version_dto = ThemeVersionData

    def __init__(self, cache: Cache, repository: Optional[ThemeRepository] = None, **kwargs):
        super().__init__(cache, repository or ThemeRepository(), CacheNamespace.themes(), **kwargs)

    async def _load_versions(self, session: Session, item_id: str) -> List[ThemeVersionData]:
        return [ThemeVersionData.model_validate(row) for row in self.repository.list_versions(session, item_id)]


class PluginCacheService(CatalogCacheService[PluginData]):
    """Plugin versions are not stored locally; they are read from the npm registry."""

    dto = PluginData
    version_dto = PluginVersionData

    def __init__(self, cache: Cache, repository: Optional[PluginRepository] = None, npm_client=None, **kwargs):
        super().__init__(cache, repository or PluginRepository(), CacheNamespace.plugins(), **kwargs)
        self.npm_client = npm_client

    async def _load_versions(self, session: Session, item_id: str) -> List[PluginVersionData]:
        if self.npm_client is None:
            return []
        try:
            releases = await self.npm_client.get_versions(item_id)
        except httpx.HTTPError as e:
            logger.warning("npm_versions_unavailable", plugin_id=item_id, error=str(e))
            return None
        return [
            PluginVersionData(
                id=f"{item_id}@{release.version}",
                plugin_id=item_id,
                version=release.version,
                created_at=release.published_at,
            )
            for release in releases
        ]
