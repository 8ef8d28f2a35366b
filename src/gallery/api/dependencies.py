from typing import Annotated

from fastapi import Depends

from gallery.api.database import close_postgres_adapter, get_postgres_adapter
from gallery.cache.base import Cache
from gallery.cache.redis_cache import RedisCache
from gallery.engine.catalog_cache import PluginCacheService, ThemeCacheService
from gallery.engine.catalog_controller import CatalogController
from gallery.engine.favorite_service import FavoriteService
from gallery.engine.project_service import ProjectService
from gallery.engine.publish_service import PluginPublishService, ThemePublishService
from gallery.engine.user_relationships import (
    UserRelationshipService,
    plugin_relationships,
    theme_relationships,
)
from gallery.integrations.github.service import GitHubClient
from gallery.integrations.npm.service import NpmRegistryClient
from gallery.platform.config import settings
from gallery.platform.logging import get_logger
from gallery.storage.object_store import MinioObjectStore, ObjectStore
from gallery.storage.repositories.favorite_repository import plugin_favorites, theme_favorites
from gallery.storage.repositories.user_repository import UserRepository

logger = get_logger(__name__)

# Singletons
_cache: Cache | None = None
_object_store: ObjectStore | None = None
_npm_client: NpmRegistryClient | None = None
_github_client: GitHubClient | None = None


def get_cache() -> Cache:
    global _cache
    if not _cache:
        _cache = RedisCache(settings.REDIS_EPHEMERAL_URL)
    return _cache


def get_object_store() -> ObjectStore:
    global _object_store
    if not _object_store:
        _object_store = MinioObjectStore()
    return _object_store


def get_npm_client() -> NpmRegistryClient:
    global _npm_client
    if not _npm_client:
        _npm_client = NpmRegistryClient()
    return _npm_client


def get_github_client() -> GitHubClient:
    global _github_client
    if not _github_client:
        _github_client = GitHubClient()
    return _github_client


def get_user_repository() -> UserRepository:
    return UserRepository()


async def init_resources() -> None:
    """Initialize all resources (DB, cache, registry and GitHub clients)."""
    adapter = get_postgres_adapter()
    adapter.connect()

    try:
        await get_cache().connect()
    except Exception as e:
        # Serve from the store alone until Redis comes back
        logger.warning("cache_unavailable_at_startup", error=str(e))

    await get_npm_client().connect()
    await get_github_client().connect()


async def close_resources() -> None:
    """Close all resources."""
    global _cache, _object_store, _npm_client, _github_client

    close_postgres_adapter()

    if _cache:
        await _cache.disconnect()
        _cache = None

    if _npm_client:
        await _npm_client.close()
        _npm_client = None

    if _github_client:
        await _github_client.close()
        _github_client = None

    _object_store = None


# --- Themes ---

def get_theme_catalog(cache: Annotated[Cache, Depends(get_cache)]) -> ThemeCacheService:
    return ThemeCacheService(cache)


def get_theme_relationships(
    cache: Annotated[Cache, Depends(get_cache)],
    catalog: Annotated[ThemeCacheService, Depends(get_theme_catalog)],
) -> UserRelationshipService:
    return theme_relationships(cache, catalog, theme_favorites())


def get_theme_controller(
    catalog: Annotated[ThemeCacheService, Depends(get_theme_catalog)],
    relationships: Annotated[UserRelationshipService, Depends(get_theme_relationships)],
) -> CatalogController:
    return CatalogController(catalog, relationships, entity="theme")


def get_theme_favorite_service(
    catalog: Annotated[ThemeCacheService, Depends(get_theme_catalog)],
    relationships: Annotated[UserRelationshipService, Depends(get_theme_relationships)],
) -> FavoriteService:
    return FavoriteService(catalog, theme_favorites(), relationships, entity="theme")


def get_theme_publish_service(
    catalog: Annotated[ThemeCacheService, Depends(get_theme_catalog)],
) -> ThemePublishService:
    return ThemePublishService(catalog)


# --- Plugins ---

def get_plugin_catalog(
    cache: Annotated[Cache, Depends(get_cache)],
    npm_client: Annotated[NpmRegistryClient, Depends(get_npm_client)],
) -> PluginCacheService:
    return PluginCacheService(cache, npm_client=npm_client)


def get_plugin_relationships(
    cache: Annotated[Cache, Depends(get_cache)],
    catalog: Annotated[PluginCacheService, Depends(get_plugin_catalog)],
) -> UserRelationshipService:
    return plugin_relationships(cache, catalog, plugin_favorites())


def get_plugin_controller(
    catalog: Annotated[PluginCacheService, Depends(get_plugin_catalog)],
    relationships: Annotated[UserRelationshipService, Depends(get_plugin_relationships)],
) -> CatalogController:
    return CatalogController(catalog, relationships, entity="plugin")


def get_plugin_favorite_service(
    catalog: Annotated[PluginCacheService, Depends(get_plugin_catalog)],
    relationships: Annotated[UserRelationshipService, Depends(get_plugin_relationships)],
) -> FavoriteService:
    return FavoriteService(catalog, plugin_favorites(), relationships, entity="plugin")


def get_plugin_publish_service(
    catalog: Annotated[PluginCacheService, Depends(get_plugin_catalog)],
    relationships: Annotated[UserRelationshipService, Depends(get_plugin_relationships)],
    object_store: Annotated[ObjectStore, Depends(get_object_store)],
) -> PluginPublishService:
    return PluginPublishService(catalog, plugin_favorites(), relationships, object_store)


# --- Projects ---

def get_project_service(
    cache: Annotated[Cache, Depends(get_cache)],
    github: Annotated[GitHubClient, Depends(get_github_client)],
) -> ProjectService:
    return ProjectService(cache, github)
