"""
Plugin Sync - mirrors npm packages tagged with NPM_PLUGIN_TAG into the catalog.

Only SYNC plugins are removed when they disappear from npm; WHITELIST and
BLACKLIST plugins are managed by hand. BLACKLIST plugins are never refreshed.
"""

from typing import Dict, List, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError

from gallery.engine.cache_support import PostCommitHooks
from gallery.engine.catalog_cache import PluginCacheService
from gallery.engine.schemas import PluginData
from gallery.engine.user_relationships import UserRelationshipService
from gallery.integrations.npm.service import NpmPackage, NpmRegistryClient
from gallery.platform.config import settings
from gallery.platform.errors import SyncError
from gallery.platform.logging import get_logger
from gallery.storage.models import PluginModel, PluginStatus
from gallery.storage.repositories.favorite_repository import FavoriteRepository
from gallery.workers.reconcile import CatalogSyncJob, SessionFactory, SyncReport

logger = get_logger(__name__)


def _needs_update(current: PluginData, package: NpmPackage) -> bool:
    return (
        current.name != package.name
        or current.description != package.description
        or current.package_url != package.package_url
    )


class PluginSyncJob(CatalogSyncJob):
    entity = "plugin"

    def __init__(
        self,
        session_factory: SessionFactory,
        npm_client: NpmRegistryClient,
        catalog: PluginCacheService,
        relationships: UserRelationshipService,
        favorites: FavoriteRepository,
        tag: Optional[str] = None,
    ):
        super().__init__(session_factory, catalog, relationships)
        self.npm = npm_client
        self.favorites = favorites
        self.tag = tag or settings.NPM_PLUGIN_TAG

    async def run(self) -> SyncReport:
        """
        Reconcile the store with npm once.

        Raises:
            SyncError: the store snapshot or the npm listing could not be read
        """
        logger.info("plugin_sync_started", tag=self.tag)
        try:
            with self.session_factory() as session:
                snapshot: Dict[str, PluginData] = {
                    plugin.id: PluginData.model_validate(plugin) for plugin in self.repository.list_all(session)
                }
            packages = await self.npm.search_by_keyword(self.tag)
        except (SQLAlchemyError, httpx.HTTPError) as e:
            logger.error("plugin_sync_aborted", error=str(e))
            raise SyncError(f"Plugin sync could not start: {e}") from e

        external = {package.id: package for package in packages}
        logger.info("plugin_sync_sources_loaded", stored=len(snapshot), external=len(external))
        report = SyncReport()

        for plugin_id, current in snapshot.items():
            if plugin_id in external:
                continue
            if current.status != PluginStatus.SYNC.value:
                report.skipped.append(plugin_id)
                continue
            await self._reconcile_item(plugin_id, "delete", lambda current=current: self._delete(current, report), report)

        for plugin_id, package in external.items():
            current = snapshot.get(plugin_id)
            if current is None:
                await self._reconcile_item(plugin_id, "create", lambda package=package: self._create(package, report), report)
            elif current.status == PluginStatus.BLACKLIST.value:
                report.skipped.append(plugin_id)
            elif _needs_update(current, package):
                await self._reconcile_item(plugin_id, "update", lambda package=package: self._update(package, report), report)

        return await self._finish(report)

    async def _create(self, package: NpmPackage, report: SyncReport) -> None:
        self._in_transaction(
            lambda session: self.repository.create(
                session,
                PluginModel(
                    id=package.id,
                    name=package.name,
                    description=package.description,
                    package_url=package.package_url,
                    status=PluginStatus.SYNC.value,
                ),
            )
        )
        report.created.append(package.id)
        logger.info("plugin_created", plugin_id=package.id)

        hooks = PostCommitHooks()
        hooks.add("plugin_point", lambda: self.catalog.invalidate(package.id))
        hooks.add("plugin_versions", lambda: self.catalog.invalidate_versions(package.id))
        await hooks.run()

    async def _update(self, package: NpmPackage, report: SyncReport) -> None:
        self._in_transaction(
            lambda session: self.repository.update(
                session,
                package.id,
                {"name": package.name, "description": package.description, "package_url": package.package_url},
            )
        )
        report.updated.append(package.id)
        logger.info("plugin_updated", plugin_id=package.id)

        hooks = PostCommitHooks()
        hooks.add("plugin_point", lambda: self.catalog.invalidate(package.id))
        hooks.add("plugin_versions", lambda: self.catalog.invalidate_versions(package.id))
        await hooks.run()

    async def _delete(self, current: PluginData, report: SyncReport) -> None:
        def remove(session) -> List[str]:
            favorited_by = self.favorites.delete_for_item(session, current.id)
            self.repository.delete(session, current.id)
            return favorited_by

        favorited_by = self._in_transaction(remove)
        report.deleted.append(current.id)
        logger.info("plugin_deleted", plugin_id=current.id, favorites_removed=len(favorited_by))
        await self._deletion_hooks(current.id, current.user_id, favorited_by).run()
