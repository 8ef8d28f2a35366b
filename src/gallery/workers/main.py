"""
Gallery Sync Entry Point

Runs the catalog sync jobs once and exits; an external scheduler (cron, k8s
CronJob) decides how often.
Usage:
    python -m gallery.workers.main [job_name ...]

Available jobs:
    - plugins: npm registry -> plugins
    - themes: GitHub themes repository -> themes
    - all: both (default)
"""

import asyncio
import sys
from typing import List, Tuple

from gallery.cache.redis_cache import RedisCache
from gallery.engine.catalog_cache import PluginCacheService, ThemeCacheService
from gallery.engine.user_relationships import plugin_relationships, theme_relationships
from gallery.integrations.github.service import GitHubClient
from gallery.integrations.npm.service import NpmRegistryClient
from gallery.platform.config import settings
from gallery.platform.errors import SyncError
from gallery.platform.logging import configure_logging, get_logger, log_context
from gallery.storage.postgres_adapter import PostgresAdapter, PostgresConfig
from gallery.storage.repositories.favorite_repository import plugin_favorites, theme_favorites
from gallery.workers.reconcile import SyncReport
from gallery.workers.sync_plugins import PluginSyncJob
from gallery.workers.sync_themes import ThemeSyncJob

configure_logging()
logger = get_logger(__name__)

JOB_NAMES = ("plugins", "themes")


class SyncRunner:
    """Owns the shared resources for one sync invocation."""

    def __init__(self):
        self.postgres = PostgresAdapter(PostgresConfig())
        self.cache = RedisCache(settings.REDIS_EPHEMERAL_URL)
        self.npm = NpmRegistryClient()
        self.github = GitHubClient()

    async def start(self) -> None:
        self.postgres.connect()
        try:
            await self.cache.connect()
        except Exception as e:
            # The store is authoritative; invalidations degrade to no-ops
            logger.warning("cache_unavailable_for_sync", error=str(e))

    async def shutdown(self) -> None:
        await self.npm.close()
        await self.github.close()
        try:
            await self.cache.disconnect()
        except Exception as e:
            logger.warning("cache_disconnect_failed", error=str(e))
        self.postgres.close()

    def plugin_job(self) -> PluginSyncJob:
        catalog = PluginCacheService(self.cache, npm_client=self.npm)
        favorites = plugin_favorites()
        return PluginSyncJob(
            self.postgres.get_session,
            self.npm,
            catalog,
            plugin_relationships(self.cache, catalog, favorites),
            favorites,
        )

    def theme_job(self) -> ThemeSyncJob:
        catalog = ThemeCacheService(self.cache)
        favorites = theme_favorites()
        return ThemeSyncJob(
            self.postgres.get_session,
            self.github,
            catalog,
            theme_relationships(self.cache, catalog, favorites),
            favorites,
        )

    async def run(self, job_names: List[str]) -> Tuple[List[SyncReport], List[str]]:
        """Run the selected jobs; a job that cannot start does not stop the others.

        Returns the reports of the jobs that ran and the names of those that failed.
        """
        should_run_all = "all" in job_names
        selected = [
            (name, factory)
            for name, factory in (("plugins", self.plugin_job), ("themes", self.theme_job))
            if should_run_all or name in job_names
        ]
        reports, failed = [], []
        for name, factory in selected:
            with log_context(job=name):
                try:
                    reports.append(await factory().run())
                except SyncError as e:
                    logger.error("sync_failed", job=name, error=e.message)
                    failed.append(name)
        return reports, failed


async def main() -> int:
    """Main entry point. Returns the process exit status."""
    job_names = sys.argv[1:] or ["all"]
    unknown = [name for name in job_names if name != "all" and name not in JOB_NAMES]
    if unknown:
        logger.error("unknown_sync_jobs", jobs=unknown, available=list(JOB_NAMES))
        return 2

    runner = SyncRunner()
    try:
        await runner.start()
        _, failed = await runner.run(job_names)
    finally:
        await runner.shutdown()
    return 1 if failed else 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
