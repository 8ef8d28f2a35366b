"""
Theme Sync - mirrors the theme folders of the GitHub themes repository.

A theme with a pending publish job is never deleted: it has been submitted but
has not reached GitHub yet. When the sync records a theme at the version a job
asked for, that job is settled and removed from the queue.
"""

from typing import Dict, List, Optional, Set

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gallery.engine.cache_support import PostCommitHooks
from gallery.engine.catalog_cache import ThemeCacheService
from gallery.engine.schemas import ThemeData
from gallery.engine.user_relationships import UserRelationshipService
from gallery.integrations.github.service import GitHubClient, ThemeMeta
from gallery.platform.errors import SyncError
from gallery.platform.logging import get_logger
from gallery.storage.models import ThemeModel
from gallery.storage.repositories.favorite_repository import FavoriteRepository
from gallery.storage.repositories.theme_job_repository import ThemeJobRepository
from gallery.storage.repositories.user_repository import UserRepository
from gallery.workers.reconcile import CatalogSyncJob, SessionFactory, SyncReport

logger = get_logger(__name__)

GITHUB_PROVIDER = "github"


class ThemeSyncJob(CatalogSyncJob):
    entity = "theme"

    def __init__(
        self,
        session_factory: SessionFactory,
        github_client: GitHubClient,
        catalog: ThemeCacheService,
        relationships: UserRelationshipService,
        favorites: FavoriteRepository,
        jobs: Optional[ThemeJobRepository] = None,
        users: Optional[UserRepository] = None,
    ):
        super().__init__(session_factory, catalog, relationships)
        self.github = github_client
        self.favorites = favorites
        self.jobs = jobs or ThemeJobRepository()
        self.users = users or UserRepository()

    async def run(self) -> SyncReport:
        """
        Reconcile the store with GitHub once.

        Raises:
            SyncError: the store snapshot or the folder listing could not be read
        """
        logger.info("theme_sync_started", owner=self.github.owner, repo=self.github.repo)
        try:
            with self.session_factory() as session:
                snapshot: Dict[str, ThemeData] = {
                    theme.id: ThemeData.model_validate(theme) for theme in self.repository.list_all(session)
                }
                pending: Set[str] = self.jobs.pending_theme_ids(session)
            folders = await self.github.list_theme_folders()
        except (SQLAlchemyError, httpx.HTTPError) as e:
            logger.error("theme_sync_aborted", error=str(e))
            raise SyncError(f"Theme sync could not start: {e}") from e

        external = set(folders)
        logger.info("theme_sync_sources_loaded", stored=len(snapshot), external=len(external), pending=len(pending))
        report = SyncReport()

        for theme_id, current in snapshot.items():
            if theme_id in external:
                continue
            if theme_id in pending:
                report.skipped.append(theme_id)
                continue
            await self._reconcile_item(theme_id, "delete", lambda current=current: self._delete(current, report), report)

        for theme_id in folders:
            current = snapshot.get(theme_id)
            if current is None:
                await self._reconcile_item(theme_id, "create", lambda theme_id=theme_id: self._create(theme_id, report), report)
            else:
                await self._reconcile_item(theme_id, "update", lambda current=current: self._update(current, report), report)

        return await self._finish(report)

    async def _resolve_owner(self, handle: Optional[str]) -> Optional[str]:
        """Map a GitHub handle to a linked gallery user. Failure leaves the theme unowned."""
        if not handle:
            return None
        try:
            github_id = await self.github.get_user_id(handle)
            if github_id is None:
                logger.info("github_user_not_found", handle=handle)
                return None
            with self.session_factory() as session:
                user_id = self.users.get_user_id_by_provider(session, GITHUB_PROVIDER, github_id)
        except (httpx.HTTPError, SQLAlchemyError) as e:
            logger.warning("github_owner_lookup_failed", handle=handle, error=str(e))
            return None

        if user_id is None:
            logger.info("github_user_not_linked", handle=handle)
        return user_id

    def _settle_jobs(self, session: Session, theme_id: str, version: str) -> int:
        settled = 0
        for job in self.jobs.list_for_theme(session, theme_id):
            if job.version == version:
                self.jobs.delete(session, job.id)
                settled += 1
        return settled

    async def _create(self, theme_id: str, report: SyncReport) -> None:
        meta: ThemeMeta = await self.github.fetch_theme_meta(theme_id)
        owner_id = await self._resolve_owner(meta.github)

        def insert(session: Session) -> Optional[str]:
            jobs = self.jobs.list_for_theme(session, theme_id)
            owner = owner_id or next((job.user_id for job in jobs if job.version == meta.version), None)
            self.repository.create(
                session,
                ThemeModel(id=theme_id, name=meta.name, description=meta.description, user_id=owner),
            )
            self.repository.add_version(session, theme_id, meta.version)
            self._settle_jobs(session, theme_id, meta.version)
            return owner

        owner = self._in_transaction(insert)
        report.created.append(theme_id)
        logger.info("theme_created", theme_id=theme_id, version=meta.version, user_id=owner)

        hooks = PostCommitHooks()
        hooks.add("theme_point", lambda: self.catalog.invalidate(theme_id))
        hooks.add("theme_versions", lambda: self.catalog.invalidate_versions(theme_id))
        if owner:
            hooks.add("theme_owned", lambda: self.relationships.invalidate_owned(owner))
        await hooks.run()

    async def _update(self, current: ThemeData, report: SyncReport) -> None:
        meta: ThemeMeta = await self.github.fetch_theme_meta(current.id)

        def apply(session: Session) -> List[str]:
            changes = []
            if current.name != meta.name or current.description != meta.description:
                self.repository.update(session, current.id, {"name": meta.name, "description": meta.description})
                changes.append("details")
            versions = self.repository.list_versions(session, current.id)
            if not versions or versions[0].version != meta.version:
                if self.repository.get_version(session, current.id, meta.version) is None:
                    self.repository.add_version(session, current.id, meta.version)
                    changes.append("version")
            if self._settle_jobs(session, current.id, meta.version):
                changes.append("job")
            return changes

        changes = self._in_transaction(apply)
        if not changes:
            return
        report.updated.append(current.id)
        logger.info("theme_updated", theme_id=current.id, changes=changes)

        hooks = PostCommitHooks()
        hooks.add("theme_point", lambda: self.catalog.invalidate(current.id))
        if "version" in changes:
            hooks.add("theme_versions", lambda: self.catalog.invalidate_versions(current.id))
        await hooks.run()

    async def _delete(self, current: ThemeData, report: SyncReport) -> None:
        def remove(session: Session) -> List[str]:
            favorited_by = self.favorites.delete_for_item(session, current.id)
            self.repository.delete(session, current.id)
            return favorited_by

        favorited_by = self._in_transaction(remove)
        report.deleted.append(current.id)
        logger.info("theme_deleted", theme_id=current.id, favorites_removed=len(favorited_by))
        await self._deletion_hooks(current.id, current.user_id, favorited_by).run()
