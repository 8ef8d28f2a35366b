"""
Shared plumbing for the catalog sync jobs.

Each external item is reconciled in its own session and transaction; a
failure is logged against the item id and the run moves on.
"""

from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from sqlalchemy.orm import Session

from gallery.engine.cache_support import PostCommitHooks
from gallery.engine.catalog_cache import CatalogCacheService
from gallery.engine.user_relationships import UserRelationshipService
from gallery.platform.logging import get_logger
from gallery.storage.base import transaction

logger = get_logger(__name__)

SessionFactory = Callable[[], AbstractContextManager]


@dataclass
class SyncReport:
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    # protected from deletion or excluded from updates
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.deleted)

    def counts(self) -> Dict[str, int]:
        return {
            "created": len(self.created),
            "updated": len(self.updated),
            "deleted": len(self.deleted),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }


class CatalogSyncJob:
    """Base class for jobs that mirror an external catalog into the store."""

    entity: str

    def __init__(
        self,
        session_factory: SessionFactory,
        catalog: CatalogCacheService,
        relationships: UserRelationshipService,
    ):
        self.session_factory = session_factory
        self.catalog = catalog
        self.repository = catalog.repository
        self.relationships = relationships

    def _in_transaction(self, fn: Callable[[Session], object]) -> object:
        with self.session_factory() as session:
            with transaction(session):
                return fn(session)

    async def _reconcile_item(self, item_id: str, action: str, step, report: SyncReport):
        """
        Run one awaitable reconcile step; record a failure instead of raising.

        Returns:
            The step's result, or None when it failed
        """
        try:
            return await step()
        except Exception as e:
            logger.error(f"{self.entity}_sync_item_failed", item_id=item_id, action=action, error=str(e))
            report.failed.append(item_id)
            return None

    def _deletion_hooks(self, item_id: str, owner_id, favorited_by: List[str]) -> PostCommitHooks:
        hooks = PostCommitHooks()
        hooks.add(f"{self.entity}_point", lambda: self.catalog.invalidate(item_id))
        hooks.add(f"{self.entity}_versions", lambda: self.catalog.invalidate_versions(item_id))
        if owner_id:
            hooks.add(f"{self.entity}_owned", lambda: self.relationships.invalidate_owned(owner_id))
        for user_id in favorited_by:
            hooks.add(
                f"{self.entity}_user_favorites",
                lambda user_id=user_id: self.relationships.invalidate_favorites(user_id),
            )
        return hooks

    async def _finish(self, report: SyncReport) -> SyncReport:
        if report.changed:
            hooks = PostCommitHooks()
            hooks.add(f"{self.entity}_search", self.catalog.invalidate_search)
            await hooks.run()
        logger.info(f"{self.entity}_sync_finished", **report.counts())
        return report
