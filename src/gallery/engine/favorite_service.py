"""
Favorite Service - transactional favorite/unfavorite for one entity type.

The existence checks, the edge write and the counter update commit together.
Cache invalidation only happens after the commit, through PostCommitHooks.
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gallery.engine.cache_support import PostCommitHooks
from gallery.engine.catalog_cache import CatalogCacheService
from gallery.engine.user_relationships import UserRelationshipService
from gallery.platform.errors import AlreadyFavoritedError, NotFoundError, StoreFailureError
from gallery.platform.logging import get_logger
from gallery.storage.base import transaction
from gallery.storage.repositories.favorite_repository import FavoriteRepository

logger = get_logger(__name__)


class FavoriteService:

    def __init__(
        self,
        catalog: CatalogCacheService,
        favorites: FavoriteRepository,
        relationships: UserRelationshipService,
        entity: str,
    ):
        self.catalog = catalog
        self.repository = catalog.repository
        self.favorites = favorites
        self.relationships = relationships
        self.entity = entity

    def _invalidation_hooks(self, user_id: str, item_id: str) -> PostCommitHooks:
        hooks = PostCommitHooks()
        hooks.add(f"{self.entity}_point", lambda: self.catalog.invalidate(item_id))
        hooks.add(f"{self.entity}_user_favorites", lambda: self.relationships.invalidate_favorites(user_id))
        # favorites_count feeds the sort order of every cached page
        hooks.add(f"{self.entity}_search", self.catalog.invalidate_search)
        return hooks

    async def add_favorite(self, session: Session, user_id: str, item_id: str) -> None:
        """
        Favorite an item for a user.

        Raises:
            NotFoundError: the item does not exist
            AlreadyFavoritedError: the user already favorited it
            StoreFailureError: the transaction failed and was rolled back
        """
        try:
            with transaction(session):
                if self.repository.get_for_update(session, item_id) is None:
                    raise NotFoundError(f"{self.entity.capitalize()} {item_id} not found")
                if self.favorites.get(session, user_id, item_id) is not None:
                    raise AlreadyFavoritedError(f"{self.entity.capitalize()} {item_id} is already favorited")
                self.favorites.create(session, user_id, item_id)
                self.repository.increment_favorites(session, item_id)
        except IntegrityError:
            # A concurrent request created the same edge first
            raise AlreadyFavoritedError(f"{self.entity.capitalize()} {item_id} is already favorited")
        except SQLAlchemyError as e:
            logger.error("favorite_add_failed", entity=self.entity, item_id=item_id, user_id=user_id, error=str(e))
            raise StoreFailureError(f"Failed to favorite {self.entity} {item_id}") from e

        logger.info("favorite_added", entity=self.entity, item_id=item_id, user_id=user_id)
        await self._invalidation_hooks(user_id, item_id).run()

    async def remove_favorite(self, session: Session, user_id: str, item_id: str) -> None:
        """
        Remove a user's favorite. The counter is only decremented while the
        item still exists; a concurrently deleted item is tolerated.

        Raises:
            NotFoundError: the user has not favorited the item
            StoreFailureError: the transaction failed and was rolled back
        """
        try:
            with transaction(session):
                edge = self.favorites.get(session, user_id, item_id)
                if edge is None:
                    raise NotFoundError(f"{self.entity.capitalize()} {item_id} is not favorited")
                self.favorites.delete(session, edge)
                if not self.repository.decrement_favorites(session, item_id):
                    logger.warning("favorite_counter_not_decremented", entity=self.entity, item_id=item_id)
        except SQLAlchemyError as e:
            logger.error("favorite_remove_failed", entity=self.entity, item_id=item_id, user_id=user_id, error=str(e))
            raise StoreFailureError(f"Failed to unfavorite {self.entity} {item_id}") from e

        logger.info("favorite_removed", entity=self.entity, item_id=item_id, user_id=user_id)
        await self._invalidation_hooks(user_id, item_id).run()
