"""
Catalog Controller - search, detail and user views for one entity type.

Applies the caller's favorite overlay on top of the cached catalog reads.
"""

from typing import Generic, List, Optional

from sqlalchemy.orm import Session

from gallery.access_control.context import AuthenticatedContext
from gallery.engine.catalog_cache import D, CatalogCacheService, SearchParams
from gallery.engine.user_relationships import UserRelationshipService
from gallery.platform.errors import NotFoundError, UnauthorizedError


class CatalogController(Generic[D]):

    def __init__(self, catalog: CatalogCacheService[D], relationships: UserRelationshipService[D], entity: str):
        self.catalog = catalog
        self.relationships = relationships
        self.entity = entity

    async def _overlay(self, session: Session, ctx: Optional[AuthenticatedContext], items: List[D]) -> List[D]:
        """Mark each item with whether the caller favorited it. Anonymous callers get None."""
        if ctx is None:
            return items
        favorite_ids = set(await self.relationships.get_favorite_ids(session, ctx.user_id))
        return [item.model_copy(update={"is_favorite": item.id in favorite_ids}) for item in items]

    def _target_user(self, ctx: AuthenticatedContext, user_id: Optional[str]) -> str:
        target = user_id or ctx.user_id
        if not ctx.can_act_for(target):
            raise UnauthorizedError(f"Not allowed to view {self.entity}s of user {target}")
        return target

    async def search(
        self,
        session: Session,
        ctx: Optional[AuthenticatedContext],
        query: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_direction: Optional[str] = None,
    ) -> List[D]:
        params = SearchParams.normalize(query, page, page_size, sort_by, sort_direction)
        items = await self.catalog.search(session, params)
        return await self._overlay(session, ctx, items)

    async def get_item(self, session: Session, ctx: Optional[AuthenticatedContext], item_id: str) -> D:
        item = await self.catalog.get(session, item_id)
        if item is None:
            raise NotFoundError(f"{self.entity.capitalize()} {item_id} not found")
        return (await self._overlay(session, ctx, [item]))[0]

    async def get_versions(self, session: Session, item_id: str) -> list:
        if await self.catalog.get(session, item_id) is None:
            raise NotFoundError(f"{self.entity.capitalize()} {item_id} not found")
        return await self.catalog.get_versions(session, item_id)

    async def get_owned(self, session: Session, ctx: AuthenticatedContext, user_id: Optional[str] = None) -> List[D]:
        target = self._target_user(ctx, user_id)
        items = await self.relationships.get_owned(session, target)
        return await self._overlay(session, ctx, items)

    async def get_favorites(self, session: Session, ctx: AuthenticatedContext, user_id: Optional[str] = None) -> List[D]:
        target = self._target_user(ctx, user_id)
        items = await self.relationships.get_favorites(session, target)
        return await self._overlay(session, ctx, items)
