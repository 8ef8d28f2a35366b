from typing import List, Optional, Type, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from gallery.storage.models import FavoritePluginModel, FavoriteThemeModel, PluginModel, ThemeModel

EdgeModel = Union[FavoriteThemeModel, FavoritePluginModel]


class FavoriteRepository:
    """
    Repository for user -> catalog item favorite edges.

    One instance per entity type; ``item_column`` names the edge's foreign key
    to the item table (``theme_id`` or ``plugin_id``).
    """

    def __init__(self, edge_model: Type[EdgeModel], item_model: Type, item_column: str):
        self.edge_model = edge_model
        self.item_model = item_model
        self.item_column = item_column

    @property
    def _item_fk(self):
        return getattr(self.edge_model, self.item_column)

    def get(self, session: Session, user_id: str, item_id: str) -> Optional[EdgeModel]:
        stmt = select(self.edge_model).where(
            self.edge_model.user_id == user_id,
            self._item_fk == item_id,
        )
        return session.scalars(stmt).first()

    def create(self, session: Session, user_id: str, item_id: str) -> EdgeModel:
        edge = self.edge_model(user_id=user_id, **{self.item_column: item_id})
        session.add(edge)
        session.flush()
        return edge

    def delete(self, session: Session, edge: EdgeModel) -> None:
        session.delete(edge)
        session.flush()

    def list_item_ids_for_user(self, session: Session, user_id: str) -> List[str]:
        """Ids of the items a user favorited, joined against items that still exist."""
        stmt = (
            select(self.item_model.id)
            .join(self.edge_model, self._item_fk == self.item_model.id)
            .where(self.edge_model.user_id == user_id)
            .order_by(self.item_model.id)
        )
        return list(session.scalars(stmt).all())

    def list_user_ids_for_item(self, session: Session, item_id: str) -> List[str]:
        stmt = select(self.edge_model.user_id).where(self._item_fk == item_id)
        return list(session.scalars(stmt).all())

    def delete_for_item(self, session: Session, item_id: str) -> List[str]:
        """
        Remove every edge pointing at an item.

        Returns:
            Ids of the users whose favorites changed
        """
        edges = list(session.scalars(select(self.edge_model).where(self._item_fk == item_id)).all())
        for edge in edges:
            session.delete(edge)
        session.flush()
        return [edge.user_id for edge in edges]


def theme_favorites() -> FavoriteRepository:
    return FavoriteRepository(FavoriteThemeModel, ThemeModel, "theme_id")


def plugin_favorites() -> FavoriteRepository:
    return FavoriteRepository(FavoritePluginModel, PluginModel, "plugin_id")
