import uuid
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.orm import Session

from gallery.storage.models import PluginModel, PluginStatus, ThemeModel, ThemeVersionModel
from .base import BaseRepository

M = TypeVar("M", ThemeModel, PluginModel)

SORTABLE_COLUMNS = ("favorites_count", "created_at", "updated_at")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CatalogRepository(BaseRepository[M]):
    """Shared repository logic for catalog items (themes and plugins)."""

    model: Type[M]

    def create(self, session: Session, entity: M) -> M:
        session.add(entity)
        session.flush()
        return entity

    def get(self, session: Session, id: str) -> Optional[M]:
        return session.get(self.model, id)

    def get_for_update(self, session: Session, id: str) -> Optional[M]:
        """Load an item and lock its row until the transaction ends."""
        stmt = select(self.model).where(self.model.id == id).with_for_update()
        return session.scalars(stmt).first()

    def update(self, session: Session, id: str, updates: Dict[str, Any]) -> Optional[M]:
        item = self.get(session, id)
        if not item:
            return None

        for key, value in updates.items():
            setattr(item, key, value)
        item.updated_at = func.now()

        session.flush()
        return item

    def delete(self, session: Session, id: str) -> bool:
        item = self.get(session, id)
        if not item:
            return False
        session.delete(item)
        session.flush()
        return True

    def list(self, session: Session, limit: int = 100, offset: int = 0) -> List[M]:
        stmt = select(self.model).order_by(self.model.id).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())

    def list_all(self, session: Session) -> List[M]:
        """Full snapshot, used by the sync jobs to diff against external sources."""
        return list(session.scalars(select(self.model).order_by(self.model.id)).all())

    def list_by_ids(self, session: Session, ids: Sequence[str]) -> List[M]:
        """Fetch multiple items by id in a single query. Order is not guaranteed."""
        if not ids:
            return []
        stmt = select(self.model).where(self.model.id.in_(list(ids)))
        return list(session.scalars(stmt).all())

    def list_ids_by_owner(self, session: Session, user_id: str) -> List[str]:
        stmt = select(self.model.id).where(self.model.user_id == user_id).order_by(self.model.id)
        return list(session.scalars(stmt).all())

    def _apply_visibility(self, stmt: Select) -> Select:
        return stmt

    def search(
        self,
        session: Session,
        query: str,
        limit: int,
        offset: int,
        sort_column: str = "updated_at",
        sort_direction: str = "DESC",
    ) -> List[M]:
        """
        Case-insensitive substring search over name and description.

        ``sort_column`` must already be one of SORTABLE_COLUMNS; ties are broken
        by id so consecutive pages never overlap.
        """
        if sort_column not in SORTABLE_COLUMNS:
            raise ValueError(f"Unsupported sort column: {sort_column}")

        stmt = self._apply_visibility(select(self.model))
        if query:
            pattern = f"%{_escape_like(query)}%"
            stmt = stmt.where(
                or_(
                    self.model.name.ilike(pattern, escape="\\"),
                    self.model.description.ilike(pattern, escape="\\"),
                )
            )

        column = getattr(self.model, sort_column)
        ordering = column.asc() if sort_direction == "ASC" else column.desc()
        stmt = stmt.order_by(ordering, self.model.id.asc()).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())

    def increment_favorites(self, session: Session, id: str, by: int = 1) -> bool:
        stmt = (
            update(self.model)
            .where(self.model.id == id)
            .values(favorites_count=self.model.favorites_count + by)
        )
        result = session.execute(stmt)
        session.flush()
        return result.rowcount > 0

    def decrement_favorites(self, session: Session, id: str, by: int = 1) -> bool:
        # Guarded so the counter never drops below zero
        stmt = (
            update(self.model)
            .where(self.model.id == id, self.model.favorites_count >= by)
            .values(favorites_count=self.model.favorites_count - by)
        )
        result = session.execute(stmt)
        session.flush()
        return result.rowcount > 0


class ThemeRepository(CatalogRepository[ThemeModel]):
    model = ThemeModel

    def delete(self, session: Session, id: str) -> bool:
        # Version history goes with its theme
        session.execute(delete(ThemeVersionModel).where(ThemeVersionModel.theme_id == id))
        return super().delete(session, id)

    def list_versions(self, session: Session, theme_id: str) -> List[ThemeVersionModel]:
        stmt = (
            select(ThemeVersionModel)
            .where(ThemeVersionModel.theme_id == theme_id)
            .order_by(ThemeVersionModel.created_at.desc(), ThemeVersionModel.id)
        )
        return list(session.scalars(stmt).all())

    def get_version(self, session: Session, theme_id: str, version: str) -> Optional[ThemeVersionModel]:
        stmt = select(ThemeVersionModel).where(
            ThemeVersionModel.theme_id == theme_id,
            ThemeVersionModel.version == version,
        )
        return session.scalars(stmt).first()

    def add_version(self, session: Session, theme_id: str, version: str) -> ThemeVersionModel:
        """Append a version record and bump the theme's version counter."""
        record = ThemeVersionModel(id=str(uuid.uuid4()), theme_id=theme_id, version=version)
        session.add(record)
        session.execute(
            update(ThemeModel)
            .where(ThemeModel.id == theme_id)
            .values(versions_count=ThemeModel.versions_count + 1, updated_at=func.now())
        )
        session.flush()
        return record


class PluginRepository(CatalogRepository[PluginModel]):
    model = PluginModel

    def _apply_visibility(self, stmt: Select) -> Select:
        return stmt.where(PluginModel.status != PluginStatus.BLACKLIST.value)
