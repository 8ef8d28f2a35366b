import uuid
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from gallery.storage.models import ThemeJobQueueModel
from .base import BaseRepository


class ThemeJobRepository(BaseRepository[ThemeJobQueueModel]):
    """Repository for the theme publish job queue."""

    def create(self, session: Session, entity: ThemeJobQueueModel) -> ThemeJobQueueModel:
        if not entity.id:
            entity.id = str(uuid.uuid4())
        session.add(entity)
        session.flush()
        return entity

    def get(self, session: Session, id: str) -> Optional[ThemeJobQueueModel]:
        return session.get(ThemeJobQueueModel, id)

    def update(self, session: Session, id: str, updates: Dict[str, Any]) -> Optional[ThemeJobQueueModel]:
        job = self.get(session, id)
        if not job:
            return None
        for key, value in updates.items():
            setattr(job, key, value)
        session.flush()
        return job

    def delete(self, session: Session, id: str) -> bool:
        job = self.get(session, id)
        if not job:
            return False
        session.delete(job)
        session.flush()
        return True

    def list(self, session: Session, limit: int = 100, offset: int = 0) -> List[ThemeJobQueueModel]:
        stmt = select(ThemeJobQueueModel).order_by(ThemeJobQueueModel.created_at).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())

    def list_for_theme(self, session: Session, theme_id: str) -> List[ThemeJobQueueModel]:
        stmt = (
            select(ThemeJobQueueModel)
            .where(ThemeJobQueueModel.theme_id == theme_id)
            .order_by(ThemeJobQueueModel.created_at)
        )
        return list(session.scalars(stmt).all())

    def pending_theme_ids(self, session: Session) -> Set[str]:
        """Theme ids that have at least one queued job."""
        return set(session.scalars(select(ThemeJobQueueModel.theme_id).distinct()).all())

    def delete_for_theme(self, session: Session, theme_id: str) -> int:
        result = session.execute(delete(ThemeJobQueueModel).where(ThemeJobQueueModel.theme_id == theme_id))
        session.flush()
        return result.rowcount
