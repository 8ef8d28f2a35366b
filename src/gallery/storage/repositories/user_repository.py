from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from gallery.storage.models import LinkedAuthProviderModel, UserModel
from .base import BaseRepository

class UserRepository(BaseRepository[UserModel]):

    def create(self, session: Session, entity: UserModel) -> UserModel:
        session.add(entity)
        session.flush()
        return entity

    def get(self, session: Session, id: str) -> Optional[UserModel]:
        return session.get(UserModel, id)

    def update(self, session: Session, id: str, updates: dict) -> Optional[UserModel]:
        user = self.get(session, id)
        if not user:
            return None

        for key, value in updates.items():
            setattr(user, key, value)

        session.flush()
        return user

    def delete(self, session: Session, id: str) -> bool:
        user = self.get(session, id)
        if not user:
            return False
        session.delete(user)
        session.flush()
        return True

    def list(self, session: Session, limit: int = 100, offset: int = 0) -> List[UserModel]:
        stmt = select(UserModel).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())

    # --- Linked identities ---

    def link_provider(self, session: Session, user_id: str, provider: str, provider_user_id: str) -> LinkedAuthProviderModel:
        link = LinkedAuthProviderModel(user_id=user_id, provider=provider, provider_user_id=provider_user_id)
        session.add(link)
        session.flush()
        return link

    def get_user_id_by_provider(self, session: Session, provider: str, provider_user_id: str) -> Optional[str]:
        stmt = select(LinkedAuthProviderModel.user_id).where(
            LinkedAuthProviderModel.provider == provider,
            LinkedAuthProviderModel.provider_user_id == provider_user_id,
        )
        return session.scalars(stmt).first()
