from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from gallery.storage.models import UserModel

ADMIN_ROLE = "admin"


def is_admin_role(role: Optional[str]) -> bool:
    """Roles are compared case-insensitively; only "admin" is elevated."""
    return bool(role) and role.lower() == ADMIN_ROLE


@dataclass(frozen=True)
class AuthenticatedContext:
    """
    The caller of a request, resolved from its session.

    Passed explicitly into every controller/service call that acts on behalf
    of a user.
    """
    user_id: str
    role: str = "USER"
    accepted_author_agreement: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return is_admin_role(self.role)

    @property
    def has_accepted_author_agreement(self) -> bool:
        return self.accepted_author_agreement is not None

    def can_act_for(self, user_id: str) -> bool:
        """A user may read or act on their own data; admins on anyone's."""
        return self.user_id == user_id or self.is_admin

    @classmethod
    def from_user(cls, user: UserModel) -> "AuthenticatedContext":
        return cls(
            user_id=user.id,
            role=user.role or "USER",
            accepted_author_agreement=user.accepted_author_agreement,
        )
