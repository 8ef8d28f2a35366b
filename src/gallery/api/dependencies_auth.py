from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from gallery.access_control.context import AuthenticatedContext
from gallery.api.database import get_db
from gallery.api.dependencies import get_user_repository
from gallery.storage.repositories.user_repository import UserRepository

# Session resolution happens upstream; the resolved user id arrives in this header
USER_ID_HEADER = "X-User-ID"


def get_current_context(
    x_user_id: Annotated[Optional[str], Header(alias=USER_ID_HEADER)] = None,
    db: Session = Depends(get_db),
    user_repo: UserRepository = Depends(get_user_repository),
) -> Optional[AuthenticatedContext]:
    """
    Resolve the caller from the X-User-ID header.

    Returns None for anonymous requests; an unknown id is rejected.
    """
    if not x_user_id:
        return None

    user = user_repo.get(db, x_user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid User ID",
        )
    return AuthenticatedContext.from_user(user)


def require_context(
    ctx: Annotated[Optional[AuthenticatedContext], Depends(get_current_context)],
) -> AuthenticatedContext:
    """Enforce that a user is authenticated."""
    if ctx is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return ctx
