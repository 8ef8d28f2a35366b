"""
Router for the caller's profile, owned items and favorites.

List endpoints accept ``userId`` to read another user's lists; that requires
the admin role.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from gallery.access_control.context import AuthenticatedContext
from gallery.api import schemas
from gallery.api.database import get_db
from gallery.api.dependencies import (
    get_plugin_controller,
    get_plugin_favorite_service,
    get_theme_controller,
    get_theme_favorite_service,
    get_user_repository,
)
from gallery.api.dependencies_auth import require_context
from gallery.api.errors import to_http_exception
from gallery.engine.catalog_controller import CatalogController
from gallery.engine.favorite_service import FavoriteService
from gallery.engine.schemas import PluginData, ThemeData
from gallery.platform.errors import GalleryError
from gallery.platform.logging import get_logger
from gallery.storage.base import transaction
from gallery.storage.repositories.user_repository import UserRepository

logger = get_logger(__name__)

router = APIRouter()


# --- Profile ---

@router.get("/profile", response_model=schemas.UserProfileResponse)
async def get_profile(
    session: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    user_repo: Annotated[UserRepository, Depends(get_user_repository)],
    user_id: Optional[str] = Query(None, alias="userId"),
):
    target = user_id or ctx.user_id
    if not ctx.can_act_for(target):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized access")
    user = user_repo.get(session, target)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.post("/author-agreement", response_model=schemas.UserProfileResponse)
async def set_author_agreement(
    body: schemas.AuthorAgreementRequest,
    session: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    user_repo: Annotated[UserRepository, Depends(get_user_repository)],
):
    """
    Accept or withdraw the author agreement required for publishing.
    """
    accepted_at = datetime.now(timezone.utc) if body.accepted else None
    with transaction(session):
        user = user_repo.update(session, ctx.user_id, {"accepted_author_agreement": accepted_at})
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    logger.info("author_agreement_updated", user_id=ctx.user_id, accepted=body.accepted)
    return user


# --- Themes ---

@router.get("/themes", response_model=List[ThemeData])
async def get_user_themes(
    session: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    controller: Annotated[CatalogController, Depends(get_theme_controller)],
    user_id: Optional[str] = Query(None, alias="userId"),
):
    try:
        return await controller.get_owned(session, ctx, user_id)
    except GalleryError as e:
        raise to_http_exception(e)


@router.get("/themes/favorited", response_model=List[ThemeData])
async def get_user_favorite_themes(
    session: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    controller: Annotated[CatalogController, Depends(get_theme_controller)],
    user_id: Optional[str] = Query(None, alias="userId"),
):
    try:
        return await controller.get_favorites(session, ctx, user_id)
    except GalleryError as e:
        raise to_http_exception(e)


@router.post("/themes/favorited", response_model=schemas.MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_user_favorite_theme(
    body: schemas.FavoriteThemeRequest,
    session: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    service: Annotated[FavoriteService, Depends(get_theme_favorite_service)],
):
    try:
        await service.add_favorite(session, ctx.user_id, body.theme_id)
    except GalleryError as e:
        raise to_http_exception(e)
    return schemas.MessageResponse(message="Added theme to favorites.")


@router.delete("/themes/favorited", response_model=schemas.MessageResponse)
async def remove_user_favorite_theme(
    session: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    service: Annotated[FavoriteService, Depends(get_theme_favorite_service)],
    theme_id: str = Query(..., alias="themeId"),
):
    try:
        await service.remove_favorite(session, ctx.user_id, theme_id)
    except GalleryError as e:
        raise to_http_exception(e)
    return schemas.MessageResponse(message="Removed theme from favorites.")


# --- Plugins ---

@router.get("/plugins", response_model=List[PluginData])
async def get_user_plugins(
    session: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    controller: Annotated[CatalogController, Depends(get_plugin_controller)],
    user_id: Optional[str] = Query(None, alias="userId"),
):
    try:
        return await controller.get_owned(session, ctx, user_id)
    except GalleryError as e:
        raise to_http_exception(e)


@router.get("/plugins/favorited", response_model=List[PluginData])
async def get_user_favorite_plugins(
    session: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    controller: Annotated[CatalogController, Depends(get_plugin_controller)],
    user_id: Optional[str] = Query(None, alias="userId"),
):
    try:
        return await controller.get_favorites(session, ctx, user_id)
    except GalleryError as e:
        raise to_http_exception(e)


@router.post("/plugins/favorited", response_model=schemas.MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_user_favorite_plugin(
    body: schemas.FavoritePluginRequest,
    session: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    service: Annotated[FavoriteService, Depends(get_plugin_favorite_service)],
):
    try:
        await service.add_favorite(session, ctx.user_id, body.plugin_id)
    except GalleryError as e:
        raise to_http_exception(e)
    return schemas.MessageResponse(message="Added plugin to favorites.")


@router.delete("/plugins/favorited", response_model=schemas.MessageResponse)
async def remove_user_favorite_plugin(
    session: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    service: Annotated[FavoriteService, Depends(get_plugin_favorite_service)],
    plugin_id: str = Query(..., alias="pluginId"),
):
    try:
        await service.remove_favorite(session, ctx.user_id, plugin_id)
    except GalleryError as e:
        raise to_http_exception(e)
    return schemas.MessageResponse(message="Removed plugin from favorites.")
