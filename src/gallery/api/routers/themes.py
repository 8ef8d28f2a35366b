"""
Router for theme catalog and publishing endpoints.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from gallery.access_control.context import AuthenticatedContext
from gallery.api import schemas
from gallery.api.database import get_db
from gallery.api.dependencies import get_theme_controller, get_theme_publish_service
from gallery.api.dependencies_auth import get_current_context, require_context
from gallery.api.errors import to_http_exception
from gallery.api.uploads import read_upload
from gallery.engine.catalog_controller import CatalogController
from gallery.engine.publish_service import ThemePublishService
from gallery.engine.schemas import ThemeData, ThemeJobData, ThemeStatusData, ThemeVersionData
from gallery.platform.errors import GalleryError
from gallery.platform.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/", response_model=List[ThemeData])
async def list_themes(
    session: Annotated[Session, Depends(get_db)],
    controller: Annotated[CatalogController, Depends(get_theme_controller)],
    ctx: Annotated[Optional[AuthenticatedContext], Depends(get_current_context)],
    search_query: Optional[str] = Query(None, alias="searchQuery"),
    page_num: Optional[int] = Query(None, alias="pageNum"),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection"),
):
    """
    Search themes. Authenticated callers get ``is_favorite`` filled in.
    """
    return await controller.search(session, ctx, search_query, page_num, page_size, sort_by, sort_direction)


@router.post("/publish", response_model=ThemeJobData, status_code=status.HTTP_201_CREATED)
async def publish_theme(
    session: Annotated[Session, Depends(get_db)],
    service: Annotated[ThemePublishService, Depends(get_theme_publish_service)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    theme_id: str = Form(..., alias="themeId"),
    name: str = Form(...),
    version: str = Form(...),
    description: Optional[str] = Form(None),
    styles: Optional[UploadFile] = File(None),
    options: Optional[UploadFile] = File(None),
    display: Optional[UploadFile] = File(None),
):
    """
    Queue a theme for publishing.
    """
    files = {}
    for field, upload in (("styles", styles), ("options", options), ("display", display)):
        uploaded = await read_upload(upload)
        if uploaded is not None:
            files[field] = uploaded

    try:
        return service.publish(session, ctx, theme_id, name, description, version, files)
    except GalleryError as e:
        raise to_http_exception(e)


@router.delete("/jobs/{theme_id}", response_model=schemas.CancelJobResponse)
async def cancel_theme_job(
    theme_id: str,
    session: Annotated[Session, Depends(get_db)],
    service: Annotated[ThemePublishService, Depends(get_theme_publish_service)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
):
    """
    Cancel the pending publish job of a theme.
    """
    try:
        removed = service.cancel_job(session, ctx, theme_id)
    except GalleryError as e:
        raise to_http_exception(e)
    return schemas.CancelJobResponse(theme_id=theme_id, removed=removed)


@router.get("/{theme_id}", response_model=ThemeData)
async def get_theme(
    theme_id: str,
    session: Annotated[Session, Depends(get_db)],
    controller: Annotated[CatalogController, Depends(get_theme_controller)],
    ctx: Annotated[Optional[AuthenticatedContext], Depends(get_current_context)],
):
    try:
        return await controller.get_item(session, ctx, theme_id)
    except GalleryError as e:
        raise to_http_exception(e)


@router.get("/{theme_id}/versions", response_model=List[ThemeVersionData])
async def get_theme_versions(
    theme_id: str,
    session: Annotated[Session, Depends(get_db)],
    controller: Annotated[CatalogController, Depends(get_theme_controller)],
):
    try:
        return await controller.get_versions(session, theme_id)
    except GalleryError as e:
        raise to_http_exception(e)


@router.get("/{theme_id}/status", response_model=ThemeStatusData)
async def get_theme_status(
    theme_id: str,
    session: Annotated[Session, Depends(get_db)],
    service: Annotated[ThemePublishService, Depends(get_theme_publish_service)],
):
    """
    PENDING while a publish job is queued, PUBLISHED once the theme exists.
    """
    try:
        return await service.get_status(session, theme_id)
    except GalleryError as e:
        raise to_http_exception(e)


@router.delete("/{theme_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unpublish_theme(
    theme_id: str,
    session: Annotated[Session, Depends(get_db)],
    service: Annotated[ThemePublishService, Depends(get_theme_publish_service)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
):
    try:
        service.unpublish(session, ctx, theme_id)
    except GalleryError as e:
        raise to_http_exception(e)
