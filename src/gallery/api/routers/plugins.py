"""
Router for plugin catalog and publishing endpoints.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from gallery.access_control.context import AuthenticatedContext
from gallery.api.database import get_db
from gallery.api.dependencies import get_plugin_controller, get_plugin_publish_service
from gallery.api.dependencies_auth import get_current_context, require_context
from gallery.api.errors import to_http_exception
from gallery.api.uploads import read_upload
from gallery.engine.catalog_controller import CatalogController
from gallery.engine.publish_service import PluginPublishService
from gallery.engine.schemas import PluginData, PluginVersionData
from gallery.platform.errors import GalleryError
from gallery.platform.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/", response_model=List[PluginData])
async def list_plugins(
    session: Annotated[Session, Depends(get_db)],
    controller: Annotated[CatalogController, Depends(get_plugin_controller)],
    ctx: Annotated[Optional[AuthenticatedContext], Depends(get_current_context)],
    search_query: Optional[str] = Query(None, alias="searchQuery"),
    page_num: Optional[int] = Query(None, alias="pageNum"),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection"),
):
    """
    Search plugins. Blacklisted plugins never appear.
    """
    return await controller.search(session, ctx, search_query, page_num, page_size, sort_by, sort_direction)


@router.post("/publish", response_model=PluginData)
async def publish_plugin(
    session: Annotated[Session, Depends(get_db)],
    service: Annotated[PluginPublishService, Depends(get_plugin_publish_service)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
    plugin_id: str = Form(..., alias="pluginId"),
    name: str = Form(...),
    package_url: str = Form(..., alias="packageUrl"),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None, alias="imgUrl"),
):
    """
    Publish a plugin with its png image.
    """
    uploaded = await read_upload(image)
    if uploaded is None:
        raise HTTPException(status_code=400, detail="image is required")

    try:
        return await service.publish(session, ctx, plugin_id, name, description, package_url, uploaded)
    except GalleryError as e:
        raise to_http_exception(e)


@router.get("/{plugin_id}", response_model=PluginData)
async def get_plugin(
    plugin_id: str,
    session: Annotated[Session, Depends(get_db)],
    controller: Annotated[CatalogController, Depends(get_plugin_controller)],
    ctx: Annotated[Optional[AuthenticatedContext], Depends(get_current_context)],
):
    try:
        return await controller.get_item(session, ctx, plugin_id)
    except GalleryError as e:
        raise to_http_exception(e)


@router.get("/{plugin_id}/versions", response_model=List[PluginVersionData])
async def get_plugin_versions(
    plugin_id: str,
    session: Annotated[Session, Depends(get_db)],
    controller: Annotated[CatalogController, Depends(get_plugin_controller)],
):
    """
    Published versions, read from the npm registry.
    """
    try:
        return await controller.get_versions(session, plugin_id)
    except GalleryError as e:
        raise to_http_exception(e)


@router.delete("/{plugin_id}", response_model=PluginData)
async def unpublish_plugin(
    plugin_id: str,
    session: Annotated[Session, Depends(get_db)],
    service: Annotated[PluginPublishService, Depends(get_plugin_publish_service)],
    ctx: Annotated[AuthenticatedContext, Depends(require_context)],
):
    """
    Remove a plugin from the catalog. Admin only.
    """
    try:
        return await service.unpublish(session, ctx, plugin_id)
    except GalleryError as e:
        raise to_http_exception(e)
