"""
Router for details about the gallery's own projects.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from gallery.api.dependencies import get_project_service
from gallery.api.errors import to_http_exception
from gallery.engine.project_service import ProjectDetailsData, ProjectService
from gallery.platform.errors import GalleryError

router = APIRouter()


@router.get("/", response_model=ProjectDetailsData)
async def get_project_details(
    service: Annotated[ProjectService, Depends(get_project_service)],
    project_name: str = Query("", alias="projectName"),
):
    """Contributors of a whitelisted project, e.g. ``react-chatbotify/gallery-api``."""
    try:
        return await service.get_details(project_name)
    except GalleryError as e:
        raise to_http_exception(e)
