"""
Project details - the contributor list of the gallery's own repositories,
read through the ephemeral cache.
"""

from typing import List, Optional, Sequence

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from gallery.cache.base import Cache
from gallery.engine.cache_support import CacheBoundary
from gallery.integrations.github.service import Contributor, GitHubClient
from gallery.platform.config import settings
from gallery.platform.errors import UpstreamError, ValidationError
from gallery.platform.logging import get_logger

logger = get_logger(__name__)


class ProjectDetailsData(BaseModel):
    contributors: List[Contributor]


class ProjectService:
    """Cache-aside access to GitHub contributor lists for whitelisted projects."""

    def __init__(
        self,
        cache: Cache,
        github: GitHubClient,
        whitelist: Optional[Sequence[str]] = None,
        ttl: Optional[int] = None,
    ):
        self.cache = CacheBoundary(cache)
        self.github = github
        self.whitelist = list(whitelist if whitelist is not None else settings.project_whitelist)
        self.ttl = ttl or settings.PROJECT_CACHE_TTL

    def cache_key(self, project_name: str) -> str:
        return f"{settings.PROJECT_DETAILS_CACHE_PREFIX}:{project_name}"

    async def get_details(self, project_name: str) -> ProjectDetailsData:
        """
        Contributors of ``owner/repo``; only avatar, profile URL and login are kept.

        Raises:
            ValidationError: the project is not whitelisted
            UpstreamError: GitHub could not be reached or refused the request
        """
        if project_name not in self.whitelist:
            raise ValidationError("Invalid project name. Project not whitelisted.", field="projectName")

        key = self.cache_key(project_name)
        raw = await self.cache.get(key)
        if raw is not None:
            try:
                return ProjectDetailsData.model_validate_json(raw)
            except PydanticValidationError:
                logger.warning("cache_entry_corrupt", key=key)

        try:
            contributors = await self.github.list_contributors(project_name)
        except (httpx.HTTPError, PydanticValidationError) as e:
            logger.error("project_contributors_fetch_failed", project=project_name, error=str(e))
            raise UpstreamError(f"Failed to fetch project details for {project_name}") from e

        details = ProjectDetailsData(contributors=contributors)
        await self.cache.set(key, details.model_dump_json(), self.ttl)
        return details

    async def invalidate(self, project_name: str) -> None:
        await self.cache.delete(self.cache_key(project_name))
