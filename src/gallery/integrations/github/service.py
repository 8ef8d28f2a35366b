from typing import List, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from gallery.platform.config import settings
from gallery.platform.logging import get_logger

logger = get_logger(__name__)


class ThemeMeta(BaseModel):
    """Contents of a theme folder's meta.json."""
    name: str
    description: Optional[str] = None
    version: str
    github: Optional[str] = None


class Contributor(BaseModel):
    """Public profile fields of a repository contributor; the rest of the payload is dropped."""
    login: str
    avatar_url: str
    html_url: str


class GitHubClient:
    """
    Client for the themes repository on GitHub using httpx.

    Folder listing, user lookups and contributor lists use the REST API; meta.json is read from
    the raw content host.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        raw_url: Optional[str] = None,
        owner: Optional[str] = None,
        repo: Optional[str] = None,
        path: Optional[str] = None,
        branch: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = (api_url or settings.GITHUB_API_URL).rstrip("/")
        self.raw_url = (raw_url or settings.GITHUB_RAW_URL).rstrip("/")
        self.owner = owner or settings.GITHUB_THEMES_OWNER
        self.repo = repo or settings.GITHUB_THEMES_REPO
        self.path = (path or settings.GITHUB_THEMES_PATH).strip("/")
        self.branch = branch or settings.GITHUB_THEMES_BRANCH
        self._timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        if not self.client:
            self.client = httpx.AsyncClient(
                headers={"Accept": "application/vnd.github+json"},
                timeout=self._timeout,
                transport=self._transport,
            )

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None

    async def _ensure_connected(self):
        if not self.client:
            await self.connect()

    async def list_theme_folders(self) -> List[str]:
        """
        Names of the theme folders in the repository; each is a theme id.

        Raises:
            httpx.HTTPError: the listing could not be fetched
        """
        await self._ensure_connected()
        resp = await self.client.get(
            f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{self.path}",
            params={"ref": self.branch},
        )
        resp.raise_for_status()
        folders = [item["name"] for item in resp.json() if item.get("type") == "dir"]
        logger.debug("github_theme_folders_fetched", count=len(folders))
        return folders

    async def fetch_theme_meta(self, theme_id: str) -> ThemeMeta:
        """
        Raises:
            httpx.HTTPError: meta.json could not be fetched
            pydantic.ValidationError: meta.json is missing required fields
        """
        await self._ensure_connected()
        resp = await self.client.get(f"{self.raw_url}/{self.owner}/{self.repo}/{self.branch}/{self.path}/{theme_id}/meta.json")
        resp.raise_for_status()
        return ThemeMeta.model_validate(resp.json())

    async def get_user_id(self, handle: str) -> Optional[str]:
        """Numeric GitHub id for a handle, or None when the user does not exist."""
        await self._ensure_connected()
        resp = await self.client.get(f"{self.api_url}/users/{quote(handle, safe='')}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        user_id = resp.json().get("id")
        return str(user_id) if user_id is not None else None

    async def list_contributors(self, repo_full_name: str) -> List[Contributor]:
        """
        Contributors of ``owner/repo``, in the order GitHub ranks them.

        Raises:
            httpx.HTTPError: the list could not be fetched
        """
        await self._ensure_connected()
        owner, _, repo = repo_full_name.partition("/")
        resp = await self.client.get(
            f"{self.api_url}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/contributors"
        )
        resp.raise_for_status()
        contributors = [Contributor.model_validate(item) for item in resp.json()]
        logger.debug("github_contributors_fetched", repo=repo_full_name, count=len(contributors))
        return contributors
