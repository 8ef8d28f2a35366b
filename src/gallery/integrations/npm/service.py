from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from urllib.parse import quote

import httpx

from gallery.platform.config import settings
from gallery.platform.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class NpmPackage:
    """A package as listed by the registry search."""
    id: str
    name: str
    description: Optional[str]
    package_url: str
    version: Optional[str] = None


@dataclass(frozen=True)
class NpmRelease:
    version: str
    published_at: Optional[datetime] = None


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class NpmRegistryClient:
    """
    Read-only client for the npm registry using httpx.
    """

    PAGE_SIZE = 250

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = (base_url or settings.NPM_REGISTRY_URL).rstrip("/")
        self._timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        if not self.client:
            self.client = httpx.AsyncClient(base_url=self._url, timeout=self._timeout, transport=self._transport)

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None

    async def _ensure_connected(self):
        if not self.client:
            await self.connect()

    async def search_by_keyword(self, keyword: str) -> List[NpmPackage]:
        """
        List every package tagged with ``keyword``, following the registry's
        pagination until the reported total is reached.

        Raises:
            httpx.HTTPError: the registry could not be reached or answered with an error
        """
        await self._ensure_connected()
        packages: List[NpmPackage] = []
        offset = 0

        while True:
            resp = await self.client.get(
                "/-/v1/search",
                params={"text": f"keywords:{keyword}", "size": self.PAGE_SIZE, "from": offset},
            )
            resp.raise_for_status()
            data = resp.json()
            objects = data.get("objects") or []

            for entry in objects:
                pkg = entry.get("package") or {}
                name = pkg.get("name")
                if not name:
                    continue
                links = pkg.get("links") or {}
                packages.append(
                    NpmPackage(
                        id=name,
                        name=name,
                        description=pkg.get("description"),
                        package_url=links.get("npm") or f"https://www.npmjs.com/package/{name}",
                        version=pkg.get("version"),
                    )
                )

            offset += len(objects)
            if not objects or offset >= data.get("total", 0):
                break

        logger.debug("npm_search_completed", keyword=keyword, count=len(packages))
        return packages

    async def get_versions(self, package: str) -> List[NpmRelease]:
        """Published versions of a package with their release times."""
        await self._ensure_connected()
        resp = await self.client.get(f"/{quote(package, safe='@')}")
        resp.raise_for_status()
        data = resp.json()

        versions = data.get("versions") or {}
        times = data.get("time") or {}
        if not versions:
            logger.warning("npm_package_without_versions", package=package)
            return []

        return [NpmRelease(version=version, published_at=_parse_timestamp(times.get(version))) for version in versions]
