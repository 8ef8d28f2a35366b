"""
Data-transfer structs that cross the service boundary and get cached.

ORM instances never leave a repository/session; everything above that layer
works with these models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class CatalogItemData(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    favorites_count: int = 0
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Filled in per request by the favorite overlay, never cached as True/False
    is_favorite: Optional[bool] = None

    model_config = {"from_attributes": True}


class ThemeData(CatalogItemData):
    versions_count: int = 0


class PluginData(CatalogItemData):
    image_url: Optional[str] = None
    package_url: str
    status: str = "SYNC"


class ThemeVersionData(BaseModel):
    id: str
    theme_id: str
    version: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PluginVersionData(BaseModel):
    id: str
    plugin_id: str
    version: str
    created_at: Optional[datetime] = None


class ThemeJobData(BaseModel):
    id: str
    theme_id: str
    user_id: str
    name: str
    description: Optional[str] = None
    version: str
    action: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ThemeState(str, Enum):
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"


class ThemeStatusData(BaseModel):
    theme_id: str
    state: ThemeState
    theme: Optional[ThemeData] = None
    jobs: list[ThemeJobData] = []
