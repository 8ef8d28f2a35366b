from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# --- Favorites ---

class FavoriteThemeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    theme_id: str = Field(..., alias="themeId", min_length=1)


class FavoritePluginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plugin_id: str = Field(..., alias="pluginId", min_length=1)

# --- Users ---

class AuthorAgreementRequest(BaseModel):
    accepted: bool


class UserProfileResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    handle: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    accepted_author_agreement: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# --- Generic ---

class MessageResponse(BaseModel):
    message: str


class CancelJobResponse(BaseModel):
    theme_id: str
    removed: int
