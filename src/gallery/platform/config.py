"""
Gallery Configuration Management

Uses Pydantic Settings for type-safe configuration from environment variables.
"""

from functools import lru_cache
from typing import Dict, List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # =========================================================================
    # APPLICATION
    # =========================================================================
    APP_NAME: str = "Gallery API"
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "info"
    VERSION: str = "0.1.0"

    # =========================================================================
    # API SERVER
    # =========================================================================
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:3000"

    # =========================================================================
    # REDIS (Ephemeral Cache)
    # =========================================================================
    REDIS_EPHEMERAL_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: float = 5.0

    # =========================================================================
    # CACHE KEYS
    # =========================================================================
    THEME_SEARCH_CACHE_PREFIX: str = "theme_search"
    THEME_DATA_CACHE_PREFIX: str = "theme_data"
    THEME_VERSIONS_CACHE_PREFIX: str = "theme_versions"
    PLUGIN_SEARCH_CACHE_PREFIX: str = "plugin_search"
    PLUGIN_DATA_CACHE_PREFIX: str = "plugin_data"
    PLUGIN_VERSIONS_CACHE_PREFIX: str = "plugin_versions"
    USER_THEME_FAVORITES_CACHE_PREFIX: str = "user_theme_favorites"
    USER_THEME_OWNERSHIP_CACHE_PREFIX: str = "user_theme_ownership"
    USER_PLUGIN_FAVORITES_CACHE_PREFIX: str = "user_plugin_favorites"
    USER_PLUGIN_OWNERSHIP_CACHE_PREFIX: str = "user_plugin_ownership"
    PROJECT_DETAILS_CACHE_PREFIX: str = "project_details"

    # =========================================================================
    # CACHE TTLs (seconds)
    # =========================================================================
    SEARCH_CACHE_TTL: int = 900
    DATA_CACHE_TTL: int = 1800
    VERSIONS_CACHE_TTL: int = 1800
    USER_CACHE_TTL: int = 1800
    PROJECT_CACHE_TTL: int = 1800

    # =========================================================================
    # PAGINATION
    # =========================================================================
    DEFAULT_PAGE_SIZE: int = 30
    MAX_PAGE_SIZE: int = 50

    # =========================================================================
    # UPLOADS
    # =========================================================================
    UPLOAD_MAX_BYTES: int = 5 * 1024 * 1024
    PLUGIN_IMAGE_EXTENSIONS: str = "png"
    THEME_STYLES_EXTENSIONS: str = "css"
    THEME_OPTIONS_EXTENSIONS: str = "json"
    THEME_DISPLAY_EXTENSIONS: str = "png"
    PLUGIN_IMAGE_BUCKET: str = "plugins-images"

    # =========================================================================
    # MINIO (Object Storage)
    # =========================================================================
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = "gallery_admin"
    MINIO_SECRET_KEY: str = "gallery_secret"
    MINIO_SECURE: bool = False
    MINIO_PUBLIC_URL: str = "http://localhost:9000"

    # =========================================================================
    # EXTERNAL SOURCES (Sync Jobs)
    # =========================================================================
    NPM_REGISTRY_URL: str = "https://registry.npmjs.org"
    NPM_PLUGIN_TAG: str = "react-chatbotify-plugin"
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_RAW_URL: str = "https://raw.githubusercontent.com"
    GITHUB_THEMES_OWNER: str = "tjtanjin"
    GITHUB_THEMES_REPO: str = "react-chatbotify-themes"
    GITHUB_THEMES_PATH: str = "themes"
    GITHUB_THEMES_BRANCH: str = "main"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # =========================================================================
    # PROJECTS
    # =========================================================================
    PROJECT_WHITELIST: str = "react-chatbotify/gallery-api,react-chatbotify/gallery-website"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @staticmethod
    def _split(value: str) -> List[str]:
        return [part.strip().lower().lstrip(".") for part in value.split(",") if part.strip()]

    @property
    def plugin_image_extensions(self) -> List[str]:
        return self._split(self.PLUGIN_IMAGE_EXTENSIONS)

    @property
    def theme_file_extensions(self) -> Dict[str, List[str]]:
        """Allowed extensions per theme upload field."""
        return {
            "styles": self._split(self.THEME_STYLES_EXTENSIONS),
            "options": self._split(self.THEME_OPTIONS_EXTENSIONS),
            "display": self._split(self.THEME_DISPLAY_EXTENSIONS),
        }

    @property
    def project_whitelist(self) -> List[str]:
        return [part.strip() for part in self.PROJECT_WHITELIST.split(",") if part.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance for easy import
settings = get_settings()
