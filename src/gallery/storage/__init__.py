"""Gallery Storage Layer - Relational store (Postgres), repositories and object storage."""

from .base import StorageAdapter, transaction
from .postgres_adapter import PostgresAdapter, PostgresConfig
from .models import (
    Base,
    FavoritePluginModel,
    FavoriteThemeModel,
    LinkedAuthProviderModel,
    PluginModel,
    PluginStatus,
    ThemeJobQueueModel,
    ThemeModel,
    ThemeVersionModel,
    UserModel,
)

__all__ = [
    "StorageAdapter",
    "transaction",
    "PostgresAdapter",
    "PostgresConfig",
    "Base",
    "UserModel",
    "LinkedAuthProviderModel",
    "ThemeModel",
    "ThemeVersionModel",
    "ThemeJobQueueModel",
    "PluginModel",
    "PluginStatus",
    "FavoriteThemeModel",
    "FavoritePluginModel",
]
