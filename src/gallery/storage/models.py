from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass

# Postgres TIMESTAMPTZ, generic DateTime for SQLite tests
TIMESTAMP_TYPE = DateTime(timezone=True).with_variant(TIMESTAMP(timezone=True), 'postgresql')


class PluginStatus(str, Enum):
    SYNC = "SYNC"            # mirrored from npm, owned by the sync job
    WHITELIST = "WHITELIST"  # admitted manually, never removed by sync
    BLACKLIST = "BLACKLIST"  # hidden from the catalog, never refreshed by sync


class ThemeJobAction(str, Enum):
    CREATE = "CREATE"

# --- Users ---

class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String)
    email: Mapped[Optional[str]] = mapped_column(String, index=True)
    handle: Mapped[Optional[str]] = mapped_column(String)
    avatar_url: Mapped[Optional[str]] = mapped_column(String)
    role: Mapped[str] = mapped_column(String, server_default='USER', default='USER')
    accepted_author_agreement: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP_TYPE, nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now(), onupdate=func.now())


class LinkedAuthProviderModel(Base):
    """External identity (e.g. a GitHub account) linked to a gallery user."""
    __tablename__ = "linked_auth_providers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String, nullable=False)
    provider_user_id: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint('provider', 'provider_user_id', name='uq_linked_provider_identity'),
    )

# --- Themes ---

class ThemeModel(Base):
    __tablename__ = "themes"

    # matches the theme folder name on GitHub (e.g. minimal_midnight)
    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    favorites_count: Mapped[int] = mapped_column(Integer, server_default='0', default=0)
    versions_count: Mapped[int] = mapped_column(Integer, server_default='0', default=0)
    user_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now(), onupdate=func.now())


class ThemeVersionModel(Base):
    __tablename__ = "theme_versions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    theme_id: Mapped[str] = mapped_column(ForeignKey("themes.id", ondelete="CASCADE"), nullable=False, index=True)
    version: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('theme_id', 'version', name='uq_theme_version'),
    )


class ThemeJobQueueModel(Base):
    """Pending theme publish request, not yet materialized into a theme."""
    __tablename__ = "theme_job_queue"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    theme_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    version: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False, server_default=ThemeJobAction.CREATE.value)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())

# --- Plugins ---

class PluginModel(Base):
    __tablename__ = "plugins"

    # npm package name
    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    favorites_count: Mapped[int] = mapped_column(Integer, server_default='0', default=0)
    image_url: Mapped[Optional[str]] = mapped_column(String)
    package_url: Mapped[str] = mapped_column(String, nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String, server_default=PluginStatus.SYNC.value, default=PluginStatus.SYNC.value, index=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now(), onupdate=func.now())

# --- Favorites (user <-> item edges) ---

class FavoriteThemeModel(Base):
    __tablename__ = "favorite_themes"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    theme_id: Mapped[str] = mapped_column(ForeignKey("themes.id", ondelete="CASCADE"), primary_key=True)

    __table_args__ = (
        Index('idx_favorite_themes_theme', 'theme_id'),
    )


class FavoritePluginModel(Base):
    __tablename__ = "favorite_plugins"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    plugin_id: Mapped[str] = mapped_column(ForeignKey("plugins.id", ondelete="CASCADE"), primary_key=True)

    __table_args__ = (
        Index('idx_favorite_plugins_plugin', 'plugin_id'),
    )
