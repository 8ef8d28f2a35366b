"""
Publish Services - publish/unpublish workflows for plugins and themes.

Plugins are written straight into the catalog. Themes are queued as
ThemeJobQueue entries and only appear in the catalog once the theme sync
materializes them from GitHub.
"""

import secrets
from dataclasses import dataclass
from pathlib import PurePath
from typing import Iterable, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gallery.access_control.context import AuthenticatedContext
from gallery.engine.cache_support import PostCommitHooks
from gallery.engine.catalog_cache import PluginCacheService, ThemeCacheService
from gallery.engine.schemas import PluginData, ThemeJobData, ThemeState, ThemeStatusData
from gallery.engine.user_relationships import UserRelationshipService
from gallery.platform.config import settings
from gallery.platform.errors import (
    AlreadyPublishedError,
    JobAlreadyQueuedError,
    NotAvailableError,
    NotFoundError,
    StoreFailureError,
    UnauthorizedError,
    ValidationError,
)
from gallery.platform.logging import get_logger
from gallery.storage.base import transaction
from gallery.storage.models import PluginModel, PluginStatus, ThemeJobAction, ThemeJobQueueModel
from gallery.storage.object_store import ObjectStore
from gallery.storage.repositories.favorite_repository import FavoriteRepository
from gallery.storage.repositories.theme_job_repository import ThemeJobRepository

logger = get_logger(__name__)


# --- Uploads ---

@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


def get_file_extension(filename: str) -> str:
    """Lower-cased text after the last dot, or "" when there is none."""
    stem, dot, extension = PurePath(filename).name.rpartition(".")
    if not dot or not stem:
        return ""
    return extension.lower()


def validate_upload(upload: UploadedFile, allowed_extensions: Iterable[str], field: str) -> None:
    if not upload.content:
        raise ValidationError(f"{field} is empty", field=field)
    if len(upload.content) > settings.UPLOAD_MAX_BYTES:
        raise ValidationError(
            f"{field} exceeds the {settings.UPLOAD_MAX_BYTES} byte limit",
            field=field,
        )
    allowed = list(allowed_extensions)
    if get_file_extension(upload.filename) not in allowed:
        raise ValidationError(
            f"{field} must be one of: {', '.join(allowed)}",
            field=field,
        )


def build_object_name(filename: str) -> str:
    """``<stem><40 random hex chars>.<ext>`` so repeated uploads never collide."""
    name = PurePath(filename).name
    extension = get_file_extension(name)
    stem = name[: -(len(extension) + 1)] if extension else name
    return f"{stem}{secrets.token_hex(20)}.{extension}"


def _object_name_from_url(url: str, bucket: str) -> Optional[str]:
    marker = f"/{bucket}/"
    if marker not in url:
        return None
    return url.split(marker, 1)[1]


# --- Plugins ---

class PluginPublishService:

    def __init__(
        self,
        catalog: PluginCacheService,
        favorites: FavoriteRepository,
        relationships: UserRelationshipService,
        object_store: ObjectStore,
        bucket: Optional[str] = None,
    ):
        self.catalog = catalog
        self.repository = catalog.repository
        self.favorites = favorites
        self.relationships = relationships
        self.object_store = object_store
        self.bucket = bucket or settings.PLUGIN_IMAGE_BUCKET

    async def _remove_image(self, image_url: Optional[str]) -> None:
        if not image_url:
            return
        name = _object_name_from_url(image_url, self.bucket)
        if name is None:
            return
        try:
            await self.object_store.remove(self.bucket, name)
        except Exception as e:
            logger.warning("plugin_image_remove_failed", bucket=self.bucket, name=name, error=str(e))

    async def publish(
        self,
        session: Session,
        ctx: AuthenticatedContext,
        plugin_id: str,
        name: str,
        description: Optional[str],
        package_url: str,
        image: UploadedFile,
    ) -> PluginData:
        """
        Publish a plugin owned by the caller.

        The image is validated and uploaded first; the plugin row is created
        with status WHITELIST so the npm sync never removes it.

        Raises:
            UnauthorizedError: the author agreement has not been accepted
            ValidationError: the image is empty, too large or not a png
            AlreadyPublishedError: a plugin with this id exists
            StoreFailureError: the insert failed and was rolled back
        """
        if not ctx.has_accepted_author_agreement:
            raise UnauthorizedError("The author agreement must be accepted before publishing")
        validate_upload(image, settings.plugin_image_extensions, field="image")

        if self.repository.get(session, plugin_id) is not None:
            raise AlreadyPublishedError(f"Plugin {plugin_id} already exists")

        object_name = build_object_name(image.filename)
        image_url = await self.object_store.upload(self.bucket, object_name, image.content, image.content_type)

        try:
            with transaction(session):
                plugin = self.repository.create(
                    session,
                    PluginModel(
                        id=plugin_id,
                        name=name,
                        description=description,
                        image_url=image_url,
                        package_url=package_url,
                        user_id=ctx.user_id,
                        status=PluginStatus.WHITELIST.value,
                    ),
                )
        except IntegrityError:
            await self._remove_image(image_url)
            raise AlreadyPublishedError(f"Plugin {plugin_id} already exists")
        except SQLAlchemyError as e:
            await self._remove_image(image_url)
            logger.error("plugin_publish_failed", plugin_id=plugin_id, error=str(e))
            raise StoreFailureError(f"Failed to publish plugin {plugin_id}") from e

        data = PluginData.model_validate(plugin)
        logger.info("plugin_published", plugin_id=plugin_id, user_id=ctx.user_id)

        hooks = PostCommitHooks()
        hooks.add("plugin_search", self.catalog.invalidate_search)
        hooks.add("plugin_point", lambda: self.catalog.invalidate(plugin_id))
        hooks.add("plugin_versions", lambda: self.catalog.invalidate_versions(plugin_id))
        hooks.add("plugin_owned", lambda: self.relationships.invalidate_owned(ctx.user_id))
        await hooks.run()
        return data

    async def unpublish(self, session: Session, ctx: AuthenticatedContext, plugin_id: str) -> PluginData:
        """
        Remove a plugin and every favorite edge pointing at it. Admin only.

        Raises:
            UnauthorizedError: the caller is not an admin
            NotFoundError: the plugin does not exist
            StoreFailureError: the delete failed and was rolled back
        """
        if not ctx.is_admin:
            raise UnauthorizedError("Only admins can unpublish plugins")

        try:
            with transaction(session):
                plugin = self.repository.get_for_update(session, plugin_id)
                if plugin is None:
                    raise NotFoundError(f"Plugin {plugin_id} not found")
                data = PluginData.model_validate(plugin)
                favorited_by = self.favorites.delete_for_item(session, plugin_id)
                self.repository.delete(session, plugin_id)
        except SQLAlchemyError as e:
            logger.error("plugin_unpublish_failed", plugin_id=plugin_id, error=str(e))
            raise StoreFailureError(f"Failed to unpublish plugin {plugin_id}") from e

        logger.info("plugin_unpublished", plugin_id=plugin_id, user_id=ctx.user_id, favorites_removed=len(favorited_by))

        hooks = PostCommitHooks()
        hooks.add("plugin_point", lambda: self.catalog.invalidate(plugin_id))
        hooks.add("plugin_versions", lambda: self.catalog.invalidate_versions(plugin_id))
        hooks.add("plugin_search", self.catalog.invalidate_search)
        if data.user_id:
            hooks.add("plugin_owned", lambda: self.relationships.invalidate_owned(data.user_id))
        for user_id in favorited_by:
            hooks.add("plugin_user_favorites", lambda user_id=user_id: self.relationships.invalidate_favorites(user_id))
        await hooks.run()

        await self._remove_image(data.image_url)
        return data


# --- Themes ---

class ThemePublishService:

    def __init__(self, catalog: ThemeCacheService, jobs: Optional[ThemeJobRepository] = None):
        self.catalog = catalog
        self.repository = catalog.repository
        self.jobs = jobs or ThemeJobRepository()

    def publish(
        self,
        session: Session,
        ctx: AuthenticatedContext,
        theme_id: str,
        name: str,
        description: Optional[str],
        version: str,
        files: Mapping[str, UploadedFile],
    ) -> ThemeJobData:
        """
        Queue a theme for publishing. The theme stays PENDING until the
        theme sync picks it up from GitHub.

        Raises:
            UnauthorizedError: no author agreement, or the theme belongs to someone else
            ValidationError: an uploaded file failed its checks or its field is unknown
            AlreadyPublishedError: this version of the theme already exists
            JobAlreadyQueuedError: a job for this theme is already pending
        """
        if not ctx.has_accepted_author_agreement:
            raise UnauthorizedError("The author agreement must be accepted before publishing")
        allowed = settings.theme_file_extensions
        for field, upload in files.items():
            if field not in allowed:
                raise ValidationError(f"Unknown theme file field: {field}", field=field)
            validate_upload(upload, allowed[field], field=field)

        theme = self.repository.get(session, theme_id)
        if theme is not None:
            if theme.user_id != ctx.user_id:
                raise UnauthorizedError(f"Theme {theme_id} belongs to another user")
            if self.repository.get_version(session, theme_id, version) is not None:
                raise AlreadyPublishedError(f"Theme {theme_id} version {version} already exists")

        try:
            with transaction(session):
                if self.jobs.list_for_theme(session, theme_id):
                    raise JobAlreadyQueuedError(f"Theme {theme_id} already has a pending job")
                job = self.jobs.create(
                    session,
                    ThemeJobQueueModel(
                        theme_id=theme_id,
                        user_id=ctx.user_id,
                        name=name,
                        description=description,
                        version=version,
                        action=ThemeJobAction.CREATE.value,
                    ),
                )
        except IntegrityError:
            raise JobAlreadyQueuedError(f"Theme {theme_id} already has a pending job")
        except SQLAlchemyError as e:
            logger.error("theme_publish_failed", theme_id=theme_id, error=str(e))
            raise StoreFailureError(f"Failed to queue theme {theme_id}") from e

        logger.info("theme_publish_queued", theme_id=theme_id, job_id=job.id, user_id=ctx.user_id)
        return ThemeJobData.model_validate(job)

    def unpublish(self, session: Session, ctx: AuthenticatedContext, theme_id: str) -> None:
        # Disabled until removal of a theme can account for its dependents
        raise NotAvailableError("Theme unpublishing is not available")

    async def get_status(self, session: Session, theme_id: str) -> ThemeStatusData:
        jobs = [ThemeJobData.model_validate(job) for job in self.jobs.list_for_theme(session, theme_id)]
        theme = await self.catalog.get(session, theme_id)

        if jobs:
            state = ThemeState.PENDING
        elif theme is not None:
            state = ThemeState.PUBLISHED
        else:
            raise NotFoundError(f"Theme {theme_id} not found")
        return ThemeStatusData(theme_id=theme_id, state=state, theme=theme, jobs=jobs)

    def cancel_job(self, session: Session, ctx: AuthenticatedContext, theme_id: str) -> int:
        """
        Drop the pending jobs of a theme. Allowed for the submitter or an admin.

        Returns:
            Number of jobs removed
        """
        try:
            with transaction(session):
                jobs = self.jobs.list_for_theme(session, theme_id)
                if not jobs:
                    raise NotFoundError(f"No pending job for theme {theme_id}")
                if not ctx.is_admin and any(job.user_id != ctx.user_id for job in jobs):
                    raise UnauthorizedError(f"Only the submitter can cancel the job for theme {theme_id}")
                removed = self.jobs.delete_for_theme(session, theme_id)
        except SQLAlchemyError as e:
            logger.error("theme_job_cancel_failed", theme_id=theme_id, error=str(e))
            raise StoreFailureError(f"Failed to cancel job for theme {theme_id}") from e

        logger.info("theme_job_cancelled", theme_id=theme_id, removed=removed, user_id=ctx.user_id)
        return removed
