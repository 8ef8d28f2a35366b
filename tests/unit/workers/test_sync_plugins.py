"""
Unit tests for the npm plugin sync with a mocked registry client.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from gallery.engine.catalog_cache import PluginCacheService
from gallery.engine.user_relationships import plugin_relationships
from gallery.integrations.npm.service import NpmPackage
from gallery.platform.errors import SyncError
from gallery.storage.models import PluginModel, PluginStatus
from gallery.storage.repositories.favorite_repository import plugin_favorites
from gallery.workers.sync_plugins import PluginSyncJob


def _package(name, description=None):
    return NpmPackage(id=name, name=name, description=description, package_url=f"https://www.npmjs.com/package/{name}")


def _stored(name, status=PluginStatus.SYNC.value, description=None, user_id=None):
    return PluginModel(
        id=name,
        name=name,
        description=description,
        package_url=f"https://www.npmjs.com/package/{name}",
        status=status,
        user_id=user_id,
    )


@pytest.fixture
def npm():
    client = AsyncMock()
    client.search_by_keyword.return_value = []
    return client


@pytest.fixture
def job(session_factory, cache, npm):
    catalog = PluginCacheService(cache)
    favorites = plugin_favorites()
    return PluginSyncJob(
        session_factory,
        npm,
        catalog,
        plugin_relationships(cache, catalog, favorites),
        favorites,
        tag="react-chatbotify-plugin",
    )


@pytest.mark.asyncio
async def test_sync_reconciles_with_npm(session, make_user, cache, npm, job):
    make_user("u1")
    session.add_all([
        _stored("old-sync"),
        _stored("manual", status=PluginStatus.WHITELIST.value, user_id="u1"),
        _stored("banned", status=PluginStatus.BLACKLIST.value, description="hidden"),
        _stored("pkg-stale", description="old text"),
        _stored("pkg-same", description="same"),
    ])
    session.commit()
    plugin_favorites().create(session, "u1", "old-sync")
    session.commit()
    cache.store["user_plugin_favorites:u1"] = '["old-sync"]'
    cache.store["plugin_search::1:30:updated_at:DESC"] = '["old-sync"]'
    cache.store["plugin_data:pkg-stale"] = "{}"

    npm.search_by_keyword.return_value = [
        _package("pkg-a", "new plugin"),
        _package("banned", "changed upstream"),
        _package("pkg-stale", "new text"),
        _package("pkg-same", "same"),
    ]

    report = await job.run()

    npm.search_by_keyword.assert_awaited_once_with("react-chatbotify-plugin")
    assert report.created == ["pkg-a"]
    assert report.updated == ["pkg-stale"]
    assert report.deleted == ["old-sync"]
    assert sorted(report.skipped) == ["banned", "manual"]
    assert report.failed == []

    session.expire_all()
    assert session.get(PluginModel, "old-sync") is None
    assert session.get(PluginModel, "manual") is not None
    assert session.get(PluginModel, "banned").description == "hidden"
    assert session.get(PluginModel, "pkg-stale").description == "new text"
    created = session.get(PluginModel, "pkg-a")
    assert created.status == PluginStatus.SYNC.value
    assert created.package_url == "https://www.npmjs.com/package/pkg-a"

    assert plugin_favorites().list_user_ids_for_item(session, "old-sync") == []
    assert "user_plugin_favorites:u1" not in cache.store
    assert "plugin_search::1:30:updated_at:DESC" not in cache.store
    assert "plugin_data:pkg-stale" not in cache.store


@pytest.mark.asyncio
async def test_one_failing_item_does_not_stop_the_run(session, npm, job):
    npm.search_by_keyword.return_value = [_package("pkg-a"), _package("pkg-b")]
    original_create = job.repository.create

    def flaky_create(session, entity):
        if entity.id == "pkg-a":
            raise OperationalError("INSERT", {}, Exception("deadlock"))
        return original_create(session, entity)

    with patch.object(job.repository, "create", side_effect=flaky_create):
        report = await job.run()

    assert report.failed == ["pkg-a"]
    assert report.created == ["pkg-b"]
    session.expire_all()
    assert session.get(PluginModel, "pkg-a") is None
    assert session.get(PluginModel, "pkg-b") is not None


@pytest.mark.asyncio
async def test_listing_failure_aborts_without_changes(session, npm, job):
    session.add(_stored("old-sync"))
    session.commit()
    npm.search_by_keyword.side_effect = httpx.ConnectError("registry unreachable")

    with pytest.raises(SyncError):
        await job.run()

    session.expire_all()
    assert session.get(PluginModel, "old-sync") is not None


@pytest.mark.asyncio
async def test_unchanged_run_keeps_search_cache(session, cache, npm, job):
    session.add(_stored("pkg-same", description="same"))
    session.commit()
    cache.store["plugin_search::1:30:updated_at:DESC"] = '["pkg-same"]'
    npm.search_by_keyword.return_value = [_package("pkg-same", "same")]

    report = await job.run()

    assert not report.changed
    assert "plugin_search::1:30:updated_at:DESC" in cache.store
