import pytest

from gallery.access_control.context import AuthenticatedContext
from gallery.engine.catalog_cache import ThemeCacheService
from gallery.engine.catalog_controller import CatalogController
from gallery.engine.user_relationships import theme_relationships
from gallery.platform.errors import NotFoundError, UnauthorizedError
from gallery.storage.models import ThemeModel
from gallery.storage.repositories.favorite_repository import theme_favorites


@pytest.fixture
def controller(cache):
    catalog = ThemeCacheService(cache)
    return CatalogController(catalog, theme_relationships(cache, catalog, theme_favorites()), "theme")


@pytest.fixture
def catalog_rows(session, make_user):
    make_user("u1")
    make_user("u2")
    session.add_all([
        ThemeModel(id="ocean", name="Ocean", user_id="u1", favorites_count=2),
        ThemeModel(id="forest", name="Forest", user_id="u2", favorites_count=1),
    ])
    session.commit()
    theme_favorites().create(session, "u1", "forest")
    session.commit()


@pytest.mark.asyncio
async def test_search_overlays_favorites_for_caller(session, catalog_rows, controller):
    ctx = AuthenticatedContext(user_id="u1")

    items = await controller.search(session, ctx, sort_by="favoritesCount")

    assert [(t.id, t.is_favorite) for t in items] == [("ocean", False), ("forest", True)]


@pytest.mark.asyncio
async def test_anonymous_search_has_no_overlay(session, cache, catalog_rows, controller):
    items = await controller.search(session, None, sort_by="favoritesCount")

    assert [t.is_favorite for t in items] == [None, None]
    # the overlay is never written back to the cache
    assert '"is_favorite":null' in cache.store["theme_data:forest"]


@pytest.mark.asyncio
async def test_get_item_and_versions(session, catalog_rows, controller):
    controller.catalog.repository.add_version(session, "ocean", "1.0.0")
    session.commit()

    item = await controller.get_item(session, AuthenticatedContext(user_id="u1"), "forest")
    assert item.is_favorite is True

    versions = await controller.get_versions(session, "ocean")
    assert [v.version for v in versions] == ["1.0.0"]

    with pytest.raises(NotFoundError):
        await controller.get_item(session, None, "ghost")
    with pytest.raises(NotFoundError):
        await controller.get_versions(session, "ghost")


@pytest.mark.asyncio
async def test_owned_and_favorites_are_scoped_to_the_caller(session, catalog_rows, controller):
    ctx = AuthenticatedContext(user_id="u1")

    assert [t.id for t in await controller.get_owned(session, ctx)] == ["ocean"]
    favorites = await controller.get_favorites(session, ctx)
    assert [(t.id, t.is_favorite) for t in favorites] == [("forest", True)]

    with pytest.raises(UnauthorizedError):
        await controller.get_owned(session, ctx, user_id="u2")


@pytest.mark.asyncio
async def test_admin_can_read_other_users_lists(session, catalog_rows, controller):
    admin = AuthenticatedContext(user_id="admin1", role="ADMIN")

    owned = await controller.get_owned(session, admin, user_id="u2")

    assert [t.id for t in owned] == ["forest"]
    assert owned[0].is_favorite is False
