import pytest

from gallery.storage.models import (
    PluginModel,
    PluginStatus,
    ThemeJobQueueModel,
    ThemeModel,
)
from gallery.storage.repositories.catalog_repository import PluginRepository, ThemeRepository
from gallery.storage.repositories.favorite_repository import plugin_favorites, theme_favorites
from gallery.storage.repositories.theme_job_repository import ThemeJobRepository
from gallery.storage.repositories.user_repository import UserRepository


def _theme(id, name=None, description=None, favorites_count=0, user_id=None):
    return ThemeModel(id=id, name=name or id, description=description, favorites_count=favorites_count, user_id=user_id)


def _plugin(id, status=PluginStatus.SYNC.value, favorites_count=0, user_id=None):
    return PluginModel(
        id=id,
        name=id,
        package_url=f"https://www.npmjs.com/package/{id}",
        status=status,
        favorites_count=favorites_count,
        user_id=user_id,
    )


def test_theme_crud(session):
    repo = ThemeRepository()
    repo.create(session, _theme("minimal_midnight", name="Minimal Midnight"))

    fetched = repo.get(session, "minimal_midnight")
    assert fetched.name == "Minimal Midnight"
    assert fetched.favorites_count == 0
    assert fetched.versions_count == 0

    repo.update(session, "minimal_midnight", {"description": "Dark"})
    assert repo.get(session, "minimal_midnight").description == "Dark"

    assert repo.delete(session, "minimal_midnight") is True
    assert repo.get(session, "minimal_midnight") is None
    assert repo.delete(session, "minimal_midnight") is False


def test_search_matches_name_or_description_case_insensitively(session):
    repo = ThemeRepository()
    repo.create(session, _theme("a", name="Ocean Blue"))
    repo.create(session, _theme("b", name="Forest", description="deep OCEAN greens"))
    repo.create(session, _theme("c", name="Desert"))

    found = repo.search(session, "ocean", limit=30, offset=0)
    assert {t.id for t in found} == {"a", "b"}


def test_search_escapes_like_wildcards(session):
    repo = ThemeRepository()
    repo.create(session, _theme("a", name="100% dark"))
    repo.create(session, _theme("b", name="100 dark"))

    found = repo.search(session, "100%", limit=30, offset=0)
    assert [t.id for t in found] == ["a"]


def test_search_sorts_and_breaks_ties_by_id(session):
    repo = ThemeRepository()
    repo.create(session, _theme("c", favorites_count=5))
    repo.create(session, _theme("b", favorites_count=1))
    repo.create(session, _theme("a", favorites_count=5))

    desc = repo.search(session, "", limit=30, offset=0, sort_column="favorites_count", sort_direction="DESC")
    assert [t.id for t in desc] == ["a", "c", "b"]

    asc = repo.search(session, "", limit=30, offset=0, sort_column="favorites_count", sort_direction="ASC")
    assert [t.id for t in asc] == ["b", "a", "c"]


def test_search_paginates(session):
    repo = ThemeRepository()
    for i in range(5):
        repo.create(session, _theme(f"t{i}", favorites_count=i))

    page_one = repo.search(session, "", limit=2, offset=0, sort_column="favorites_count", sort_direction="DESC")
    page_two = repo.search(session, "", limit=2, offset=2, sort_column="favorites_count", sort_direction="DESC")
    assert [t.id for t in page_one] == ["t4", "t3"]
    assert [t.id for t in page_two] == ["t2", "t1"]


def test_search_rejects_unknown_sort_column(session):
    with pytest.raises(ValueError):
        ThemeRepository().search(session, "", limit=30, offset=0, sort_column="name; DROP TABLE themes")


def test_plugin_search_hides_blacklisted(session):
    repo = PluginRepository()
    repo.create(session, _plugin("visible"))
    repo.create(session, _plugin("listed", status=PluginStatus.WHITELIST.value))
    repo.create(session, _plugin("hidden", status=PluginStatus.BLACKLIST.value))

    found = repo.search(session, "", limit=30, offset=0)
    assert {p.id for p in found} == {"visible", "listed"}


def test_favorite_counter_is_atomic_and_never_negative(session):
    repo = PluginRepository()
    repo.create(session, _plugin("p1"))

    assert repo.increment_favorites(session, "p1") is True
    assert repo.increment_favorites(session, "p1") is True
    session.expire_all()
    assert repo.get(session, "p1").favorites_count == 2

    assert repo.decrement_favorites(session, "p1") is True
    assert repo.decrement_favorites(session, "p1") is True
    assert repo.decrement_favorites(session, "p1") is False
    session.expire_all()
    assert repo.get(session, "p1").favorites_count == 0

    assert repo.increment_favorites(session, "missing") is False


def test_list_by_ids_and_owner(session):
    repo = PluginRepository()
    repo.create(session, _plugin("p1", user_id="u1"))
    repo.create(session, _plugin("p2"))
    repo.create(session, _plugin("p3", user_id="u1"))

    assert {p.id for p in repo.list_by_ids(session, ["p3", "p1", "nope"])} == {"p1", "p3"}
    assert repo.list_by_ids(session, []) == []
    assert repo.list_ids_by_owner(session, "u1") == ["p1", "p3"]


def test_theme_versions_append_and_cascade(session):
    repo = ThemeRepository()
    repo.create(session, _theme("t1"))

    repo.add_version(session, "t1", "1.0.0")
    repo.add_version(session, "t1", "1.1.0")
    session.expire_all()

    assert repo.get(session, "t1").versions_count == 2
    assert {v.version for v in repo.list_versions(session, "t1")} == {"1.0.0", "1.1.0"}
    assert repo.get_version(session, "t1", "1.1.0") is not None
    assert repo.get_version(session, "t1", "9.9.9") is None

    repo.delete(session, "t1")
    assert repo.list_versions(session, "t1") == []


def test_favorite_edges(session, make_user):
    make_user("u1")
    make_user("u2")
    themes = ThemeRepository()
    themes.create(session, _theme("t1"))
    themes.create(session, _theme("t2"))
    favorites = theme_favorites()

    favorites.create(session, "u1", "t2")
    favorites.create(session, "u1", "t1")
    favorites.create(session, "u2", "t1")

    assert favorites.get(session, "u1", "t1") is not None
    assert favorites.get(session, "u2", "t2") is None
    assert favorites.list_item_ids_for_user(session, "u1") == ["t1", "t2"]
    assert sorted(favorites.list_user_ids_for_item(session, "t1")) == ["u1", "u2"]

    removed_for = favorites.delete_for_item(session, "t1")
    assert sorted(removed_for) == ["u1", "u2"]
    assert favorites.list_item_ids_for_user(session, "u1") == ["t2"]


def test_favorites_list_skips_items_that_no_longer_exist(session, make_user):
    make_user("u1")
    plugins = PluginRepository()
    plugins.create(session, _plugin("p1"))
    favorites = plugin_favorites()
    favorites.create(session, "u1", "p1")
    favorites.create(session, "u1", "ghost")

    assert favorites.list_item_ids_for_user(session, "u1") == ["p1"]


def test_theme_job_queue(session, make_user):
    make_user("u1")
    jobs = ThemeJobRepository()
    job = jobs.create(session, ThemeJobQueueModel(theme_id="t1", user_id="u1", name="T1", version="1.0.0", action="CREATE"))

    assert job.id
    assert jobs.get(session, job.id).theme_id == "t1"
    assert [j.id for j in jobs.list_for_theme(session, "t1")] == [job.id]
    assert jobs.pending_theme_ids(session) == {"t1"}

    assert jobs.delete_for_theme(session, "t1") == 1
    assert jobs.pending_theme_ids(session) == set()


def test_user_repository_links_providers(session, make_user):
    make_user("u1", name="Ada")
    users = UserRepository()

    users.link_provider(session, "u1", "github", "4242")
    assert users.get_user_id_by_provider(session, "github", "4242") == "u1"
    assert users.get_user_id_by_provider(session, "google", "4242") is None

    users.update(session, "u1", {"role": "ADMIN"})
    assert users.get(session, "u1").role == "ADMIN"
