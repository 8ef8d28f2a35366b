import pytest

from gallery.engine.cache_support import CacheBoundary, PostCommitHooks


@pytest.mark.asyncio
async def test_unavailable_cache_degrades_to_misses(unavailable_cache):
    boundary = CacheBoundary(unavailable_cache)

    assert await boundary.get("k") is None
    assert await boundary.mget(["a", "b"]) == [None, None]
    assert await boundary.get_id_list("ids") is None
    # writes and deletes are dropped without raising
    await boundary.set("k", "v", 60)
    await boundary.delete("k")
    assert await boundary.delete_pattern("k:*") == 0


@pytest.mark.asyncio
async def test_id_list_round_trip(cache):
    boundary = CacheBoundary(cache)

    await boundary.set_id_list("ids", ["t2", "t1"], 900)

    assert await boundary.get_id_list("ids") == ["t2", "t1"]
    assert cache.ttls["ids"] == 900


@pytest.mark.asyncio
async def test_corrupt_id_list_is_a_miss(cache):
    boundary = CacheBoundary(cache)
    cache.store["ids"] = "not json"
    cache.store["obj"] = '{"a": 1}'

    assert await boundary.get_id_list("ids") is None
    assert await boundary.get_id_list("obj") is None


@pytest.mark.asyncio
async def test_post_commit_hooks_run_in_order_and_isolate_failures():
    ran = []

    async def first():
        ran.append("first")

    async def broken():
        raise ConnectionError("redis down")

    async def last():
        ran.append("last")

    hooks = PostCommitHooks()
    hooks.add("first", first)
    hooks.add("broken", broken)
    hooks.add("last", last)
    assert len(hooks) == 3

    failed = await hooks.run()

    assert ran == ["first", "last"]
    assert failed == ["broken"]
    # hooks are consumed by run()
    assert len(hooks) == 0
