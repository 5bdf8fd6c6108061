import pytest

from kindred.core.errors import StorageUnavailable, VersionConflict
from kindred.services.store import DocumentStore, Write


async def test_save_and_get_bumps_version(store):
    doc = {"id": "a", "name": "first"}

    await store.save("things", doc)

    assert doc["version"] == 1
    assert await store.get("things", "a") == {"id": "a", "name": "first", "version": 1}

    doc["name"] = "second"
    await store.save("things", doc)
    assert (await store.get("things", "a"))["version"] == 2


async def test_stale_write_is_rejected(store):
    await store.save("things", {"id": "a", "n": 1})
    first = await store.get("things", "a")
    second = await store.get("things", "a")

    first["n"] = 2
    await store.save("things", first)

    second["n"] = 3
    with pytest.raises(VersionConflict):
        await store.save("things", second)
    assert (await store.get("things", "a"))["n"] == 2


async def test_inserting_an_existing_id_conflicts(store):
    await store.save("things", {"id": "a"})

    with pytest.raises(VersionConflict):
        await store.save("things", {"id": "a", "version": 0})


async def test_save_many_is_all_or_nothing(store):
    await store.save("things", {"id": "a", "n": 1})
    stale = await store.get("things", "a")
    await store.save("things", {**stale})

    with pytest.raises(VersionConflict):
        await store.save_many([Write("things", {"id": "b", "n": 1}), Write("things", {**stale, "n": 99})])

    assert await store.get("things", "b") is None
    assert (await store.get("things", "a"))["n"] == 1


async def test_delete_and_list(store):
    await store.save("things", {"id": "a"})
    await store.save("things", {"id": "b"})
    await store.save("other", {"id": "c"})

    assert sorted(d["id"] for d in await store.list_all("things")) == ["a", "b"]

    await store.delete("things", await store.get("things", "a"))

    assert await store.get("things", "a") is None
    assert [d["id"] for d in await store.list_all("things")] == ["b"]


async def test_unique_values(store):
    assert await store.claim_unique("users", "email", "a@b.co", "u1")
    assert await store.claim_unique("users", "email", "a@b.co", "u1")
    assert not await store.claim_unique("users", "email", "a@b.co", "u2")
    assert await store.lookup_unique("users", "email", "a@b.co") == "u1"

    await store.release_unique("users", "email", "a@b.co")

    assert await store.lookup_unique("users", "email", "a@b.co") is None


async def test_unreachable_redis_raises_storage_unavailable():
    store = DocumentStore(url="redis://127.0.0.1:1/0", prefix="test:")
    try:
        with pytest.raises(StorageUnavailable):
            await store.get("things", "a")
        assert await store.ping() is False
    finally:
        await store.close()
