"""本地 JSON 树存储测试。"""
import asyncio

import pytest

from smart_collar.exceptions import StoreError
from smart_collar.store.base import join_path, split_path
from smart_collar.store.local import JsonTreeStore
from tests.conftest import FlakyStore


def test_paths() -> None:
    assert split_path("/users//u1/pets/") == ["users", "u1", "pets"]
    assert join_path("users", "u1", "pets") == "users/u1/pets"


def test_set_get_delete_prunes_empty_parents(tmp_path) -> None:
    store = JsonTreeStore(tmp_path)

    async def scenario():
        await store.set("users/u1/pets/p1/name", "Mochi")
        name = await store.get("users/u1/pets/p1/name")
        await store.delete("users/u1/pets/p1/name")
        return name, await store.get("users")

    assert asyncio.run(scenario()) == ("Mochi", None)


def test_empty_dict_is_delete(tmp_path) -> None:
    store = JsonTreeStore(tmp_path)

    async def scenario():
        await store.set("a/b", 1)
        await store.set("a/b", {})
        return await store.get("a")

    assert asyncio.run(scenario()) is None


def test_persists_between_instances(tmp_path) -> None:
    asyncio.run(JsonTreeStore(tmp_path).set("users/u1/deviceToken", "tok"))
    assert asyncio.run(JsonTreeStore(tmp_path).get("users/u1")) == {"deviceToken": "tok"}


def test_get_returns_copy(tmp_path) -> None:
    store = JsonTreeStore(tmp_path)
    asyncio.run(store.set("a", {"b": 1}))
    snapshot = asyncio.run(store.get("a"))
    snapshot["b"] = 2
    assert asyncio.run(store.get("a/b")) == 1


def test_push_keys_are_ordered(tmp_path) -> None:
    store = JsonTreeStore(tmp_path)

    async def scenario():
        return [await store.push("log", {"n": i}) for i in range(3)]

    keys = asyncio.run(scenario())
    assert keys == sorted(keys)
    log = asyncio.run(store.get("log"))
    assert [log[k]["n"] for k in sorted(log)] == [0, 1, 2]


def test_unserializable_value(tmp_path) -> None:
    with pytest.raises(StoreError):
        asyncio.run(JsonTreeStore(tmp_path).set("a", object()))


def test_transaction(tmp_path) -> None:
    store = JsonTreeStore(tmp_path)

    async def scenario():
        first = await store.transaction("counter", lambda v: (v or 0) + 1)
        second = await store.transaction("counter", lambda v: (v or 0) + 1)
        return first, second

    assert asyncio.run(scenario()) == (1, 2)


def test_watch_fires_initially_and_on_change_only(tmp_path) -> None:
    store = JsonTreeStore(tmp_path)
    seen = []

    async def on_change(value):
        seen.append(value)

    async def scenario():
        await store.set("pets/p1/bpm", 90)
        unsubscribe = await store.watch("pets/p1/bpm", on_change)
        await store.join()
        await store.set("pets/p1/bpm", 90)
        await store.set("pets/p1/temperature", 38)
        await store.set("pets/p1/bpm", 95)
        await store.set("pets/p1", {"bpm": 100})
        await store.join()
        unsubscribe()
        await store.set("pets/p1/bpm", 120)
        await store.join()

    asyncio.run(scenario())
    assert seen == [90, 95, 100]


def test_watch_children_reports_new_keys(tmp_path) -> None:
    store = JsonTreeStore(tmp_path)
    added = []

    async def on_added(key, value):
        added.append((key, value))

    async def scenario():
        await store.set("users/u1/name", "a")
        await store.watch_children("users", on_added)
        await store.join()
        await store.set("users/u1/name", "b")
        await store.set("users/u2", {"name": "c"})
        await store.join()

    asyncio.run(scenario())
    assert added == [("u1", {"name": "a"}), ("u2", {"name": "c"})]


def test_failed_save_rolls_back(tmp_path) -> None:
    store = FlakyStore(tmp_path)
    seen = []

    async def on_change(value):
        seen.append(value)

    async def scenario():
        await store.set("flags/sent", False)
        await store.watch("flags/sent", on_change)
        await store.join()
        store.fail_on.add("save")
        with pytest.raises(StoreError):
            await store.set("flags/sent", True)
        with pytest.raises(StoreError):
            await store.delete("flags")
        await store.join()
        return await store.get("flags/sent")

    assert asyncio.run(scenario()) is False
    assert seen == [False]
    assert asyncio.run(JsonTreeStore(tmp_path).get("flags/sent")) is False


def test_unchanged_writes_skip_save(tmp_path) -> None:
    store = FlakyStore(tmp_path)

    async def scenario():
        await store.set("users/u1/name", "a")
        for _ in range(20):
            await store.delete("users/u1/pets/p1/last_alerts/hr_high")
        await store.set("users/u1/name", "a")
        await store.set("users/u1", {"name": "a"})

    asyncio.run(scenario())
    assert store.saves == 1


def test_store_error_names_path() -> None:
    err = StoreError("write failed", "users/u1")
    assert err.path == "users/u1"
    assert "users/u1" in str(err)
