"""Tests for the in-memory state store and store helpers."""
import pytest

from fake_roku import (
    FakeRokuConfig,
    MemoryStateStore,
    StateStore,
    StoreConfigPersister,
    StoreError,
    sync_devices,
)


class TestMemoryStateStore:
    async def test_create_and_set(self, store):
        await store.create_state("tv", "keys", "Home", {"def": False},
                                 {"url": "keys/Home"})
        assert store.get_value("tv", "keys", "Home") is False

        await store.set_state("tv.keys.Home", True)
        assert store.get_value("tv", "keys", "Home") is True
        assert store.history == [("tv.keys.Home", True, True)]

    async def test_duplicate_create_fails(self, store):
        await store.create_state("tv", "keys", "Home", {}, {})
        with pytest.raises(StoreError):
            await store.create_state("tv", "keys", "Home", {}, {})

    async def test_get_object_returns_copy(self, store):
        await store.create_state("tv", "keys", "Home", {"def": False}, {})
        obj = await store.get_object("tv.keys.Home")
        obj["common"]["def"] = True
        assert (await store.get_object("tv.keys.Home"))["common"]["def"] \
            is False

    async def test_delete_device_removes_children(self, store):
        await store.create_device("tv", {"name": "tv"})
        await store.create_channel("tv", "keys", {"name": "keys"})
        await store.create_state("tv", "keys", "Home", {}, {})
        await store.create_device("tv2", {"name": "tv2"})

        await store.delete_device("tv")

        assert list(store.objects) == ["tv2"]
        assert store.get_value("tv", "keys", "Home") is None

    async def test_extend_foreign_object(self, store):
        await store.set_foreign_object("system.x", {"native": {"a": 1}})
        await store.extend_foreign_object("system.x", {"native": {"b": 2}})
        assert await store.get_foreign_object("system.x") == \
            {"native": {"a": 1, "b": 2}}

    async def test_base_contract_is_abstract(self):
        with pytest.raises(NotImplementedError):
            await StateStore().get_object("x")


class TestSyncDevices:
    async def test_creates_new_devices_with_channels(self, store, device):
        await sync_devices(store, [device])

        assert store.objects[device.id]["type"] == "device"
        assert store.objects[device.id + ".keys"]["type"] == "channel"
        assert store.objects[device.id + ".apps"]["type"] == "channel"

    async def test_deletes_stale_and_keeps_existing(self, store, device):
        await store.create_device(device.id, {"name": device.id})
        await store.create_state(device.id, "keys", "Home", {}, {})
        await store.create_device("old_tv", {"name": "old_tv"})
        await store.create_state("old_tv", "keys", "Home", {}, {})

        await sync_devices(store, [device])

        assert "old_tv" not in store.objects
        assert "old_tv.keys.Home" not in store.objects
        assert device.id + ".keys.Home" in store.objects
        # existing devices are not recreated
        assert device.id + ".keys" not in store.objects


class TestStoreConfigPersister:
    async def test_writes_native(self, store):
        await store.set_foreign_object("system.adapter.fakeroku.0",
                                       {"common": {}, "native": {}})
        config = FakeRokuConfig(devices=[{"name": "tv", "uuid": "abc"}])

        await StoreConfigPersister(store, "system.adapter.fakeroku.0") \
            .save(config)

        obj = await store.get_foreign_object("system.adapter.fakeroku.0")
        assert obj["native"]["devices"] == [{"name": "tv", "uuid": "abc"}]

    async def test_missing_object_is_not_created(self, store):
        await StoreConfigPersister(store, "system.adapter.fakeroku.0") \
            .save(FakeRokuConfig())
        assert store.foreign_objects == {}
