"""Tests for the FakeRoku process context."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fake_roku import FakeRoku, FakeRokuConfig, MemoryStateStore, StoreError


@pytest.fixture
def persister():
    p = MagicMock()
    p.save = AsyncMock()
    return p


@pytest.fixture
def patched_listeners():
    with (
        patch("fake_roku.app.FakeRokuServer.start",
              AsyncMock(return_value=True)) as server_start,
        patch("fake_roku.app.DiscoveryResponder.start",
              AsyncMock(return_value=True)) as discovery_start,
    ):
        yield server_start, discovery_start


class TestFakeRoku:
    async def test_start_wires_components(self, config, store, persister,
                                          patched_listeners):
        server_start, discovery_start = patched_listeners
        roku = FakeRoku(config, store, persister)

        await roku.start()

        assert [s.device.id for s in roku.servers] == ["Living_Room",
                                                       "Bed_Room"]
        assert server_start.await_count == 2
        discovery_start.assert_awaited_once()
        assert roku.discovery.devices == roku.registry.devices
        assert roku.discovery.multicast_ip == "239.255.255.250"
        assert "Living_Room.keys" in store.objects

        persister.save.assert_awaited_once_with(config)
        assert config.devices[0]["uuid"] == roku.servers[0].device.uuid

        await roku.close()
        assert roku.servers == []
        assert roku.discovery is None

    async def test_no_persist_when_uuids_known(self, store, persister,
                                               patched_listeners):
        config = FakeRokuConfig(devices=[{"name": "tv", "uuid": "abc"}])
        roku = FakeRoku(config, store, persister)

        await roku.start()
        await roku.close()

        persister.save.assert_not_awaited()

    async def test_store_sync_failure_is_not_fatal(self, config, persister,
                                                   patched_listeners):
        server_start, _ = patched_listeners
        store = MemoryStateStore()
        store.get_devices = AsyncMock(side_effect=StoreError("down"))
        roku = FakeRoku(config, store, persister)

        await roku.start()

        assert server_start.await_count == 2
        await roku.close()

    async def test_persist_failure_is_not_fatal(self, config, store,
                                                persister, patched_listeners):
        server_start, _ = patched_listeners
        persister.save.side_effect = OSError("read-only")
        roku = FakeRoku(config, store, persister)

        await roku.start()

        assert server_start.await_count == 2
        await roku.close()
