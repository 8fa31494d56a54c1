"""State store contract consumed by fake_roku.

The host automation platform owns the store. fake_roku only needs a small
set of coroutines from it; :class:`StateStore` lists them and
:class:`MemoryStateStore` is a self-contained implementation used by the
command line runner and the tests.
"""
import copy
import logging

from .config import ConfigPersister
from .exceptions import StoreError

_LOGGER = logging.getLogger(__name__)

CHANNEL_KEYS = "keys"
CHANNEL_APPS = "apps"
CHANNELS = (CHANNEL_KEYS, CHANNEL_APPS)


def state_id(device_id: str, channel: str, item: str) -> str:
    return "{}.{}.{}".format(device_id, channel, item)


class StateStore:
    """Interface to the automation platform's object and state store.

    Every method may raise :class:`StoreError`.
    """

    async def get_object(self, object_id: str):
        """Return the object stored under ``object_id`` or None."""
        raise NotImplementedError

    async def create_state(self, device_id: str, channel: str, item: str,
                           common: dict, native: dict) -> None:
        raise NotImplementedError

    async def set_state(self, object_id: str, val, ack: bool = True) -> None:
        raise NotImplementedError

    async def get_devices(self):
        """Return the device objects currently in the store."""
        raise NotImplementedError

    async def create_device(self, device_id: str, common: dict) -> None:
        raise NotImplementedError

    async def create_channel(self, device_id: str, channel: str,
                             common: dict) -> None:
        raise NotImplementedError

    async def delete_device(self, device_id: str) -> None:
        raise NotImplementedError

    async def get_foreign_object(self, object_id: str):
        raise NotImplementedError

    async def set_foreign_object(self, object_id: str, obj: dict) -> None:
        raise NotImplementedError

    async def extend_foreign_object(self, object_id: str, obj: dict) -> None:
        raise NotImplementedError


class MemoryStateStore(StateStore):
    """Dictionary backed store.

    Creating a state that already exists raises :class:`StoreError`, the
    way a strict platform would.
    """

    def __init__(self) -> None:
        self.objects = {}
        self.states = {}
        self.foreign_objects = {}
        self.history = []

    async def get_object(self, object_id):
        obj = self.objects.get(object_id)
        return copy.deepcopy(obj) if obj is not None else None

    async def create_state(self, device_id, channel, item, common, native):
        object_id = state_id(device_id, channel, item)
        if object_id in self.objects:
            raise StoreError("object {} already exists".format(object_id))

        self.objects[object_id] = {
            "_id": object_id,
            "type": "state",
            "common": dict(common),
            "native": dict(native),
        }
        self.states[object_id] = {"val": common.get("def"), "ack": True}
        _LOGGER.debug("created state %s", object_id)

    async def set_state(self, object_id, val, ack=True):
        self.states[object_id] = {"val": val, "ack": ack}
        self.history.append((object_id, val, ack))
        _LOGGER.info("%s = %s (ack=%s)", object_id, val, ack)

    async def get_devices(self):
        return [copy.deepcopy(obj) for obj in self.objects.values()
                if obj["type"] == "device"]

    async def create_device(self, device_id, common):
        self.objects[device_id] = {
            "_id": device_id,
            "type": "device",
            "common": dict(common),
            "native": {},
        }

    async def create_channel(self, device_id, channel, common):
        object_id = "{}.{}".format(device_id, channel)
        self.objects[object_id] = {
            "_id": object_id,
            "type": "channel",
            "common": dict(common),
            "native": {},
        }

    async def delete_device(self, device_id):
        prefix = device_id + "."
        for object_id in list(self.objects):
            if object_id == device_id or object_id.startswith(prefix):
                del self.objects[object_id]
                self.states.pop(object_id, None)

    async def get_foreign_object(self, object_id):
        obj = self.foreign_objects.get(object_id)
        return copy.deepcopy(obj) if obj is not None else None

    async def set_foreign_object(self, object_id, obj):
        self.foreign_objects[object_id] = copy.deepcopy(obj)

    async def extend_foreign_object(self, object_id, obj):
        current = self.foreign_objects.setdefault(object_id, {})
        for key, value in obj.items():
            if isinstance(value, dict) and isinstance(current.get(key), dict):
                current[key].update(copy.deepcopy(value))
            else:
                current[key] = copy.deepcopy(value)

    def get_value(self, device_id, channel, item):
        state = self.states.get(state_id(device_id, channel, item))
        return state["val"] if state is not None else None


async def sync_devices(store: StateStore, devices) -> None:
    """Bring the store's device objects in line with the configured devices.

    Devices no longer configured are deleted; new devices get a device
    object plus their ``keys`` and ``apps`` channels.
    """
    configured = {device.id for device in devices}
    synced = set()

    for obj in await store.get_devices():
        name = obj.get("common", {}).get("name") or obj.get("_id")
        if name not in configured:
            _LOGGER.debug("deleting old device %s", obj.get("_id"))
            await store.delete_device(name)
        else:
            _LOGGER.debug("found device %s", obj.get("_id"))
            synced.add(name)

    for device in devices:
        if device.id in synced:
            continue
        _LOGGER.debug("creating device: %s", device.id)
        await store.create_device(device.id, {"name": device.id})
        for channel in CHANNELS:
            await store.create_channel(device.id, channel, {"name": channel})


class StoreConfigPersister(ConfigPersister):
    """Persist the configuration as the ``native`` part of a store object."""

    def __init__(self, store: StateStore, object_id: str) -> None:
        self.store = store
        self.object_id = object_id

    async def save(self, config) -> None:
        try:
            obj = await self.store.get_foreign_object(self.object_id)
        except StoreError as err:
            _LOGGER.warning("cannot read config object %s: %s",
                            self.object_id, err)
            return

        if not obj:
            _LOGGER.warning("config object %s not found!", self.object_id)
            return

        obj["native"] = config.to_dict()
        try:
            await self.store.set_foreign_object(self.object_id, obj)
        except StoreError as err:
            _LOGGER.warning("cannot write config object %s: %s",
                            self.object_id, err)
