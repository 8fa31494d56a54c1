"""Process-wide context tying the fake_roku components together."""
import logging

from .commands import PULSE_DELAY, CommandInterpreter
from .discovery import DiscoveryResponder
from .exceptions import StoreError
from .registry import DeviceRegistry
from .server import FakeRokuServer
from .store import sync_devices

_LOGGER = logging.getLogger(__name__)


class FakeRoku:
    """Owns the registry, the discovery responder and one server per device.

    Lives from :meth:`start` until :meth:`close`.
    """

    def __init__(self, config, store, persister=None,
                 pulse_delay=PULSE_DELAY) -> None:
        self.config = config
        self.store = store
        self.persister = persister
        self.registry = DeviceRegistry(config)

        self.interpreter = CommandInterpreter(store, pulse_delay)

        self.servers = []
        self.discovery = None  # type: DiscoveryResponder

    async def start(self):
        devices = self.registry.load()
        if not devices:
            _LOGGER.warning("no devices configured")

        try:
            await sync_devices(self.store, devices)
        except StoreError as err:
            _LOGGER.error("cannot sync devices with the store: %s", err)

        if self.persister is not None:
            try:
                await self.registry.persist(self.persister)
            except OSError as err:
                _LOGGER.error("cannot save config: %s", err)

        for device in devices:
            server = FakeRokuServer(device, self.interpreter)
            await server.start()
            self.servers.append(server)

        self.discovery = DiscoveryResponder(
            devices, self.config.bind, self.config.multicast_ip,
            self.config.bind_multicast)
        await self.discovery.start()

    async def close(self):
        if self.discovery is not None:
            self.discovery.close()
            self.discovery = None

        for server in self.servers:
            await server.close()
        self.servers = []

        await self.interpreter.close()
        _LOGGER.info("cleaned everything up...")
