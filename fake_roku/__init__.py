"""Fake Roku library.

Emulates Roku ECP players on the local network and records the commands
they receive as boolean states in a state store.
"""
import socket

from .app import FakeRoku
from .commands import (
    COMMAND_TABLE, PULSE_DELAY, Category, Command, CommandInterpreter,
    Transition, interpret)
from .config import ConfigPersister, FakeRokuConfig, YamlConfigPersister
from .discovery import (
    MULTICAST_PORT, DiscoveryResponder, DiscoveryState,
    FakeRokuDiscoveryProtocol)
from .exceptions import (
    ConfigError, FakeRokuError, ProtocolError, StoreError, TransportError)
from .registry import (
    DEFAULT_HTTP_PORT, DeviceRegistry, RokuDevice, get_or_assign_uuid)
from .server import FakeRokuServer, ServerState
from .store import (
    MemoryStateStore, StateStore, StoreConfigPersister, sync_devices)

__all__ = [
    'FakeRoku', 'FakeRokuConfig', 'ConfigPersister', 'YamlConfigPersister',
    'Category', 'Command', 'CommandInterpreter', 'Transition',
    'COMMAND_TABLE', 'PULSE_DELAY', 'interpret',
    'DiscoveryResponder', 'DiscoveryState', 'FakeRokuDiscoveryProtocol',
    'MULTICAST_PORT',
    'FakeRokuError', 'ConfigError', 'StoreError', 'TransportError',
    'ProtocolError',
    'DeviceRegistry', 'RokuDevice', 'DEFAULT_HTTP_PORT',
    'get_or_assign_uuid',
    'FakeRokuServer', 'ServerState',
    'StateStore', 'MemoryStateStore', 'StoreConfigPersister',
    'sync_devices',
    'get_local_ip',
]


def get_local_ip() -> str:
    """Try to determine the local IP address of the machine."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            # the address does not need to be reachable, no packet is sent
            sock.connect(("10.255.255.255", 1))
            return sock.getsockname()[0]
        finally:
            sock.close()
    except OSError:
        pass

    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return "127.0.0.1"
