"""SSDP discovery responder for the fake Roku devices."""
import asyncio
from enum import Enum
import logging
from os import name as osname
import re
import socket

from .exceptions import ProtocolError, TransportError

_LOGGER = logging.getLogger(__name__)

MULTICAST_PORT = 1900
MULTICAST_SEARCH_RE = re.compile(r"^M-SEARCH \* HTTP/1\.\d")
MULTICAST_NOTIFY_RE = re.compile(r"^NOTIFY \* HTTP/1\.\d")
SSDP_DISCOVER = '"ssdp:discover"'


class DiscoveryState(Enum):
    STOPPED = "stopped"
    BINDING = "binding"
    LISTENING = "listening"


def parse_headers(lines):
    """Parse ``Name: value`` lines into a dict keyed by lowercase name.

    Lines that are not headers are skipped.
    """
    headers = {}
    for line in lines:
        if not line:
            break
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            _LOGGER.debug("multicast:skipping header line %r", line)
            continue
        headers[name.strip().lower()] = value.strip()
    return headers


class FakeRokuDiscoveryProtocol(asyncio.DatagramProtocol):
    """Answers ``M-SEARCH`` requests for every registered device."""

    def __init__(self, devices, on_stopped=None) -> None:
        """Initialize the protocol."""
        self.devices = devices
        self.on_stopped = on_stopped
        self.transport = None  # type: asyncio.DatagramTransport

    def connection_made(self, transport):
        self.transport = transport

    def connection_lost(self, exc):
        if exc is not None:
            _LOGGER.error("multicast:connection lost %s", exc)
        self.close()

    def error_received(self, exc):
        _LOGGER.error("multicast:error %s",
                      TransportError("discovery socket error: {}".format(exc)))
        self.close()

    def datagram_received(self, data, addr):
        """Parse the received datagram and send the replies if needed."""
        try:
            self._handle_datagram(data, addr)
        except ProtocolError as err:
            _LOGGER.debug("multicast:ignoring datagram from %s: %s",
                          addr, err)

    def _handle_datagram(self, data, addr):
        try:
            message = data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise ProtocolError("datagram is not utf-8") from err

        lines = message.replace("\r\n", "\n").split("\n")

        if MULTICAST_NOTIFY_RE.match(lines[0]):
            # announcements from other devices are not tracked
            return

        if not MULTICAST_SEARCH_RE.match(lines[0]):
            return

        headers = parse_headers(lines[1:])
        if headers.get("man") != SSDP_DISCOVER:
            return

        self._multicast_reply(addr)

    def _multicast_reply(self, addr):
        """Send every device's advertisement to the requester."""
        if self.transport is None or self.transport.is_closing():
            return

        _LOGGER.debug("multicast:responding to %s:%s", addr[0], addr[1])
        for device in self.devices:
            self.transport.sendto(device.advertisement, addr)

    def close(self):
        if self.transport is not None:
            self.transport.close()
            self.transport = None
            if self.on_stopped is not None:
                self.on_stopped()


class DiscoveryResponder:
    """Owns the discovery socket and its state."""

    def __init__(self, devices, bind_address="0.0.0.0",
                 multicast_ip="239.255.255.250",
                 bind_multicast=None) -> None:
        self.devices = devices
        self.bind_address = bind_address
        self.multicast_ip = multicast_ip

        if bind_multicast is None:
            # windows refuses to bind the multicast group itself
            bind_multicast = osname != "nt"
        self.bind_multicast = bind_multicast

        self.state = DiscoveryState.STOPPED
        self.discovery_proto = None  # type: FakeRokuDiscoveryProtocol

    def _make_socket(self):
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

            if self.bind_multicast:
                sock.bind(("", MULTICAST_PORT))
            else:
                sock.bind((self.bind_address, MULTICAST_PORT))

            sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP,
                            socket.inet_aton(self.multicast_ip) +
                            socket.inet_aton(self.bind_address))
        except OSError:
            sock.close()
            raise
        return sock

    async def start(self) -> bool:
        if self.state is not DiscoveryState.STOPPED:
            return self.state is DiscoveryState.LISTENING

        self.state = DiscoveryState.BINDING
        try:
            sock = self._make_socket()
            _, self.discovery_proto = \
                await asyncio.get_running_loop().create_datagram_endpoint(
                    lambda: FakeRokuDiscoveryProtocol(self.devices,
                                                      self._stopped),
                    sock=sock)
        except OSError as err:
            _LOGGER.error("multicast:%s", TransportError(
                "cannot listen on {}:{}: {}".format(
                    self.bind_address, MULTICAST_PORT, err)))
            self.state = DiscoveryState.STOPPED
            return False

        self.state = DiscoveryState.LISTENING
        _LOGGER.debug("multicast:listening on %s:%s, group %s",
                      self.bind_address, MULTICAST_PORT, self.multicast_ip)
        return True

    def _stopped(self):
        self.state = DiscoveryState.STOPPED
        self.discovery_proto = None
        _LOGGER.debug("multicast:stopped")

    def close(self):
        if self.discovery_proto is not None:
            self.discovery_proto.close()
        self.discovery_proto = None
        self.state = DiscoveryState.STOPPED
