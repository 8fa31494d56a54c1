"""Exceptions raised by fake_roku."""


class FakeRokuError(Exception):
    """Base class for all fake_roku errors."""


class ConfigError(FakeRokuError):
    """A device entry in the configuration is missing or invalid."""


class StoreError(FakeRokuError):
    """A state store lookup, create or write failed."""


class TransportError(FakeRokuError):
    """A socket or listener could not be bound or failed while running."""


class ProtocolError(FakeRokuError):
    """A discovery datagram or command path could not be understood."""
