"""Shared fixtures for fake_roku tests."""
import pytest

from fake_roku import FakeRokuConfig, MemoryStateStore, RokuDevice


@pytest.fixture
def device():
    return RokuDevice("Living Room", "0123456789abcdef0123456789abcdef",
                      9093, "192.168.1.20")


@pytest.fixture
def other_device():
    return RokuDevice("Bed.Room", "fedcba9876543210fedcba9876543210",
                      9094, "192.168.1.20")


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def config():
    return FakeRokuConfig(bind="192.168.1.20", devices=[
        {"name": "Living Room", "port": 9093},
        {"name": "Bed.Room", "port": "9094",
         "uuid": "fedcba9876543210fedcba9876543210"},
    ])
