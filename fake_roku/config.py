"""YAML configuration for fake_roku.

The configuration file mirrors the adapter settings::

    MULTICAST_IP: 239.255.255.250
    BIND: 0.0.0.0
    devices:
      - name: Living Room
        port: 9093
        uuid: 0f3c...   # written back on first start

Device uuids are generated on first start and persisted once, so that
discovery advertisements and store ids stay stable across restarts.
"""
import asyncio
import copy
import logging
import os
from pathlib import Path

import yaml

from .exceptions import ConfigError

_LOGGER = logging.getLogger(__name__)

DEFAULT_MULTICAST_IP = "239.255.255.250"
DEFAULT_BIND = "0.0.0.0"

_TMP_SUFFIX = ".tmp"


class FakeRokuConfig:
    """Settings shared by the discovery responder and all devices."""

    def __init__(self, multicast_ip=None, bind=None, devices=None,
                 bind_multicast=None, source=None) -> None:
        self.multicast_ip = multicast_ip or DEFAULT_MULTICAST_IP
        self.bind = bind or DEFAULT_BIND
        self.devices = devices if devices is not None else []
        self.bind_multicast = bind_multicast
        # mapping as read from disk; command line overrides never touch it
        self.source = source

    @classmethod
    def from_dict(cls, data):
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("configuration must be a mapping")

        devices = data.get("devices") or []
        if not isinstance(devices, list):
            raise ConfigError("'devices' must be a list")

        entries = []
        for entry in devices:
            if not isinstance(entry, dict):
                _LOGGER.error("skipping device entry %r: not a mapping", entry)
                continue
            entries.append(dict(entry))

        return cls(multicast_ip=data.get("MULTICAST_IP"),
                   bind=data.get("BIND"),
                   devices=entries,
                   bind_multicast=data.get("BIND_MULTICAST"),
                   source=data)

    @classmethod
    def load(cls, path):
        """Read a configuration file; a missing file yields the defaults."""
        path = Path(path)
        if not path.exists():
            _LOGGER.warning("config file %s not found, using defaults", path)
            return cls.from_dict({})

        try:
            with path.open("r", encoding="utf-8") as config_file:
                data = yaml.safe_load(config_file)
        except (OSError, yaml.YAMLError) as err:
            raise ConfigError(
                "cannot read config {}: {}".format(path, err)) from err

        return cls.from_dict(data)

    def to_dict(self):
        """Return the mapping to persist.

        A loaded configuration is written back as it was read, with only
        the device entries (and their assigned uuids) taken from here.
        """
        if self.source is not None:
            entries = iter(self.devices)
            data = copy.deepcopy(self.source)
            data["devices"] = [
                dict(next(entries)) if isinstance(entry, dict) else entry
                for entry in self.source.get("devices") or []]
            return data

        data = {
            "MULTICAST_IP": self.multicast_ip,
            "BIND": self.bind,
            "devices": self.devices,
        }
        if self.bind_multicast is not None:
            data["BIND_MULTICAST"] = self.bind_multicast
        return data


class ConfigPersister:
    """Writes an updated configuration back to where it came from."""

    async def save(self, config: FakeRokuConfig) -> None:
        raise NotImplementedError


class YamlConfigPersister(ConfigPersister):
    """Persist the configuration to a YAML file.

    The file is written to a temporary sibling first and moved into place
    with ``os.replace``.
    """

    def __init__(self, path) -> None:
        self.path = Path(path)
        self._tmp_path = self.path.with_suffix(self.path.suffix + _TMP_SUFFIX)

    async def save(self, config: FakeRokuConfig) -> None:
        await asyncio.get_running_loop().run_in_executor(
            None, self._write, config.to_dict())

    def _write(self, data) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._tmp_path.open("w", encoding="utf-8") as tmp_file:
            yaml.safe_dump(data, tmp_file, default_flow_style=False,
                           sort_keys=False, allow_unicode=True)
        os.replace(self._tmp_path, self.path)
        _LOGGER.debug("saved config to %s", self.path)
