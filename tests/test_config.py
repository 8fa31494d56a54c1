"""Tests for configuration loading and persistence."""
import pytest
import yaml

from fake_roku import ConfigError, DeviceRegistry, FakeRokuConfig, \
    YamlConfigPersister


class TestFakeRokuConfig:
    def test_defaults(self):
        config = FakeRokuConfig.from_dict(None)
        assert config.multicast_ip == "239.255.255.250"
        assert config.bind == "0.0.0.0"
        assert config.devices == []
        assert config.bind_multicast is None

    def test_from_dict(self):
        config = FakeRokuConfig.from_dict({
            "MULTICAST_IP": "239.0.0.1",
            "BIND": "10.0.0.2",
            "BIND_MULTICAST": False,
            "devices": [{"name": "tv", "port": 9000}, "not a device"],
        })
        assert config.multicast_ip == "239.0.0.1"
        assert config.bind == "10.0.0.2"
        assert config.bind_multicast is False
        assert config.devices == [{"name": "tv", "port": 9000}]

    @pytest.mark.parametrize("data", [["a"], {"devices": {"name": "tv"}}])
    def test_invalid_layout(self, data):
        with pytest.raises(ConfigError):
            FakeRokuConfig.from_dict(data)

    def test_load_missing_file(self, tmp_path):
        config = FakeRokuConfig.load(tmp_path / "missing.yaml")
        assert config.devices == []

    def test_load_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("devices: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError):
            FakeRokuConfig.load(path)

    def test_load_file(self, tmp_path):
        path = tmp_path / "fake_roku.yaml"
        path.write_text(
            "BIND: 10.0.0.2\n"
            "devices:\n"
            "  - name: Living Room\n"
            "    port: 9093\n",
            encoding="utf-8")

        config = FakeRokuConfig.load(path)

        assert config.bind == "10.0.0.2"
        assert config.devices == [{"name": "Living Room", "port": 9093}]


class TestYamlConfigPersister:
    async def test_assigned_uuid_survives_restart(self, tmp_path):
        path = tmp_path / "conf" / "fake_roku.yaml"
        config = FakeRokuConfig(devices=[{"name": "tv", "port": 9000}])

        registry = DeviceRegistry(config)
        first = registry.load()
        assert await registry.persist(YamlConfigPersister(path))

        saved = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert saved["devices"][0]["uuid"] == first[0].uuid
        assert not path.with_suffix(".yaml.tmp").exists()

        reloaded = DeviceRegistry(FakeRokuConfig.load(path))
        second = reloaded.load()
        assert second[0].uuid == first[0].uuid
        assert reloaded.config_dirty is False

    def test_to_dict_keeps_loaded_mapping(self):
        config = FakeRokuConfig.from_dict({
            "BIND": "10.0.0.2",
            "extra": {"kept": True},
            "devices": ["not a device", {"name": "tv"}],
        })
        config.bind = "10.0.0.9"
        config.devices[0]["uuid"] = "abc"

        assert config.to_dict() == {
            "BIND": "10.0.0.2",
            "extra": {"kept": True},
            "devices": ["not a device", {"name": "tv", "uuid": "abc"}],
        }
