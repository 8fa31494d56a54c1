"""Configured fake Roku devices and their precomputed documents."""
import logging
import re
from xml.sax.saxutils import escape

import shortuuid

from .exceptions import ConfigError

_LOGGER = logging.getLogger(__name__)

DEFAULT_HTTP_PORT = 9093
MAX_PORT = 65535

UUID_GENERATOR = shortuuid.ShortUUID(alphabet="0123456789abcdef")
UUID_LENGTH = 32

_DEVICE_ID_RE = re.compile(r"[.\s]+")
_PORT_RE = re.compile(r"^\s*([+-]?\d+)")

SSDP_RESPONSE_TEMPLATE = "HTTP/1.1 200 OK\r\n" \
                         "Cache-Control: max-age=300\r\n" \
                         "ST: roku:ecp\r\n" \
                         "USN: uuid:roku:ecp:{uuid}\r\n" \
                         "Ext: \r\n" \
                         "Server: Roku UPnP/1.0 MiniUPnPd/1.4\r\n" \
                         "LOCATION: {location}\r\n" \
                         "\r\n"

DESCRIPTOR_TEMPLATE = """<?xml version="1.0" encoding="UTF-8" ?>
<root xmlns="urn:schemas-upnp-org:device-1-0">
  <specVersion>
    <major>1</major>
    <minor>0</minor>
  </specVersion>
  <device>
    <deviceType>urn:roku-com:device:player:1-0</deviceType>
    <friendlyName>{name}</friendlyName>
    <manufacturer>Fake Roku</manufacturer>
    <manufacturerURL>http://www.roku.com/</manufacturerURL>
    <modelDescription>Fake Roku player</modelDescription>
    <modelName>{name}</modelName>
    <modelNumber>4200X</modelNumber>
    <modelURL>http://www.roku.com/</modelURL>
    <serialNumber>{uuid}</serialNumber>
    <UDN>uuid:roku:ecp:{uuid}</UDN>
    <serviceList>
      <service>
        <serviceType>urn:roku-com:service:ecp:1</serviceType>
        <serviceId>urn:roku-com:serviceId:ecp1-0</serviceId>
        <controlURL/>
        <eventSubURL/>
        <SCPDURL>ecp_SCPD.xml</SCPDURL>
      </service>
    </serviceList>
  </device>
</root>"""

DEVICE_INFO_TEMPLATE = """<?xml version="1.0" encoding="UTF-8" ?>
<device-info>
  <udn>{uuid}</udn>
  <serial-number>{uuid}</serial-number>
  <device-id>{uuid}</device-id>
  <vendor-name>Fake Roku</vendor-name>
  <model-number>4200X</model-number>
  <model-name>{name}</model-name>
  <user-device-name>{name}</user-device-name>
  <network-type>ethernet</network-type>
  <power-mode>PowerOn</power-mode>
  <supports-find-remote>false</supports-find-remote>
</device-info>"""

DEFAULT_APPS = (
    ("11", "Roku Channel Store"),
    ("12", "Netflix"),
    ("13", "Amazon Video on Demand"),
    ("837", "YouTube"),
    ("2016", "Crackle"),
    ("3423", "Rdio"),
    ("21952", "Blockbuster"),
    ("31012", "MGO"),
    ("43594", "CinemaNow"),
    ("46041", "Sling TV"),
    ("50025", "GooglePlay"),
)


def build_apps_xml(apps=DEFAULT_APPS):
    """Render an ECP ``query/apps`` document from (id, name) pairs."""
    lines = ['<?xml version="1.0" encoding="UTF-8" ?>', "<apps>"]
    for app_id, app_name in apps:
        lines.append('  <app id="{}">{}</app>'.format(
            escape(str(app_id), {'"': "&quot;"}), escape(str(app_name))))
    lines.append("</apps>")
    return "\n".join(lines)


def normalize_device_id(name: str) -> str:
    """Collapse whitespace and dots so the name is a safe store key."""
    return _DEVICE_ID_RE.sub("_", name)


def parse_port(value) -> int:
    """Parse a configured port, falling back to the default and clamping."""
    port = 0
    if isinstance(value, int) and not isinstance(value, bool):
        port = value
    elif value is not None:
        match = _PORT_RE.match(str(value))
        if match:
            port = int(match.group(1))

    if not port:
        port = DEFAULT_HTTP_PORT

    return min(MAX_PORT, max(0, port))


def generate_uuid() -> str:
    """Generate a random 128 bit identifier as lowercase hex."""
    return UUID_GENERATOR.random(length=UUID_LENGTH)


def get_or_assign_uuid(entry: dict):
    """Return the persisted uuid of a config entry or assign a new one.

    Returns a ``(uuid, assigned)`` tuple. When ``assigned`` is true the
    entry has been updated in place and the configuration needs saving.
    """
    existing = entry.get("uuid")
    if existing:
        return str(existing), False

    new_uuid = generate_uuid()
    entry["uuid"] = new_uuid
    _LOGGER.info("assigned uuid %s to device %s", new_uuid, entry.get("name"))
    return new_uuid, True


class RokuDevice:
    """A single fake Roku player."""

    def __init__(self, name: str, uuid: str, http_port: int,
                 bind_address: str, apps=DEFAULT_APPS) -> None:
        self.id = normalize_device_id(name)
        self.name = name
        self.uuid = uuid
        self.http_port = http_port
        self.bind_address = bind_address

        self.descriptor_xml = DESCRIPTOR_TEMPLATE.format(
            name=escape(name), uuid=uuid)
        self.device_info_xml = DEVICE_INFO_TEMPLATE.format(
            name=escape(name), uuid=uuid)
        self.apps_xml = build_apps_xml(apps)
        self.advertisement = SSDP_RESPONSE_TEMPLATE.format(
            uuid=uuid, location=self.location).encode("utf-8")

    @property
    def location(self) -> str:
        return "http://{}:{}/".format(self.bind_address, self.http_port)

    @classmethod
    def from_config(cls, entry: dict, bind_address: str):
        """Create a device from one configuration entry.

        Returns ``(device, uuid_assigned)``.
        """
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ConfigError("device entry has no name: {!r}".format(entry))

        http_port = parse_port(entry.get("port"))
        uuid, assigned = get_or_assign_uuid(entry)

        return cls(name, uuid, http_port, bind_address), assigned

    def __repr__(self) -> str:
        return "<RokuDevice {} uuid={} port={}>".format(
            self.id, self.uuid, self.http_port)


class DeviceRegistry:
    """Ordered set of the configured devices."""

    def __init__(self, config) -> None:
        self.config = config
        self.devices = []  # type: list
        self.config_dirty = False

    def load(self):
        """Build the devices from the configuration, in order.

        Invalid entries are logged and skipped.
        """
        self.devices = []
        self.config_dirty = False
        seen = set()

        for entry in self.config.devices:
            try:
                device, assigned = RokuDevice.from_config(
                    entry, self.config.bind)
                if device.id in seen:
                    raise ConfigError(
                        "duplicate device id {}".format(device.id))
            except ConfigError as err:
                _LOGGER.error("skipping device: %s", err)
                continue

            seen.add(device.id)
            self.devices.append(device)
            self.config_dirty = self.config_dirty or assigned
            _LOGGER.debug("loaded device %r", device)

        return self.devices

    async def persist(self, persister) -> bool:
        """Save the configuration once if any uuid was assigned."""
        if not self.config_dirty:
            return False

        _LOGGER.debug("updating config with new uuid")
        await persister.save(self.config)
        self.config_dirty = False
        return True

