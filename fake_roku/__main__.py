"""Run the fake Roku devices described by a YAML configuration file."""
import asyncio
from argparse import ArgumentParser
import logging
import signal

from . import get_local_ip
from .app import FakeRoku
from .config import FakeRokuConfig, YamlConfigPersister
from .exceptions import ConfigError
from .store import MemoryStateStore

_LOGGER = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = ArgumentParser(
        prog="fake-roku",
        description="Emulate Roku ECP players on the local network.")
    parser.add_argument('--config', type=str, default="fake_roku.yaml",
                        help='YAML file with the device configuration')
    parser.add_argument('--multicast-ip', type=str,
                        help='Multicast group to join for discovery')
    parser.add_argument('--bind', type=str,
                        help='Address to bind and advertise, "auto" for '
                             'the local IP')
    parser.add_argument('--bind-multicast', dest='bind_multicast',
                        action='store_true', default=None,
                        help='Bind the discovery socket to all interfaces')
    parser.add_argument('--no-bind-multicast', dest='bind_multicast',
                        action='store_false',
                        help='Bind the discovery socket to the bind address')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    return parser.parse_args(argv)


def load_config(args):
    config = FakeRokuConfig.load(args.config)
    if args.multicast_ip:
        config.multicast_ip = args.multicast_ip
    if args.bind:
        config.bind = get_local_ip() if args.bind == "auto" else args.bind
    if args.bind_multicast is not None:
        config.bind_multicast = args.bind_multicast
    return config


async def run(config, persister):
    fake_roku = FakeRoku(config, MemoryStateStore(), persister)
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # not available on windows, KeyboardInterrupt still stops us
            pass

    await fake_roku.start()
    try:
        await stop.wait()
    finally:
        await fake_roku.close()


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    try:
        config = load_config(args)
    except ConfigError as err:
        _LOGGER.error("%s", err)
        return 1

    try:
        asyncio.run(run(config, YamlConfigPersister(args.config)))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
