"""Roku ECP command parsing and the state transitions they cause."""
import asyncio
from collections import namedtuple
from enum import Enum
import logging
import re

from .exceptions import StoreError
from .store import CHANNEL_APPS, CHANNEL_KEYS, state_id

_LOGGER = logging.getLogger(__name__)

PULSE_DELAY = 0.05

_COMMAND_RE = re.compile(r"^/([^/]+)/([^/\s]+)$")


class Category(Enum):
    """Recognised ECP command categories."""

    KEYPRESS = "keypress"
    KEYDOWN = "keydown"
    KEYUP = "keyup"
    LAUNCH = "launch"
    INSTALL = "install"


class Transition(Enum):
    PULSE = "pulse"
    LATCH_ON = "latch_on"
    LATCH_OFF = "latch_off"


COMMAND_TABLE = {
    Category.KEYPRESS: (CHANNEL_KEYS, Transition.PULSE),
    Category.KEYDOWN: (CHANNEL_KEYS, Transition.LATCH_ON),
    Category.KEYUP: (CHANNEL_KEYS, Transition.LATCH_OFF),
    Category.LAUNCH: (CHANNEL_APPS, Transition.PULSE),
    Category.INSTALL: (CHANNEL_APPS, Transition.PULSE),
}

Command = namedtuple("Command", ["category", "channel", "item", "transition"])


def normalize_item(item: str) -> str:
    """Make an item usable as a store key segment."""
    return item.replace(".", "_")


def interpret(path: str):
    """Map a request path like ``/keypress/Home`` to a :class:`Command`.

    Returns None for anything that is not a known ``/category/item`` path.
    """
    match = _COMMAND_RE.match(path)
    if not match:
        _LOGGER.debug("unknown command: %s", path)
        return None

    try:
        category = Category(match.group(1))
    except ValueError:
        _LOGGER.debug("unknown command: %s", path)
        return None

    channel, transition = COMMAND_TABLE[category]
    return Command(category, channel, normalize_item(match.group(2)),
                   transition)


class CommandInterpreter:
    """Apply commands to the state store.

    States are created on first use. A per-id lock serialises the
    lookup-then-create sequence so two first-time commands for the same
    state cannot both try to create it.

    A pulse sets the state to True and schedules the revert to False after
    ``pulse_delay`` seconds. Pending reverts are never cancelled; a newer
    command for the same state simply races with them.
    """

    def __init__(self, store, pulse_delay=PULSE_DELAY) -> None:
        self.store = store
        self.pulse_delay = pulse_delay
        self.known_states = set()
        self.pending_pulses = {}
        self._create_locks = {}
        self._tasks = set()

    async def set_state(self, device_id, channel, item, value,
                        callback=None) -> bool:
        """Write ``value`` with ack, creating the state when needed.

        Returns True on success. On a store failure nothing is written,
        the error is logged and passed to ``callback``.
        """
        object_id = state_id(device_id, channel, item)

        try:
            if object_id in self.known_states:
                _LOGGER.debug("state cached -> writing value")
                await self.store.set_state(object_id, value, ack=True)
            else:
                await self._create_and_set(device_id, channel, item, value)
        except StoreError as err:
            _LOGGER.warning("cannot set %s to %s: %s", object_id, value, err)
            if callback is not None:
                callback(err)
            return False

        if callback is not None:
            callback(None)
        return True

    async def _create_and_set(self, device_id, channel, item, value):
        object_id = state_id(device_id, channel, item)
        lock = self._create_locks.setdefault(object_id, asyncio.Lock())

        try:
            async with lock:
                if object_id not in self.known_states:
                    obj = await self.store.get_object(object_id)
                    if obj is None:
                        _LOGGER.debug("creating new state %s", object_id)
                        await self.store.create_state(
                            device_id, channel, item,
                            {
                                "name": item,
                                "def": False,
                                "type": "boolean",
                                "read": True,
                                "write": False,
                                "role": "indicator.state",
                            },
                            {"url": "{}/{}".format(channel, item)})
                    else:
                        _LOGGER.debug("state found -> writing value")

                await self.store.set_state(object_id, value, ack=True)
                self.known_states.add(object_id)
        finally:
            if not lock.locked():
                self._create_locks.pop(object_id, None)

    async def execute(self, device_id, path) -> bool:
        """Interpret ``path`` and apply it for ``device_id``."""
        command = interpret(path)
        if command is None:
            return False

        _LOGGER.debug("%s: %s %s", device_id, command.category.value,
                      command.item)

        if command.transition is Transition.LATCH_OFF:
            return await self.set_state(device_id, command.channel,
                                        command.item, False)

        if not await self.set_state(device_id, command.channel,
                                    command.item, True):
            return False

        if command.transition is Transition.PULSE:
            self._schedule_revert(device_id, command.channel, command.item)
        return True

    def _schedule_revert(self, device_id, channel, item):
        object_id = state_id(device_id, channel, item)
        task = asyncio.get_running_loop().create_task(
            self._revert(device_id, channel, item))
        self.pending_pulses[object_id] = task
        self._tasks.add(task)
        task.add_done_callback(
            lambda done: self._pulse_done(object_id, done))

    async def _revert(self, device_id, channel, item):
        await asyncio.sleep(self.pulse_delay)
        await self.set_state(device_id, channel, item, False)

    def _pulse_done(self, object_id, task):
        self._tasks.discard(task)
        # a newer pulse for the same state may have replaced this one
        if self.pending_pulses.get(object_id) is task:
            del self.pending_pulses[object_id]

    async def close(self):
        """Let scheduled reverts finish; they are never cancelled."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
