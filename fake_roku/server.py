"""Per-device Roku ECP HTTP listener."""
from enum import Enum
import logging

from aiohttp import web

from .exceptions import TransportError

_LOGGER = logging.getLogger(__name__)

CONTENT_TYPE_XML = "text/xml; charset=utf-8"

ACTIVE_APP_TEMPLATE = """<?xml version="1.0" encoding="UTF-8" ?>
<active-app>
  <app>Roku</app>
</active-app>"""


class ServerState(Enum):
    STOPPED = "stopped"
    LISTENING = "listening"


class FakeRokuServer:
    """Serves the descriptor and queries of one device and takes commands."""

    def __init__(self, device, interpreter) -> None:
        self.device = device
        self.interpreter = interpreter
        self.state = ServerState.STOPPED
        self.api_runner = None  # type: web.AppRunner

    def _xml_response(self, body):
        response = web.Response(text=body, headers={
            "Content-Type": CONTENT_TYPE_XML,
            "Connection": "close",
        })
        response.force_close()
        return response

    def _query(self, path):
        if path == "/query/apps":
            return self.device.apps_xml
        if path == "/query/device-info":
            return self.device.device_info_xml
        if path == "/query/active-app":
            return ACTIVE_APP_TEMPLATE
        return ""

    async def handle_request(self, request):
        """Dispatch a request on method and path."""
        await request.read()

        path = request.rel_url.raw_path
        _LOGGER.debug("%s-request to %s from %s", request.method, path,
                      request.remote)

        if request.method == "GET":
            if path == "/":
                _LOGGER.debug("sending service description")
                return self._xml_response(self.device.descriptor_xml)
            return self._xml_response(self._query(path))

        try:
            await self.interpreter.execute(self.device.id, path)
        except Exception:  # pylint: disable=broad-except
            # command outcomes are never reported to the remote
            _LOGGER.exception("%s: command %s failed", self.device.id, path)

        response = web.Response(headers={"Connection": "close"})
        response.force_close()
        return response

    def make_app(self):
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self.handle_request)
        return app

    async def _setup_app(self):
        runner = web.AppRunner(self.make_app())
        await runner.setup()
        return runner

    async def start(self) -> bool:
        if self.state is ServerState.LISTENING:
            return True

        runner = await self._setup_app()
        site = web.TCPSite(runner, self.device.bind_address,
                           self.device.http_port)
        try:
            await site.start()
        except OSError as err:
            _LOGGER.error("%s", TransportError(
                "cannot listen on {}:{}: {}".format(
                    self.device.bind_address, self.device.http_port, err)))
            await runner.cleanup()
            return False

        self.api_runner = runner
        self.state = ServerState.LISTENING
        _LOGGER.debug("HTTP-Server started on %s:%s",
                      self.device.bind_address, self.device.http_port)
        return True

    async def close(self):
        if self.api_runner is not None:
            await self.api_runner.cleanup()
        self.api_runner = None
        self.state = ServerState.STOPPED
