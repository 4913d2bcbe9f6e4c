import asyncio
from typing import Optional

import pytest_asyncio
from aiohttp import web

from pwi4_heater.core import Pwi4Endpoint


class FakePwi4:
    """In-process PWI4 HTTP server recording every request it receives."""

    def __init__(self, port: int) -> None:
        self.port = port
        self.requests: list[str] = []
        self.status_body = "pwi4.version=4.0.99\nmount.is_connected=true\n"
        self.status_code = 200
        self.command_status = 200
        self.command_body = ""
        self.delay: Optional[float] = None

    @property
    def endpoint(self) -> Pwi4Endpoint:
        return Pwi4Endpoint("127.0.0.1", self.port)

    async def handle_status(self, request: web.Request) -> web.Response:
        self.requests.append(request.path_qs)
        return web.Response(status=self.status_code, text=self.status_body)

    async def handle_heaters_set(self, request: web.Request) -> web.Response:
        self.requests.append(request.path_qs)
        if self.delay is not None:
            await asyncio.sleep(self.delay)
        return web.Response(status=self.command_status, text=self.command_body)


@pytest_asyncio.fixture
async def pwi4_server(unused_tcp_port_factory):
    port = unused_tcp_port_factory()
    fake = FakePwi4(port)

    app = web.Application()
    app.router.add_get("/status", fake.handle_status)
    app.router.add_get("/heaters/set", fake.handle_heaters_set)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()

    try:
        yield fake
    finally:
        await runner.cleanup()
