"""Tests for heater command dispatch."""

import asyncio
from typing import Optional

import aiohttp
import pytest

from pwi4_heater.adapters import Pwi4Client
from pwi4_heater.core import HeaterType, Pwi4Endpoint
from pwi4_heater.heater import (
    HeaterCommandError,
    HeaterConfigurationError,
    HeaterDispatcher,
)

ENDPOINT = Pwi4Endpoint("127.0.0.1", 8220)


class FakeCommandSink:
    def __init__(
        self,
        status: int = 200,
        body: str = "",
        error: Optional[BaseException] = None,
    ) -> None:
        self.status = status
        self.body = body
        self.error = error
        self.paths: list[str] = []

    async def send_command(
        self,
        endpoint: Pwi4Endpoint,
        path: str,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> tuple[int, str]:
        self.paths.append(path)
        if self.error is not None:
            raise self.error
        return self.status, self.body


@pytest.mark.parametrize(
    "heater, role",
    [
        (HeaterType.M1_HEATER, "m1"),
        (HeaterType.M2_HEATER, "m2"),
        (HeaterType.M3_HEATER, "m3"),
    ],
)
def test_build_command_path(heater, role):
    assert (
        HeaterDispatcher.build_command_path(heater, 42)
        == f"/heaters/set?role={role}&power=42"
    )


@pytest.mark.asyncio
async def test_execute_sends_command_path():
    sink = FakeCommandSink()

    result = await HeaterDispatcher(sink).execute(ENDPOINT, HeaterType.M1_HEATER, 75)

    assert result is None
    assert sink.paths == ["/heaters/set?role=m1&power=75"]


@pytest.mark.asyncio
async def test_execute_failure_includes_label_power_and_body():
    sink = FakeCommandSink(status=500, body="  overheat\n")

    with pytest.raises(HeaterCommandError) as excinfo:
        await HeaterDispatcher(sink).execute(ENDPOINT, HeaterType.M1_HEATER, 75)

    message = str(excinfo.value)
    assert "M1 Heater" in message
    assert "75" in message
    assert message.endswith(": overheat")
    assert excinfo.value.status == 500
    assert excinfo.value.detail == "overheat"


@pytest.mark.asyncio
async def test_execute_failure_with_empty_body_still_fails():
    sink = FakeCommandSink(status=404, body="")

    with pytest.raises(HeaterCommandError) as excinfo:
        await HeaterDispatcher(sink).execute(ENDPOINT, HeaterType.M2_HEATER, 10)

    assert excinfo.value.detail == ""
    assert 'Could not set heater "M2 Heater" to 10%' in str(excinfo.value)


@pytest.mark.asyncio
@pytest.mark.parametrize("heater", ["m4", None, 1])
async def test_unknown_heater_fails_before_any_request(heater):
    sink = FakeCommandSink()

    with pytest.raises(HeaterConfigurationError, match="Unknown heater type"):
        await HeaterDispatcher(sink).execute(ENDPOINT, heater, 50)

    assert sink.paths == []


@pytest.mark.asyncio
async def test_transport_failure_becomes_command_error():
    sink = FakeCommandSink(error=aiohttp.ClientConnectionError("reset by peer"))

    with pytest.raises(HeaterCommandError, match="Could not communicate with PWI4"):
        await HeaterDispatcher(sink).execute(ENDPOINT, HeaterType.M3_HEATER, 20)


@pytest.mark.asyncio
async def test_cancellation_is_not_wrapped():
    sink = FakeCommandSink(error=asyncio.CancelledError())

    with pytest.raises(asyncio.CancelledError):
        await HeaterDispatcher(sink).execute(ENDPOINT, HeaterType.M1_HEATER, 20)


@pytest.mark.asyncio
async def test_execute_against_http_server(pwi4_server):
    client = Pwi4Client()
    dispatcher = HeaterDispatcher(client)
    try:
        await dispatcher.execute(pwi4_server.endpoint, HeaterType.M1_HEATER, 75)

        pwi4_server.command_status = 500
        pwi4_server.command_body = "overheat\n"
        with pytest.raises(HeaterCommandError) as excinfo:
            await dispatcher.execute(pwi4_server.endpoint, HeaterType.M1_HEATER, 75)
    finally:
        await client.aclose()

    assert str(excinfo.value) == 'Could not set heater "M1 Heater" to 75%: overheat'
    assert pwi4_server.requests == [
        "/heaters/set?role=m1&power=75",
        "/heaters/set?role=m1&power=75",
    ]


@pytest.mark.asyncio
async def test_cancel_event_set_before_call_sends_nothing(pwi4_server):
    client = Pwi4Client()
    cancel = asyncio.Event()
    cancel.set()
    try:
        with pytest.raises(asyncio.CancelledError):
            await HeaterDispatcher(client).execute(
                pwi4_server.endpoint, HeaterType.M2_HEATER, 30, cancel_event=cancel
            )
    finally:
        await client.aclose()

    assert pwi4_server.requests == []


@pytest.mark.asyncio
async def test_cancel_event_during_call_aborts_request(pwi4_server):
    pwi4_server.delay = 1.0
    client = Pwi4Client()
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.call_later(0.1, cancel.set)
    started = loop.time()
    try:
        with pytest.raises(asyncio.CancelledError):
            await HeaterDispatcher(client).execute(
                pwi4_server.endpoint, HeaterType.M2_HEATER, 30, cancel_event=cancel
            )
    finally:
        await client.aclose()

    assert loop.time() - started < 0.9


@pytest.mark.asyncio
async def test_task_cancellation_propagates(pwi4_server):
    pwi4_server.delay = 1.0
    client = Pwi4Client()
    task = asyncio.create_task(
        HeaterDispatcher(client).execute(
            pwi4_server.endpoint, HeaterType.M3_HEATER, 60
        )
    )
    try:
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
    finally:
        await client.aclose()
