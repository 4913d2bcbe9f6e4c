"""Protocol definitions for PWI4 clients."""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from .models import Pwi4Endpoint, StatusSnapshot


class Pwi4StatusSource(Protocol):
    """Anything able to fetch a PWI4 status snapshot."""

    async def fetch_status(
        self,
        endpoint: Pwi4Endpoint,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StatusSnapshot:
        """Retrieve the full device state from ``GET /status``.

        Raises:
            aiohttp.ClientError: If PWI4 cannot be reached or answers with an error status.
        """
        ...


class Pwi4CommandSink(Protocol):
    """Anything able to send a command path to PWI4."""

    async def send_command(
        self,
        endpoint: Pwi4Endpoint,
        path: str,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> tuple[int, str]:
        """Issue ``GET <path>`` and return the HTTP status and response body."""
        ...


class Pwi4Adapter(Pwi4StatusSource, Pwi4CommandSink, Protocol):
    """Full contract of the PWI4 HTTP adapter."""

    async def aclose(self) -> None:
        """Close any underlying resources."""
        ...
