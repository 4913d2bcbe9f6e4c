"""PWI4 adapter providing the HTTP helpers used by heater commands."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

from .. import constants
from ..core import Pwi4Adapter, Pwi4Endpoint, StatusSnapshot, run_cancellable

LOGGER = logging.getLogger(__name__)


class Pwi4Client(Pwi4Adapter):
    """Non-blocking client for the PWI4 HTTP API.

    The endpoint is passed to every call rather than fixed at construction,
    so one client serves whatever host/port the settings currently hold.
    """

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = constants.DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def fetch_status(
        self,
        endpoint: Pwi4Endpoint,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StatusSnapshot:
        """Fetch the current device state from ``GET /status``.

        Raises:
            asyncio.TimeoutError: If the request exceeds the client timeout.
            aiohttp.ClientError: If the request fails or PWI4 answers with an error status.
        """

        url = f"{endpoint.base_url}/status"
        body = await run_cancellable(self._get_status_body(url), cancel_event)
        snapshot = StatusSnapshot.parse(body)
        LOGGER.debug("PWI4 status from %s: %d keys", endpoint, len(snapshot))
        return snapshot

    async def send_command(
        self,
        endpoint: Pwi4Endpoint,
        path: str,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> tuple[int, str]:
        """Send ``GET <path>`` to PWI4 and return ``(status, body)``.

        Non-success statuses are returned, not raised; interpreting them is up
        to the caller.

        Raises:
            asyncio.TimeoutError: If the request exceeds the client timeout.
            aiohttp.ClientError: If PWI4 cannot be reached.
        """

        if not path.startswith("/"):
            path = "/" + path
        url = f"{endpoint.base_url}{path}"
        return await run_cancellable(self._get(url), cancel_event)

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def _get_status_body(self, url: str) -> str:
        session = await self._ensure_session()
        try:
            async with session.get(url) as response:
                response.raise_for_status()
                return await response.text()
        except asyncio.TimeoutError:
            LOGGER.warning("PWI4 status query timed out (url=%s)", url)
            raise

    async def _get(self, url: str) -> tuple[int, str]:
        session = await self._ensure_session()
        LOGGER.debug("PWI4 request: GET %s", url)
        try:
            async with session.get(url) as response:
                body = await response.text()
                return response.status, body
        except asyncio.TimeoutError:
            LOGGER.warning("PWI4 request timed out (url=%s)", url)
            raise
