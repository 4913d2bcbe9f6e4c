"""Heater control sequence item for PlaneWave telescopes driven by PWI4.

A :class:`HeaterControl` holds the heater to drive and its requested duty
cycle. Before it runs, :meth:`HeaterControl.validate` checks that PWI4 is
connected to the mount; :meth:`HeaterControl.execute` then sends a single
``/heaters/set`` request.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Callable, Mapping, Optional

import aiohttp

from . import constants
from .config import Pwi4Settings
from .core import (
    HeaterType,
    Pwi4Adapter,
    Pwi4CommandSink,
    Pwi4Endpoint,
    Pwi4StatusSource,
    StatusValueError,
    heater_label,
    heater_wire_id,
)

LOGGER = logging.getLogger(__name__)

MIN_POWER = 0
MAX_POWER = 100

MOUNT_CONNECTED_KEY = "mount.is_connected"

ISSUE_NO_COMMUNICATION = "Could not communicate with PWI4"
ISSUE_MOUNT_STATUS_UNKNOWN = "Unable to determine mount connection status"
ISSUE_MOUNT_DISCONNECTED = "PWI4 is not connected to the mount"

# aiohttp wraps most socket failures, but a refused connection can still
# surface as a bare OSError depending on the resolver in use.
TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)

ChangeListener = Callable[[str], None]
ProgressCallback = Callable[[str], None]


class HeaterControlError(RuntimeError):
    """Base error for heater command failures."""


class HeaterConfigurationError(HeaterControlError):
    """Raised when the heater command is configured with an unknown heater."""


class HeaterCommandError(HeaterControlError):
    """Raised when PWI4 rejects or cannot receive a heater command."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        detail: str = "",
    ) -> None:
        super().__init__(message)
        self.status = status
        self.detail = detail


def clamp_power(value: int) -> int:
    return max(MIN_POWER, min(MAX_POWER, int(value)))


class _Observable:
    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []

    def add_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            raise ValueError("Listener already registered")
        self._listeners.append(listener)

    def remove_callback(self, listener: ChangeListener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    def _notify(self, name: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(name)
            except Exception:
                LOGGER.exception("Change listener failed for %s", name)


class HeaterParameters(_Observable):
    """Heater selection and duty cycle for one command.

    Listeners are called with the name of each property that changed:
    ``"heater"`` and ``"heater_label"`` for the heater, ``"power"`` for the
    duty cycle. Assigning the current value notifies nobody.
    """

    def __init__(
        self, heater: HeaterType = HeaterType.M1_HEATER, power: int = 0
    ) -> None:
        super().__init__()
        self._heater = heater
        self._power = clamp_power(power)

    @property
    def heater(self) -> HeaterType:
        return self._heater

    @heater.setter
    def heater(self, value: HeaterType) -> None:
        changed = value != self._heater
        self._heater = value
        if changed:
            self._notify("heater")
            self._notify("heater_label")

    @property
    def heater_label(self) -> str:
        return heater_label(self._heater)

    @property
    def power(self) -> int:
        return self._power

    @power.setter
    def power(self, value: int) -> None:
        clamped = clamp_power(value)
        if clamped != self._power:
            self._power = clamped
            self._notify("power")

    def copy(self) -> "HeaterParameters":
        return HeaterParameters(self._heater, self._power)


class PreconditionValidator:
    """Checks PWI4 status before a heater command is scheduled."""

    def __init__(self, client: Pwi4StatusSource) -> None:
        self._client = client

    async def validate(self, endpoint: Pwi4Endpoint) -> list[str]:
        """Return the list of issues blocking a heater command; empty means ready."""

        try:
            status = await self._client.fetch_status(endpoint)
        except asyncio.CancelledError:
            raise
        except TRANSPORT_ERRORS as exc:
            LOGGER.warning("PWI4 status query to %s failed: %s", endpoint, exc)
            return [ISSUE_NO_COMMUNICATION]
        except Exception as exc:
            LOGGER.warning("PWI4 status query to %s raised: %s", endpoint, exc)
            return [str(exc)]

        try:
            connected = status.get_bool(MOUNT_CONNECTED_KEY)
        except StatusValueError as exc:
            return [f"Unable to parse mount connection status: {exc.value!r}"]

        if connected is None:
            return [ISSUE_MOUNT_STATUS_UNKNOWN]

        if not connected:
            return [ISSUE_MOUNT_DISCONNECTED]

        return []


class HeaterDispatcher:
    """Sends heater power commands to PWI4."""

    def __init__(self, client: Pwi4CommandSink) -> None:
        self._client = client

    @staticmethod
    def build_command_path(heater: HeaterType, power: int) -> str:
        wire_id = heater_wire_id(heater)
        if wire_id is None:
            raise HeaterConfigurationError(
                f'Unknown heater type "{heater_label(heater)}"'
            )
        return f"/heaters/set?role={wire_id}&power={power}"

    async def execute(
        self,
        endpoint: Pwi4Endpoint,
        heater: HeaterType,
        power: int,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Set ``heater`` to ``power`` percent.

        Raises:
            HeaterConfigurationError: If ``heater`` has no PWI4 role.
            HeaterCommandError: If PWI4 is unreachable or rejects the command.
            asyncio.CancelledError: If ``cancel_event`` fires or the task is cancelled.
        """

        path = self.build_command_path(heater, power)
        label = heater_label(heater)
        prefix = f'Could not set heater "{label}" to {power}%'

        LOGGER.info("Setting %s to %d%% via PWI4 at %s", label, power, endpoint)

        try:
            status, body = await self._client.send_command(
                endpoint, path, cancel_event=cancel_event
            )
        except asyncio.CancelledError:
            LOGGER.info("Heater command for %s cancelled", label)
            raise
        except TRANSPORT_ERRORS as exc:
            raise HeaterCommandError(
                f"{prefix}: {ISSUE_NO_COMMUNICATION} ({exc})"
            ) from exc

        if status != 200:
            detail = (body or "").strip()
            LOGGER.warning(
                "PWI4 rejected heater command (status=%d, path=%s): %s",
                status,
                path,
                detail,
            )
            raise HeaterCommandError(f"{prefix}: {detail}", status=status, detail=detail)

        LOGGER.debug("Heater %s set to %d%%", label, power)


class HeaterControl(_Observable):
    """Sequence item that sets a PlaneWave mirror heater's power via PWI4.

    The PWI4 endpoint is read from ``settings`` at every call, so host or port
    changes take effect without recreating the item. Listeners registered with
    :meth:`add_listener` receive the item's own change notifications
    (``"issues"``) as well as those of its parameters.
    """

    name = constants.ITEM_NAME
    description = constants.ITEM_DESCRIPTION
    category = constants.ITEM_CATEGORY

    def __init__(
        self,
        settings: Pwi4Settings,
        client: Pwi4Adapter,
        *,
        parameters: Optional[HeaterParameters] = None,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._client = client
        self._validator = PreconditionValidator(client)
        self._dispatcher = HeaterDispatcher(client)
        self.parameters = parameters or HeaterParameters()
        self.parameters.add_listener(self._notify)
        self._issues: list[str] = []

    @property
    def heater(self) -> HeaterType:
        return self.parameters.heater

    @heater.setter
    def heater(self, value: HeaterType) -> None:
        self.parameters.heater = value

    @property
    def power(self) -> int:
        return self.parameters.power

    @power.setter
    def power(self, value: int) -> None:
        self.parameters.power = value

    @property
    def heater_label(self) -> str:
        return self.parameters.heater_label

    @property
    def issues(self) -> list[str]:
        return list(self._issues)

    async def validate(self) -> bool:
        """Refresh :attr:`issues` from PWI4 and return ``True`` when there are none."""

        issues = await self._validator.validate(self._settings.endpoint)
        if issues != self._issues:
            self._issues = issues
            self._notify("issues")
        return not issues

    async def execute(
        self,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        heater = self.parameters.heater
        power = self.parameters.power

        if progress is not None:
            progress(f"Setting {heater_label(heater)} to {power}%")

        await self._dispatcher.execute(
            self._settings.endpoint, heater, power, cancel_event=cancel_event
        )

        if progress is not None:
            progress(f"{heater_label(heater)} set to {power}%")

    def clone(self) -> "HeaterControl":
        return HeaterControl(
            self._settings, self._client, parameters=self.parameters.copy()
        )

    def to_dict(self) -> dict[str, Any]:
        return {"heater": self.parameters.heater.name, "power": self.parameters.power}

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], settings: Pwi4Settings, client: Pwi4Adapter
    ) -> "HeaterControl":
        heater_name = data.get("heater", HeaterType.M1_HEATER.name)
        try:
            heater = HeaterType[heater_name]
        except KeyError:
            raise HeaterConfigurationError(
                f'Unknown heater type "{heater_name}"'
            ) from None
        parameters = HeaterParameters(heater, int(data.get("power", 0)))
        return cls(settings, client, parameters=parameters)

    def __str__(self) -> str:
        return (
            f"Category: {self.category}, Item: {self.name}, "
            f"Heater: {self.heater_label}, HeaterPower: {self.power}"
        )
