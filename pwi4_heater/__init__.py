"""PlaneWave heater control via the PWI4 HTTP API."""

from .heater import (
    HeaterCommandError,
    HeaterConfigurationError,
    HeaterControl,
    HeaterControlError,
    HeaterDispatcher,
    HeaterParameters,
    PreconditionValidator,
)
from .version import __version__

__all__ = [
    "HeaterCommandError",
    "HeaterConfigurationError",
    "HeaterControl",
    "HeaterControlError",
    "HeaterDispatcher",
    "HeaterParameters",
    "PreconditionValidator",
    "__version__",
]
