"""Constants used across the pwi4-heater package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "pwi4-heater"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_LOG_PATH = Path.home() / ".local" / "state" / APP_NAME / f"{APP_NAME}.log"

DEFAULT_PWI4_HOST = "127.0.0.1"
DEFAULT_PWI4_PORT = 8220
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0

ITEM_NAME = "Heater Control (PWI4)"
ITEM_DESCRIPTION = "Sets PlaneWave heater state via PWI4"
ITEM_CATEGORY = "PlaneWave Tools"
