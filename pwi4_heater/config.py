"""Configuration loader and live PWI4 connection settings."""

from __future__ import annotations

import contextlib
import logging
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from . import constants
from .core.models import Pwi4Endpoint

LOGGER = logging.getLogger(__name__)

SettingsListener = Callable[[str], None]


@dataclass(slots=True)
class Pwi4Config:
    host: str = constants.DEFAULT_PWI4_HOST
    port: int = constants.DEFAULT_PWI4_PORT
    request_timeout_seconds: float = constants.DEFAULT_REQUEST_TIMEOUT_SECONDS


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = constants.DEFAULT_LOG_PATH
    log_network: bool = False


@dataclass(slots=True)
class HeaterAppConfig:
    pwi4: Pwi4Config
    logging: LoggingConfig
    raw: ConfigParser
    path: Path


def _validate_port(port: int) -> int:
    port = int(port)
    if not 0 < port < 65536:
        raise ValueError(f"PWI4 port must be between 1 and 65535, got {port}")
    return port


class Pwi4Settings:
    """Current PWI4 host and port, observable by interested components.

    Consumers read :attr:`endpoint` at the moment they talk to PWI4 so that
    changes made through :meth:`update` apply to the very next request.
    """

    def __init__(
        self,
        host: str = constants.DEFAULT_PWI4_HOST,
        port: int = constants.DEFAULT_PWI4_PORT,
    ) -> None:
        self._host = host
        self._port = _validate_port(port)
        self._listeners: list[SettingsListener] = []

    @classmethod
    def from_config(cls, config: Pwi4Config) -> "Pwi4Settings":
        return cls(host=config.host, port=config.port)

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def endpoint(self) -> Pwi4Endpoint:
        return Pwi4Endpoint(host=self._host, port=self._port)

    def update(self, *, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """Change host and/or port, notifying listeners of each changed field."""

        changed: list[str] = []

        if port is not None:
            new_port = _validate_port(port)
            if new_port != self._port:
                self._port = new_port
                changed.append("port")

        if host is not None and host != self._host:
            self._host = host
            changed.append("host")

        for name in changed:
            LOGGER.debug("PWI4 setting %s changed", name)
            self._notify(name)

    def add_listener(self, listener: SettingsListener) -> None:
        if listener in self._listeners:
            raise ValueError("Listener already registered")
        self._listeners.append(listener)

    def remove_callback(self, listener: SettingsListener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    def _notify(self, name: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(name)
            except Exception:
                LOGGER.exception("PWI4 settings listener failed")


def load_config(path: Optional[Path] = None) -> HeaterAppConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "pwi4": {
                "host": constants.DEFAULT_PWI4_HOST,
                "port": str(constants.DEFAULT_PWI4_PORT),
                "request_timeout_seconds": str(
                    constants.DEFAULT_REQUEST_TIMEOUT_SECONDS
                ),
            },
            "logging": {
                "level": "INFO",
                "path": str(constants.DEFAULT_LOG_PATH),
                "log_network": "false",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    host_value = parser.get("pwi4", "host").strip()
    port_value = parser.getint("pwi4", "port", fallback=constants.DEFAULT_PWI4_PORT)

    if ":" in host_value:
        host_part, port_part = host_value.rsplit(":", 1)
        try:
            parsed_port = int(port_part)
        except ValueError:
            pass
        else:
            host_value = host_part
            port_value = parsed_port
            parser.set("pwi4", "host", host_part)
            parser.set("pwi4", "port", str(parsed_port))

    try:
        timeout_value = parser.getfloat(
            "pwi4",
            "request_timeout_seconds",
            fallback=constants.DEFAULT_REQUEST_TIMEOUT_SECONDS,
        )
    except ValueError:
        timeout_value = constants.DEFAULT_REQUEST_TIMEOUT_SECONDS

    pwi4 = Pwi4Config(
        host=host_value,
        port=_validate_port(port_value),
        request_timeout_seconds=max(0.1, timeout_value),
    )

    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(
            parser.get("logging", "path", fallback=str(constants.DEFAULT_LOG_PATH))
        ).expanduser(),
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    return HeaterAppConfig(
        pwi4=pwi4,
        logging=logging_config,
        raw=parser,
        path=config_path,
    )


def save_config(config: HeaterAppConfig) -> None:
    """Persist the current configuration to disk."""

    config_path = config.path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as stream:
        config.raw.write(stream)
