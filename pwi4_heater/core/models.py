"""Domain models for heater commands and PWI4 status."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

__all__ = [
    "HeaterType",
    "Pwi4Endpoint",
    "StatusSnapshot",
    "StatusValueError",
    "heater_from_wire_id",
    "heater_label",
    "heater_wire_id",
    "parse_pwi4_bool",
]


class HeaterType(Enum):
    """Mirror heaters addressable through PWI4."""

    M1_HEATER = "M1_HEATER"
    M2_HEATER = "M2_HEATER"
    M3_HEATER = "M3_HEATER"


# heater -> (wire id used in request paths, operator-facing label)
_HEATERS: Mapping[HeaterType, tuple[str, str]] = MappingProxyType(
    {
        HeaterType.M1_HEATER: ("m1", "M1 Heater"),
        HeaterType.M2_HEATER: ("m2", "M2 Heater"),
        HeaterType.M3_HEATER: ("m3", "M3 Heater"),
    }
)


def heater_wire_id(heater: object) -> Optional[str]:
    """Return the PWI4 role token for ``heater`` or ``None`` when unknown."""

    entry = _HEATERS.get(heater) if isinstance(heater, HeaterType) else None
    return entry[0] if entry else None


def heater_label(heater: object) -> str:
    entry = _HEATERS.get(heater) if isinstance(heater, HeaterType) else None
    return entry[1] if entry else str(heater)


def heater_from_wire_id(wire_id: str) -> HeaterType:
    token = wire_id.strip().lower()
    for heater, (candidate, _label) in _HEATERS.items():
        if candidate == token:
            return heater
    raise ValueError(f"Unknown heater role: {wire_id!r}")


@dataclass(slots=True, frozen=True)
class Pwi4Endpoint:
    host: str
    port: int

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class StatusValueError(ValueError):
    """Raised when a PWI4 status value cannot be interpreted."""

    def __init__(self, key: str, value: str) -> None:
        super().__init__(f"Unable to parse {key} value: {value!r}")
        self.key = key
        self.value = value


_TRUE_TOKENS = frozenset({"true"})
_FALSE_TOKENS = frozenset({"false"})


def parse_pwi4_bool(value: str) -> bool:
    """Interpret a PWI4 boolean token ("true"/"false", any case).

    Raises:
        ValueError: If the token is neither true nor false.
    """

    token = value.strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    raise ValueError(f"Not a PWI4 boolean: {value!r}")


class StatusSnapshot(Mapping[str, str]):
    """Read-only view of one PWI4 ``/status`` response.

    PWI4 answers with flat ``key=value`` lines; keys are dotted names such as
    ``mount.is_connected``. Values are kept as strings.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str]) -> None:
        self._values = MappingProxyType(dict(values))

    @classmethod
    def parse(cls, body: str) -> "StatusSnapshot":
        values: dict[str, str] = {}
        for line in body.splitlines():
            line = line.strip()
            if not line:
                continue
            key, sep, value = line.partition("=")
            if not sep:
                continue
            values[key.strip()] = value.strip()
        return cls(values)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"StatusSnapshot({dict(self._values)!r})"

    def get_bool(self, key: str) -> Optional[bool]:
        """Return the boolean at ``key``, or ``None`` when the key is absent.

        Raises:
            StatusValueError: If the key is present but not a boolean token.
        """

        raw = self._values.get(key)
        if raw is None:
            return None
        try:
            return parse_pwi4_bool(raw)
        except ValueError:
            raise StatusValueError(key, raw) from None
