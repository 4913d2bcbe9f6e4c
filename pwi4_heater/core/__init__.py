"""Core primitives for pwi4-heater."""

from .models import (
    HeaterType,
    Pwi4Endpoint,
    StatusSnapshot,
    StatusValueError,
    heater_from_wire_id,
    heater_label,
    heater_wire_id,
    parse_pwi4_bool,
)
from .protocols import Pwi4Adapter, Pwi4CommandSink, Pwi4StatusSource
from .utils import run_cancellable

__all__ = [
    "HeaterType",
    "Pwi4Adapter",
    "Pwi4CommandSink",
    "Pwi4Endpoint",
    "Pwi4StatusSource",
    "StatusSnapshot",
    "StatusValueError",
    "heater_from_wire_id",
    "heater_label",
    "heater_wire_id",
    "parse_pwi4_bool",
    "run_cancellable",
]
