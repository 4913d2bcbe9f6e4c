"""Command-line interface for pwi4-heater."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .adapters import Pwi4Client
from .config import HeaterAppConfig, Pwi4Settings, load_config
from .core import heater_from_wire_id
from .heater import HeaterControl, HeaterControlError, HeaterParameters
from .logging import configure_logging

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pwi4-heater", description="Control PlaneWave mirror heaters via PWI4"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "validate", help="Check that PWI4 is reachable and connected to the mount"
    )

    set_parser = subparsers.add_parser("set", help="Set a heater's power")
    set_parser.add_argument(
        "--heater", choices=["m1", "m2", "m3"], default="m1", help="Heater role"
    )
    set_parser.add_argument(
        "--power",
        type=int,
        required=True,
        help="Duty cycle in percent; values outside 0-100 are clamped",
    )
    set_parser.add_argument(
        "--skip-validation",
        action="store_true",
        help="Send the command without checking the mount connection first",
    )

    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


async def _run_validate(config: HeaterAppConfig) -> int:
    client = Pwi4Client(timeout=config.pwi4.request_timeout_seconds)
    item = HeaterControl(Pwi4Settings.from_config(config.pwi4), client)
    try:
        if await item.validate():
            print(f"PWI4 at {config.pwi4.host}:{config.pwi4.port} is ready")
            return 0
        for issue in item.issues:
            print(issue)
        return 1
    finally:
        await client.aclose()


async def _run_set(
    config: HeaterAppConfig, heater: str, power: int, *, skip_validation: bool
) -> int:
    client = Pwi4Client(timeout=config.pwi4.request_timeout_seconds)
    item = HeaterControl(
        Pwi4Settings.from_config(config.pwi4),
        client,
        parameters=HeaterParameters(heater_from_wire_id(heater), power),
    )
    try:
        if not skip_validation and not await item.validate():
            for issue in item.issues:
                LOGGER.error("Validation failed: %s", issue)
            return 1
        try:
            await item.execute(progress=LOGGER.info)
        except HeaterControlError as exc:
            LOGGER.error("%s", exc)
            return 1
        return 0
    finally:
        await client.aclose()


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                print(f"{key} = {value}")
            print()
        return 0

    configure_logging(
        config.logging.level,
        log_path=config.logging.path,
        log_network=config.logging.log_network,
    )

    if args.command == "validate":
        return asyncio.run(_run_validate(config))

    if args.command == "set":
        return asyncio.run(
            _run_set(
                config,
                args.heater,
                args.power,
                skip_validation=args.skip_validation,
            )
        )

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
