"""
Command-line interface for the EM-CP-PP-ETH charge controller.

Subcommands::

    emcp -H 10.0.0.1 status            # refresh and print the full status
    emcp -H 10.0.0.1 reset             # hard reset via the web config page
    emcp -H 10.0.0.1 current get|set AMPS
    emcp -H 10.0.0.1 avail get|set true|false
    emcp -H 10.0.0.1 digimode get|set true|false

Connection settings come from ``EMCP_*`` environment variables (see
:class:`~emcp.src.config.ControllerSettings`); command-line flags override
them.  Each invocation performs one operation on one Modbus session and
exits: 0 on success, 1 on a controller error, 2 on a usage or
configuration error.

CHANGELOG:
- 2026-10-17: Keep pymodbus logging at debug level
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import ValidationError

from emcp.src.commander import Commander, hard_reset
from emcp.src.config import ControllerSettings
from emcp.src.exceptions import EmcpError
from emcp.src.formatter import write_status
from emcp.src.status_cache import StatusCache
from emcp.src.transport import ModbusTcpTransport

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


class _JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str = "INFO", *, json_logs: bool = False) -> None:
    """Configure the root logger with a single stderr handler.

    Args:
        level: Log level name.
        json_logs: Use structured JSON lines instead of plain text.
    """
    handler = logging.StreamHandler(sys.stderr)
    if json_logs:
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    # pymodbus logs every failed request itself; the client reports errors once.
    # Debug level keeps its frame logging for Modbus traffic debugging.
    pymodbus_level = logging.NOTSET if level.upper() == "DEBUG" else logging.CRITICAL
    logging.getLogger("pymodbus").setLevel(pymodbus_level)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got '{value}'")


def _parse_amps(value: str) -> int:
    amps = int(value)
    if not 0 <= amps <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"charging current must be 0..65535, got {amps}")
    return amps


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="emcp",
        description="An interface to the Phoenix Contact EM-CP-PP-ETH charge controller.",
    )
    parser.add_argument("-H", "--host", help="Host to connect to, e.g. 10.0.0.1")
    parser.add_argument("-p", "--port", type=int, help="Modbus TCP port (default 502)")
    parser.add_argument("-s", "--slave", type=int, dest="slave_id", help="Modbus unit ID (default 180)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose (debug) logging")
    parser.add_argument("--json-logs", action="store_true", help="Log structured JSON lines")
    sub = parser.add_subparsers(dest="command")
    parser.set_defaults(command="status", action=None)
    sub.add_parser("status", help="Query the charge controller state (default)")
    sub.add_parser("reset", help="Reset the charge controller via HTTP")

    current = sub.add_parser("current", help="Get and set the actual charging current")
    current_sub = current.add_subparsers(dest="action", required=True)
    current_sub.add_parser("get", help="Get the charging current")
    current_set = current_sub.add_parser("set", help="Set the charging current")
    current_set.add_argument("amps", type=_parse_amps, help="Charging current to set (amps)")

    avail = sub.add_parser("avail", help="Make the charging station (un)available")
    avail_sub = avail.add_subparsers(dest="action", required=True)
    avail_sub.add_parser("get", help="Get the charging station availability")
    avail_set = avail_sub.add_parser("set", help="Make the charging station (un)available")
    avail_set.add_argument("state", type=_parse_bool, help="true: available, false: unavailable")

    digimode = sub.add_parser("digimode", help="Digital communication mode")
    digimode_sub = digimode.add_subparsers(dest="action", required=True)
    digimode_sub.add_parser("get", help="Get the digital communication mode state")
    digimode_set = digimode_sub.add_parser("set", help="Switch digital communication mode")
    digimode_set.add_argument("state", type=_parse_bool, help="true: enabled, false: disabled")

    return parser


def load_settings(args: argparse.Namespace) -> ControllerSettings:
    """Build settings from the environment, overridden by explicit flags."""
    overrides: dict[str, object] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.slave_id is not None:
        overrides["slave_id"] = args.slave_id
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    if args.json_logs:
        overrides["log_json"] = True
    return ControllerSettings(**overrides)


def log_config_summary(settings: ControllerSettings) -> None:
    logger.debug(
        "Using config: host=%s, port=%s, slave_id=%s, timeout_s=%s, "
        "reset_timeout_s=%s, read_charging_current=%s",
        settings.host,
        settings.port,
        settings.slave_id,
        settings.timeout_s,
        settings.reset_timeout_s,
        settings.read_charging_current,
    )


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------


def run_command(
    args: argparse.Namespace,
    settings: ControllerSettings,
    transport: ModbusTcpTransport,
) -> None:
    """Execute one Modbus command on an open transport."""
    commander = Commander(transport)

    match (args.command, args.action):
        case ("status", _):
            cache = StatusCache(
                transport, read_charging_current=settings.read_charging_current
            )
            write_status(cache.refresh(), sys.stdout)
        case ("current", "get"):
            print(f"Actual charging current: {commander.read_actual_charging_current()} A")
        case ("current", "set"):
            print(f"New charging current: {commander.write_actual_charging_current(args.amps)} A")
        case ("avail", "get"):
            print(f"Charging station available: {commander.read_charging_enabled()}")
        case ("avail", "set"):
            commander.write_charging_enabled(args.state)
            print(f"New availability: {args.state}")
        case ("digimode", "get"):
            print(f"Digital communication mode: {commander.read_digimode_enabled()}")
        case ("digimode", "set"):
            commander.write_digimode_enabled(args.state)
            print(f"Digital communication mode: {args.state}")
        case _:
            raise ValueError(f"unknown command {args.command} {args.action}")


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint for the ``emcp`` console script."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as exc:
        configure_logging()
        logger.error("Invalid configuration: %s", exc)
        if not args.host:
            logger.error("Please specify the host to connect to, e.g. emcp -H 10.0.0.1")
        return EXIT_USAGE

    configure_logging(settings.log_level, json_logs=settings.log_json)
    log_config_summary(settings)

    try:
        if args.command == "reset":
            hard_reset(settings.host, timeout_s=settings.reset_timeout_s)
            print("Reset sent")
            return EXIT_OK

        with ModbusTcpTransport(
            settings.host,
            port=settings.port,
            slave_id=settings.slave_id,
            timeout_s=settings.timeout_s,
        ) as transport:
            run_command(args, settings, transport)
    except EmcpError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
