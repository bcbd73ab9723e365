"""Command-line entry for calendarzone.

Converts JSON events between zones, normalizes zone identifiers and runs the
host timezone check against a settings file.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any, NoReturn, Optional

from . import _init_logging
from .conversion.converter import convert
from .core.config_manager import ConfigManager, get_config_value
from .core.settings_store import SettingsStore
from .core.timezone_utils import normalize_timezone
from .domain.timezone_monitor import JsonSettingsContext, SystemTimezoneMonitor
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for calendarzone CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="calendarzone",
        description="CalendarZone - timezone conversion for calendar events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  calendarzone convert event.json --from America/New_York --to Asia/Tokyo
  CALENDARZONE_DISPLAY_TIMEZONE=Europe/Prague calendarzone convert events.json --from utc
  calendarzone normalize "Pacific Standard Time" Z
  calendarzone check-timezone --settings-file ./timezone_settings.json
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    convert_parser = subparsers.add_parser("convert", help="Convert events between timezones")
    convert_parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="JSON file holding one event or a list of events (default: stdin)",
    )
    convert_parser.add_argument("--from", dest="source_zone", required=True, metavar="ZONE")
    convert_parser.add_argument(
        "--to",
        dest="target_zone",
        metavar="ZONE",
        help="Target zone (default: CALENDARZONE_DISPLAY_TIMEZONE)",
    )
    convert_parser.add_argument(
        "--reference-date",
        type=date.fromisoformat,
        metavar="YYYY-MM-DD",
        help="Date used for the day offset of weekday series without startRecur",
    )

    normalize_parser = subparsers.add_parser("normalize", help="Map zone identifiers to IANA names")
    normalize_parser.add_argument("zones", nargs="+", metavar="ZONE")

    check_parser = subparsers.add_parser(
        "check-timezone", help="Compare the host timezone with the persisted settings"
    )
    check_parser.add_argument(
        "--settings-file",
        type=Path,
        metavar="PATH",
        help="Settings JSON (default: CALENDARZONE_SETTINGS_FILE or ~/.config/calendarzone)",
    )

    return parser


def _read_events(path: Optional[Path]) -> Any:
    text = path.read_text(encoding="utf-8") if path else sys.stdin.read()
    return json.loads(text)


def _cmd_convert(args: argparse.Namespace, config: dict[str, Any]) -> int:
    target_zone = args.target_zone or get_config_value(config, "display_timezone")
    if not target_zone:
        logger.error("No target zone: pass --to or set CALENDARZONE_DISPLAY_TIMEZONE")
        return 2

    try:
        payload = _read_events(args.file)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Cannot read events: %s", exc)
        return 1

    events = payload if isinstance(payload, list) else [payload]
    converted = [
        convert(event, args.source_zone, target_zone, reference_date=args.reference_date)
        for event in events
    ]

    result = converted if isinstance(payload, list) else converted[0]
    json.dump(result, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def _cmd_normalize(args: argparse.Namespace) -> int:
    for zone in args.zones:
        print(f"{zone}\t{normalize_timezone(zone)}")
    return 0


def _cmd_check_timezone(args: argparse.Namespace, config: dict[str, Any]) -> int:
    settings_file = args.settings_file or get_config_value(config, "settings_file")
    context = JsonSettingsContext(SettingsStore(settings_file))
    monitor = SystemTimezoneMonitor(
        notice_duration_ms=get_config_value(config, "notice_duration_ms", 10_000)
    )
    outcome = asyncio.run(monitor.check(context))
    print(f"{outcome.value}: display timezone {context.settings.display_timezone}")
    return 0


def main() -> NoReturn:
    """Run the calendarzone CLI."""
    parser = _create_parser()
    args = parser.parse_args()

    config = ConfigManager().load_full_config()
    _init_logging(get_config_value(config, "log_level", "INFO"))
    configure_logging(debug_mode=args.debug)

    if args.command == "convert":
        sys.exit(_cmd_convert(args, config))
    if args.command == "normalize":
        sys.exit(_cmd_normalize(args))
    sys.exit(_cmd_check_timezone(args, config))


if __name__ == "__main__":
    main()
