"""Command-line front end for trying out wakeup settings.

Usage:
    python -m wakeup.cli keys
    python -m wakeup.cli --set fetchmail_interval=30 resolve NOOP
    python -m wakeup.cli --set fetchmail_pidfile=/run/fetchmail.pid fire NOOP NOOP
    python -m wakeup.cli --settings session.json fire IDLE
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from wakeup.config import SessionSettings, WakeupConfig
from wakeup.interceptor import EventInterceptor, EventNameTooLongError
from wakeup.models import EventContext


def _load_settings(args: argparse.Namespace) -> SessionSettings:
    settings = SessionSettings.load(Path(args.settings)) if args.settings else SessionSettings()
    if args.set:
        settings = settings.merged(SessionSettings.from_pairs(args.set))
    return settings


def _build_interceptor(config: WakeupConfig, names: list[str]) -> EventInterceptor:
    interceptor = EventInterceptor(config)
    for name in names:
        interceptor.register(name, lambda ctx: True)
    return interceptor


def cmd_keys(config: WakeupConfig, settings: SessionSettings, args: argparse.Namespace) -> None:
    """List the configuration keys that are consulted."""
    print(f"{config.helper_key:<32} helper command line")
    print(f"{config.pidfile_key:<32} pidfile to signal")
    print(f"{config.interval_key:<32} global interval (default {config.default_interval}s)")
    interceptor = EventInterceptor(config)
    for name in config.events:
        try:
            watched = interceptor.register(name, None)
        except EventNameTooLongError as exc:
            print(f"{'-':<32} {name}: {exc}")
            continue
        print(f"{watched.interval_key:<32} interval for {watched.name}")


def cmd_resolve(config: WakeupConfig, settings: SessionSettings, args: argparse.Namespace) -> None:
    """Print the effective interval for an event."""
    interceptor = _build_interceptor(config, [args.event])
    watched = interceptor.get(args.event)
    if watched is None:
        print(f"Error: {args.event} is not watched")
        sys.exit(1)
    print(f"{watched.name}: {interceptor.interval_for(watched, settings)}s")


def cmd_fire(config: WakeupConfig, settings: SessionSettings, args: argparse.Namespace) -> None:
    """Run the pipeline once per event given, in order."""
    interceptor = _build_interceptor(config, sorted({e.upper() for e in args.events}))
    for i, name in enumerate(args.events, 1):
        watched = interceptor.get(name)
        if watched is None:
            print(f"Error: {name} is not watched")
            sys.exit(1)
        outcome = interceptor.trigger(watched, EventContext(name=name, settings=settings))
        label = outcome.value if outcome is not None else "suppressed"
        print(f"{i:>3} {watched.name:<10} {label}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wakeup",
        description="Rate-limited helper/signal trigger for watched events",
    )
    parser.add_argument("--settings", type=str, default=None, help="JSON file of session settings")
    parser.add_argument(
        "--set", action="append", metavar="KEY=VALUE", help="Session setting (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("keys", help="List consulted configuration keys")

    resolve_parser = subparsers.add_parser("resolve", help="Show the effective interval")
    resolve_parser.add_argument("event", help="Event name, e.g. NOOP")

    fire_parser = subparsers.add_parser("fire", help="Trigger events through the rate limiter")
    fire_parser.add_argument("events", nargs="+", help="Event occurrences, in order")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the wakeup CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = WakeupConfig.from_env()
        settings = _load_settings(args)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    dispatch = {
        "keys": cmd_keys,
        "resolve": cmd_resolve,
        "fire": cmd_fire,
    }
    try:
        dispatch[args.command](config, settings, args)
    except EventNameTooLongError as exc:
        print(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
