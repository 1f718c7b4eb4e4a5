"""Janus - Entry Point

Usage:
    python -m janus [--config PATH] [--simulation | --no-simulation] [--log-level LEVEL]

Commands:
    run     - Start the bot (default)
    version - Show version

Examples:
    python -m janus
    python -m janus --config config/production.toml
    python -m janus --no-simulation --log-level DEBUG
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from janus import __version__


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="janus",
        description="Period-synchronized dual limit-start bot for 15-minute up/down markets",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Janus {__version__}",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (TOML)",
    )

    parser.add_argument(
        "--simulation",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Simulate orders instead of placing them (default: on)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level",
    )

    parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Emit JSON log lines",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")
    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("version", help="Show version")

    return parser.parse_args(argv)


def find_config_file(specified: Optional[Path]) -> Optional[Path]:
    """Find configuration file."""
    if specified is not None:
        return specified if specified.exists() else None

    search_paths = [
        Path("config/default.toml"),
        Path("janus.toml"),
        Path("/etc/janus/janus.toml"),
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def build_config(args: argparse.Namespace):
    """Load configuration and apply command-line overrides."""
    from dotenv import load_dotenv

    from janus.core.config import ConfigManager

    load_dotenv()
    config = ConfigManager(find_config_file(args.config))

    if args.simulation is not None:
        config.set("janus.simulation", args.simulation)
    if args.log_level is not None:
        config.set("janus.log_level", args.log_level)
    if args.log_json is not None:
        config.set("janus.log_json", args.log_json)

    return config


async def run_bot(args: argparse.Namespace) -> int:
    """Run the bot."""
    from janus.app import JanusApp
    from janus.core.errors import ConfigurationError
    from janus.core.logging import get_logger

    log = get_logger("main")
    config = build_config(args)

    try:
        app = JanusApp(config)
    except ConfigurationError as e:
        log.error("invalid_configuration", error=str(e))
        return 2

    log.info(
        "config_loaded",
        config=str(config.config_path) if config.config_path else "defaults",
    )

    try:
        await app.run()
        return 0
    except ConfigurationError as e:
        log.error("invalid_configuration", error=str(e))
        return 2
    except Exception as e:
        log.error("fatal_error", error=str(e))
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.command == "version":
        print(f"Janus {__version__}")
        return 0

    try:
        return asyncio.run(run_bot(args))
    except KeyboardInterrupt:
        print("Stopped.", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())
