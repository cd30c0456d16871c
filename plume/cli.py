"""
plume CLI.

Usage:
    plume run [--config PATH] [--debug]     Boot the bot
    plume init [--config PATH]              Write an annotated config file
"""

import argparse
import asyncio
import sys
from pathlib import Path

from plume.bot import Bot
from plume.config import DEFAULT_CONFIG_FILE, ConfigError, load_config, write_default_config
from plume.system.transport import TransportError, load_transport_factory


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="plume", description="plume chat bot")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_FILE,
        help=f"Configuration file (default: {DEFAULT_CONFIG_FILE})",
    )

    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Boot the bot")
    run.add_argument("--debug", action="store_true", help="Report plugin load failures")

    init = sub.add_parser("init", help="Write an annotated configuration file")
    init.add_argument("--token", default="", help="Transport authentication token")
    init.add_argument("--transport", default="", help="Transport factory as module:attribute")

    return parser


async def run_bot(bot: Bot) -> int:
    """Boot *bot* and keep serving until a kill exits the process."""
    if not await bot.boot():
        print(
            "Error: plugin loading failed (run with --debug for details)",
            file=sys.stderr,
        )
        return 1

    await asyncio.Event().wait()
    return 0


def run_command(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not config.transport:
        print("Error: no transport configured ([bot] transport)", file=sys.stderr)
        return 1

    try:
        factory = load_transport_factory(config.transport)
        transport = factory(config)
    except TransportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    bot = Bot(config, transport, debug=args.debug or None)
    return asyncio.run(run_bot(bot))


def init_command(args: argparse.Namespace) -> int:
    values = {}
    if args.token:
        values["token"] = args.token
    if args.transport:
        values["transport"] = args.transport

    try:
        path = write_default_config(args.config, **values)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        return run_command(args)
    if args.command == "init":
        return init_command(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
