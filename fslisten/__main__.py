# fslisten/__main__.py

"""
Command line entry point: print batched changes for a set of directories
"""
import argparse
import asyncio
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from .errors import ListenError
from .events import ListenerState
from .listener import Listener
from .patterns import as_patterns
from .utils.config import ListenerConfig, load_config
from .utils.logger import LOG_FORMATS, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fslisten",
        description="Watch directories and print debounced, coalesced changes",
    )
    parser.add_argument("directories", nargs="*", help="Directories to watch (default: current directory)")
    parser.add_argument("--config", help="YAML or JSON configuration file")
    parser.add_argument("--wait-for-delay", type=float, help="Quiet period in seconds before a batch is reported")
    parser.add_argument("--latency", type=float, help="Observer timeout / polling interval in seconds")
    parser.add_argument("--force-polling", action="store_true", default=None, help="Poll instead of using OS events")
    parser.add_argument("--ignore", action="append", metavar="PATTERN", help="Additional ignore pattern (repeatable)")
    parser.add_argument("--only", action="append", metavar="PATTERN", help="Only report files matching (repeatable)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--log-format", choices=LOG_FORMATS, help="Console log format")
    parser.add_argument("--log-file", help="Also log to this file")
    return parser


def merge_args(config: ListenerConfig, args: argparse.Namespace) -> ListenerConfig:
    """Command line values override the configuration file"""
    if args.directories:
        config.directories = [Path(d) for d in args.directories]
    if not config.directories:
        config.directories = [Path.cwd()]

    options = config.options
    if args.wait_for_delay is not None:
        options.wait_for_delay = args.wait_for_delay
    if args.latency is not None:
        options.latency = args.latency
    if args.force_polling:
        options.force_polling = True
    if args.ignore:
        options.ignore = list(as_patterns(options.ignore)) + args.ignore
    if args.only:
        options.only = list(args.only)

    if args.log_level:
        config.log_level = args.log_level
    if args.log_format:
        config.log_format = args.log_format
    if args.log_file:
        config.log_file = args.log_file
    return config


def print_changes(modified: List[str], added: List[str], removed: List[str]):
    for label, paths in (("modified", modified), ("added", added), ("removed", removed)):
        for path in paths:
            print(f"{label}: {path}", flush=True)


async def run(config: ListenerConfig):
    listener = Listener(
        *config.directories,
        callback=print_changes,
        **asdict(config.options),
    )

    await listener.start()
    print(f"Watching {', '.join(str(d) for d in listener.directories)}. Press Ctrl+C to stop.", flush=True)

    try:
        while listener.state in (ListenerState.RUNNING, ListenerState.PAUSED):
            await asyncio.sleep(0.5)
    except asyncio.CancelledError:
        pass
    finally:
        await listener.stop()

    if listener.error is not None:
        raise listener.error


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = merge_args(load_config(args.config), args)
    except ListenError as e:
        print(f"fslisten: {e}", file=sys.stderr)
        return 2

    setup_logging(log_level=config.log_level, log_file=config.log_file, log_format=config.log_format)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        print("\nShutting down...")
    except ListenError as e:
        logger.error(f"{e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
