#main.py

"""
fshandle - browse a directory and follow its changes
"""
import argparse
import logging
import sys
import time
from typing import List

from fshandle import FsHandle, UpdateEvent, FsHandleError
from fshandle.utils.config import load_config
from fshandle.utils.logger import setup_logging_from_config

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List a directory and log changes to it")
    parser.add_argument("path", nargs="?", default=".", help="Directory to open (default: %(default)s)")
    parser.add_argument("--config", help="YAML or JSON configuration file")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-format", choices=["text", "json", "color"], help="Log output format")
    return parser.parse_args(argv)


def log_updates(events: List[UpdateEvent]):
    for event in events:
        logger.info(f"{event}")


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except FsHandleError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging_from_config(config, log_level=args.log_level, log_format=args.log_format)

    try:
        handle = FsHandle(args.path, config=config)
    except FsHandleError as e:
        logger.error(f"Cannot open {args.path}: {e}")
        return 1

    with handle:
        try:
            entries = handle.list()
        except FsHandleError as e:
            logger.error(f"Cannot list {handle.current_path()}: {e}")
            return 1

        for entry in entries:
            kind = "dir " if entry.is_directory else "file"
            size = "" if entry.size is None else f" ({entry.size} bytes)"
            print(f"{kind} {entry.name}{size}")

        if not handle.is_watching:
            if handle.watch_error is not None:
                logger.warning("Change notifications are unavailable; exiting after listing")
            return 0

        handle.subscribe(log_updates)
        print(f"\nWatching {handle.current_path()}. Press Ctrl+C to stop.")
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            print("\nShutting down...")

    return 0


if __name__ == "__main__":
    sys.exit(main())
