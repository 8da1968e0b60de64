"""Command-line entry point for the directory watcher."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_ALLOWLIST, DEFAULT_EVENTS, DEFAULT_LOG_FILE, ConfigError, load_config
from .monitor import DirectoryMonitor
from .source import SourceError
from .watchset import WatchSetupError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="birdeye",
        description="Watch a directory tree and remove newly created files with disallowed extensions",
    )
    parser.add_argument("directory", nargs="?", help="Directory to monitor (default: .)")
    parser.add_argument("log_file", nargs="?", help=f"Log file path (default: {DEFAULT_LOG_FILE})")
    parser.add_argument(
        "events",
        nargs="?",
        help=f"Comma-separated events to log: create,write,remove,rename,move,chmod (default: {DEFAULT_EVENTS})",
    )
    parser.add_argument(
        "extensions",
        nargs="?",
        help=f"File listing allowed extensions, one per line (default: {DEFAULT_ALLOWLIST})",
    )
    parser.add_argument("--config", help="Optional YAML configuration file")
    parser.add_argument(
        "--polling",
        action="store_true",
        default=None,
        help="Poll the filesystem instead of using OS notifications",
    )
    parser.add_argument("--poll-interval", type=float, help="Polling interval in seconds")
    parser.add_argument(
        "--no-desktop-notify",
        dest="desktop_notify",
        action="store_false",
        default=None,
        help="Log alerts instead of showing desktop notifications",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def open_log_handler(log_file: Path) -> logging.Handler:
    """File handler for ``log_file``, or a console handler when it cannot be opened."""

    try:
        return logging.FileHandler(log_file, mode="a")
    except OSError as exc:
        print(f"Could not open log file, logging to console instead: {exc}")
        return logging.StreamHandler(sys.stdout)


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    level = getattr(logging, args.log_level.upper(), logging.INFO)

    overrides = {
        "root_path": args.directory,
        "log_file": args.log_file,
        "events": args.events,
        "allowlist": args.extensions,
        "polling": args.polling,
        "poll_interval": args.poll_interval,
        "desktop_notify": args.desktop_notify,
    }
    try:
        config = load_config(Path(args.config) if args.config else None, overrides)
    except ConfigError as exc:
        logging.basicConfig(level=level, format=LOG_FORMAT)
        logging.error("%s", exc)
        raise SystemExit(2) from exc

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[open_log_handler(config.log_file)])

    monitor = DirectoryMonitor(config)
    try:
        monitor.start()
    except ConfigError as exc:
        logging.error("Failed to load allowed extensions: %s", exc)
        raise SystemExit(2) from exc
    except (SourceError, WatchSetupError) as exc:
        logging.error("%s", exc)
        raise SystemExit(1) from exc

    monitor.run()


if __name__ == "__main__":
    main()
