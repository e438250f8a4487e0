#!/usr/bin/env python3
"""Command line entrypoint for the raw conversion pipeline.

Either keeps the watch services running until interrupted, prints the
conversion status of all providers, or waits until every raw file has been
converted.
"""

from __future__ import annotations

import argparse
import json
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from app.utils.config import AppConfig, Settings, get_settings
from app.utils.executor import close_fs_executor
from domains.raw_conversion.errors import ConversionTimeoutError
from domains.raw_conversion.service import RawFileConversionService


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Convert raw meta data provider files as soon as their download finished.",
    )
    parser.add_argument(
        "--downloads-dir",
        type=Path,
        default=None,
        help="Root directory containing the weekly working directories (default: from settings).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for stdout (default: from settings).",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--status",
        action="store_true",
        help="Print the conversion status as JSON and exit.",
    )
    mode.add_argument(
        "--wait",
        type=float,
        metavar="SECONDS",
        default=None,
        help="Wait up to SECONDS for all raw files to be converted and exit.",
    )

    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.downloads_dir is not None:
        overrides["downloads_directory"] = args.downloads_dir
    if args.log_level is not None:
        overrides["log_level"] = args.log_level.upper()
    return get_settings().model_copy(update=overrides)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)
    settings = build_settings(args)

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    app_config = AppConfig(settings=settings)
    service = RawFileConversionService(app_config=app_config, settings=settings)

    if args.status:
        statuses = [status.model_dump() for status in service.conversion_status()]
        print(json.dumps(statuses, indent=2))
        return 1 if any(status["pending_files"] for status in statuses) else 0

    if args.wait is not None:
        try:
            service.wait_for_all_raw_files_to_be_converted(timeout=args.wait)
        except ConversionTimeoutError as e:
            logger.error(str(e))
            return 1
        logger.success("All raw files have been converted.")
        return 0

    stop_event = threading.Event()

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, shutting down.")
        stop_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    service = RawFileConversionService.from_settings(settings, app_config)
    service.start()
    logger.info(f"Running {len(service.watch_services)} watch services.")
    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    finally:
        service.shutdown()
        close_fs_executor()

    logger.info("Raw conversion watcher stopped.")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
