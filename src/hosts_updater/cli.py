"""Command-line entrypoint for the hosts updater.

Usage:
  hosts-updater [--config PATH] [--hosts-file PATH] [--once] [--check-config]

Without ``--once`` the updater runs until interrupted (SIGINT/SIGTERM).
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import platform
import signal
import sys
import threading
from pathlib import Path

from .config import ConfigError, Settings, load_settings
from .core import Updater
from .errors import HostsUpdaterError
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ABORTED = 2


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def check_write_access(hosts_file: Path) -> bool:
    """Warn when the current user cannot replace ``hosts_file``.

    Replacing the file needs write access to its directory (for the temp file
    and rename) as well as to the file itself.
    """
    target = hosts_file if hosts_file.exists() else hosts_file.parent
    writable = os.access(target, os.W_OK) and os.access(hosts_file.parent, os.W_OK)
    if not writable:
        if platform.system().lower() == "windows":
            hint = "right-click and choose 'Run as administrator'"
        else:
            hint = f"run with sudo: sudo {sys.argv[0]}"
        logger.warning(
            "No write access to %s; updates will fail until the updater is run "
            "with elevated privileges (%s)",
            hosts_file,
            hint,
        )
    return writable


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hosts-updater",
        description="Keep a managed region of the hosts file in sync with remote sources.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a JSON/TOML/YAML config file (default: search standard locations)",
    )
    parser.add_argument(
        "--hosts-file",
        type=Path,
        default=None,
        help="Hosts file to manage (overrides the config and platform default)",
    )
    parser.add_argument("--once", action="store_true", help="Run a single update and exit")
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate the configuration and exit",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def _describe(settings: Settings) -> str:
    lines = [
        f"Hosts file: {settings.resolved_hosts_file}",
        f"Update interval: {settings.update_interval_hours} h "
        f"(retry after failure: {settings.retry_interval_minutes} min)",
        f"Backup: {settings.backup_path if settings.backup_before_update else 'disabled'}",
        f"Sources ({len(settings.hosts_sources)}):",
    ]
    lines.extend(f"  - {url}" for url in settings.hosts_sources)
    return "\n".join(lines)


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def _handle(signum: int, _frame: object) -> None:
        logger.info("Received signal %d; stopping after the current update", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handle)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILED

    if args.hosts_file is not None:
        settings = settings.with_hosts_file(args.hosts_file)

    if args.check_config:
        print(_describe(settings))
        return EXIT_OK

    check_write_access(settings.resolved_hosts_file)
    updater = Updater.from_settings(settings)

    if args.once:
        try:
            outcome = updater.run_tick()
        except (HostsUpdaterError, OSError) as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return EXIT_FAILED
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
        if outcome.is_error:
            return EXIT_FAILED
        if outcome.is_aborted:
            return EXIT_ABORTED
        return EXIT_OK

    stop_event = threading.Event()
    _install_signal_handlers(stop_event)
    scheduler = Scheduler(
        updater.run_tick,
        interval=settings.interval_seconds,
        backoff_interval=settings.retry_interval_seconds,
        stop_event=stop_event,
    )
    scheduler.run_forever()
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
