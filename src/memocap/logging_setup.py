"""Logging configuration: stderr plus an optional daily log file."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SEPARATOR = "=" * 80

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

package_logger = logging.getLogger("memocap")
_installed: list[logging.Handler] = []
_log_file: Optional[Path] = None


def configure_logging(
    level: str = "info",
    log_dir: Optional[Path] = None,
    console: bool = True,
) -> Optional[Path]:
    """
    Configure the memocap package logger.

    Replaces handlers installed by an earlier call. If the log directory
    cannot be used, console logging still works.

    Args:
        level: debug, info, warning or error (unknown values mean info)
        log_dir: Directory for app-YYYY-MM-DD.log; None disables file logging
        console: Also log to stderr

    Returns:
        Path of the active log file, or None
    """
    global _log_file

    for handler in _installed:
        package_logger.removeHandler(handler)
        handler.close()
    _installed.clear()
    _log_file = None

    package_logger.setLevel(_LEVELS.get(level.lower(), logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)
        _installed.append(console_handler)

    if log_dir is not None:
        date_str = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        log_path = Path(log_dir) / f"app-{date_str}.log"
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(log_path, "a", encoding="utf-8") as f:
                f.write(f"\n{SEPARATOR}\n[{datetime.now(timezone.utc).isoformat()}] Application Started\n{SEPARATOR}\n")
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
        except OSError as e:
            package_logger.error(f"Logger file initialization failed: {e}")
        else:
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)
            _installed.append(file_handler)
            _log_file = log_path
            package_logger.info(f"Logger initialized: {log_path}")

    return _log_file


def shutdown_logging() -> None:
    """Write the shutdown marker and close installed handlers."""
    global _log_file

    for handler in _installed:
        package_logger.removeHandler(handler)
        handler.close()
    _installed.clear()

    if _log_file is not None:
        try:
            with open(_log_file, "a", encoding="utf-8") as f:
                f.write(f"[{datetime.now(timezone.utc).isoformat()}] Application Shutdown\n{SEPARATOR}\n")
        except OSError as e:
            print(f"Failed to write shutdown log: {e}", file=sys.stderr)
        _log_file = None


def log_operation(operation: str, **details: Any) -> None:
    """Log a user action as one JSON object at INFO."""
    message = {
        "operation": operation,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **details,
    }
    package_logger.info(f"Operation: {json.dumps(message, default=str)}")
