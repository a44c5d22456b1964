"""
Logging setup for the presswatch CLI.

Console messages go to stderr so ``summary --json`` output stays parseable;
a rotating file under ``~/.presswatch/logs`` keeps the DEBUG trail of every
upload (dropped rows, shape detection, metric timings). The ``[logging]``
table of config.toml adjusts the file handler:

    [logging]
    file = true
    level = "INFO"
    max_size_mb = 10
    backup_count = 5
"""

import logging
import logging.config

from pathlib import Path
from typing import Any

from presswatch.config import load_config
from presswatch.constants import (
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_MAX_BYTES,
)

LOGGING_SECTION = "logging"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_logging_configured = False


def get_log_dir() -> Path:
    """Log directory, created on first use."""
    DEFAULT_LOG_DIR.mkdir(mode=0o700, parents=True, exist_ok=True)
    return DEFAULT_LOG_DIR


def get_log_path() -> Path:
    return get_log_dir() / DEFAULT_LOG_FILE


def build_logging_config(verbose: bool = False) -> dict[str, Any]:
    """
    Build the dictConfig dictionary for the ``presswatch`` logger tree.

    Args:
        verbose: Show DEBUG messages on the console instead of warnings only

    Returns:
        Dictionary suitable for logging.config.dictConfig()
    """
    settings = load_config().get(LOGGING_SECTION, {})
    if not isinstance(settings, dict):
        settings = {}

    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if verbose else "WARNING",
            "formatter": "console",
            "stream": "ext://sys.stderr",
        },
    }
    if settings.get("file", True):
        max_mb = settings.get("max_size_mb", DEFAULT_LOG_MAX_BYTES / (1024 * 1024))
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": str(settings.get("level", "DEBUG")).upper(),
            "formatter": "file",
            "filename": str(get_log_path()),
            "maxBytes": int(max_mb * 1024 * 1024),
            "backupCount": int(settings.get("backup_count", DEFAULT_LOG_BACKUP_COUNT)),
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT},
            "file": {"format": FILE_FORMAT},
        },
        "handlers": handlers,
        "loggers": {
            "presswatch": {
                "level": "DEBUG",
                "handlers": list(handlers),
                "propagate": False,
            },
        },
    }


def setup_logging(verbose: bool = False) -> None:
    """
    Configure presswatch logging; later calls are no-ops.

    An invalid ``[logging]`` table falls back to console-only logging with a
    warning rather than stopping the CLI.
    """
    global _logging_configured

    if _logging_configured:
        return

    try:
        logging.config.dictConfig(build_logging_config(verbose))
    except (ValueError, TypeError) as e:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING, format=CONSOLE_FORMAT
        )
        logging.getLogger(__name__).warning(f"Ignoring [logging] settings: {e}")

    _logging_configured = True
