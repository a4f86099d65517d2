"""Logging setup for the drivemon CLI.

Replays print their results on stdout, so the console handler only carries
warnings and errors from the ``drivemon`` loggers unless ``--verbose`` is
given. Per-sample detail from the analysis engine goes to a rotating file
under ``~/.drivemon/logs``.

The ``[logging]`` table in ``config.toml`` controls the file handler::

    [logging]
    enabled = true
    level = "DEBUG"
    max_size_mb = 10
    backup_count = 5

    [logging.loggers]
    "drivemon.analysis.movement" = "DEBUG"
"""

import logging
import logging.config
import os
import sys

from pathlib import Path
from typing import Any

from drivemon.constants import (
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_FILE,
)

# The movement classifier logs every sample; keep it out of the file by default
ANALYSIS_LOGGER_LEVELS = {
    "drivemon.analysis": "DEBUG",
    "drivemon.analysis.movement": "INFO",
    "drivemon.analysis.enrichment": "INFO",
}

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
VERBOSE_CONSOLE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_logging_configured = False


def get_log_path() -> Path:
    """Path to the active log file, creating the log directory if needed."""
    os.makedirs(DEFAULT_LOG_DIR, mode=0o700, exist_ok=True)
    return DEFAULT_LOG_DIR / DEFAULT_LOG_FILE


def _get_user_logging_config() -> dict[str, Any]:
    from drivemon.config import load_config

    logging_config = load_config().get("logging", {})
    if isinstance(logging_config, dict):
        return logging_config
    return {}


def _logger_levels(user_config: dict[str, Any], verbose: bool) -> dict[str, str]:
    """
    Resolve per-logger levels for the ``drivemon`` tree.

    User overrides from ``[logging.loggers]`` win over the analysis defaults.
    With ``verbose`` every analysis logger is opened up to DEBUG.
    """
    levels = dict(ANALYSIS_LOGGER_LEVELS)
    if verbose:
        levels = {name: "DEBUG" for name in levels}

    overrides = user_config.get("loggers", {})
    if isinstance(overrides, dict):
        for name, level in overrides.items():
            if name.startswith("drivemon"):
                levels[name] = str(level).upper()
    return levels


def _build_logging_config(verbose: bool = False) -> dict[str, Any]:
    """
    Build the dictConfig configuration dictionary.

    Args:
        verbose: Show DEBUG output from drivemon on the console

    Returns:
        Dictionary suitable for logging.config.dictConfig()
    """
    user_config = _get_user_logging_config()
    file_enabled = user_config.get("enabled", True)

    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if verbose else "WARNING",
            "formatter": "verbose_console" if verbose else "console",
            "stream": "ext://sys.stderr",
        },
    }
    drivemon_handlers = ["console"]

    if file_enabled:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": str(user_config.get("level", "DEBUG")).upper(),
            "formatter": "file",
            "filename": str(get_log_path()),
            "maxBytes": user_config.get("max_size_mb", 10) * 1024 * 1024,
            "backupCount": user_config.get("backup_count", DEFAULT_LOG_BACKUP_COUNT),
            "encoding": "utf-8",
        }
        drivemon_handlers.append("file")

    loggers: dict[str, Any] = {
        "drivemon": {
            "level": "DEBUG",
            "handlers": drivemon_handlers,
            "propagate": False,
        },
    }
    for name, level in _logger_levels(user_config, verbose).items():
        loggers[name] = {"level": level}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT},
            "verbose_console": {"format": VERBOSE_CONSOLE_FORMAT},
            "file": {"format": FILE_FORMAT},
        },
        "handlers": handlers,
        "loggers": loggers,
        "root": {"level": "WARNING", "handlers": ["console"]},
    }


def setup_logging(*, verbose: bool = False) -> None:
    """
    Configure logging once per process.

    A broken ``[logging]`` table or an unwritable log directory falls back to
    console-only logging with a warning on stderr.
    """
    global _logging_configured

    if _logging_configured:
        return

    try:
        logging.config.dictConfig(_build_logging_config(verbose=verbose))
    except (OSError, ValueError, TypeError) as e:
        sys.stderr.write(f"WARNING: Failed to configure logging: {e}\n")
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format=CONSOLE_FORMAT,
        )

    _logging_configured = True
