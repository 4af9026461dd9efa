"""Logging configuration setup."""

import copy
import logging
import logging.config
import os
from typing import TYPE_CHECKING, Optional, Tuple

from middleman.constants import DEFAULT_LOG_LEVEL, LOG_DATEFMT, LOG_FORMAT, LOG_LEVELS, PACKAGE_NAME

if TYPE_CHECKING:
    from middleman.config.schema import LoggingSettings

logger = logging.getLogger(__name__)

BASE_LOG_CFG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": LOG_FORMAT,
            "datefmt": LOG_DATEFMT,
        },
    },
    "handlers": {
        "console_handler": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "simple",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        PACKAGE_NAME: {
            "handlers": ["console_handler"],
            "propagate": False,
            "level": DEFAULT_LOG_LEVEL,
        },
        f"{PACKAGE_NAME}.dispatch": {
            "handlers": [],
            "propagate": True,
            "level": DEFAULT_LOG_LEVEL,
        },
        f"{PACKAGE_NAME}.resolver": {
            "handlers": [],
            "propagate": True,
            "level": DEFAULT_LOG_LEVEL,
        },
        f"{PACKAGE_NAME}.config": {
            "handlers": [],
            "propagate": True,
            "level": DEFAULT_LOG_LEVEL,
        },
    },
}


def setup_logging(log_lvl_str: str = DEFAULT_LOG_LEVEL, log_file: Optional[str] = None) -> Tuple[Optional[str], str]:
    """
    Set up logging for the middleman package.

    Sub-package loggers propagate to the ``middleman`` logger, which
    writes to stderr or, when *log_file* is given, to that file.

    Args:
        log_lvl_str: The desired log level string (e.g., 'debug', 'info').
            Invalid values fall back to ``INFO``.
        log_file: Optional path of a log file (parent directories are created).

    Returns:
        A tuple of (log_file_path_or_None, validated_log_level).
    """
    log_lvl_valid = str(log_lvl_str).upper()
    invalid = log_lvl_valid not in LOG_LEVELS
    if invalid:
        log_lvl_valid = DEFAULT_LOG_LEVEL

    log_cfg: dict = copy.deepcopy(BASE_LOG_CFG)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        log_cfg["handlers"] = {
            "file_handler": {
                "class": "logging.FileHandler",
                "level": "DEBUG",
                "formatter": "simple",
                "filename": log_file,
                "encoding": "utf-8",
            },
        }
        log_cfg["loggers"][PACKAGE_NAME]["handlers"] = ["file_handler"]

    for name in log_cfg["loggers"]:
        log_cfg["loggers"][name]["level"] = log_lvl_valid

    logging.config.dictConfig(log_cfg)

    if invalid:
        logger.warning("Invalid log level '%s'. Using '%s'.", log_lvl_str, log_lvl_valid)
    logger.debug("Logging initialized. Level: %s, log file: %s", log_lvl_valid, log_file or "<stderr>")

    return log_file, log_lvl_valid


def setup_logging_from_settings(settings: "LoggingSettings") -> Tuple[Optional[str], str]:
    """Apply a :class:`~middleman.config.schema.LoggingSettings` model."""
    return setup_logging(settings.level, settings.file)
