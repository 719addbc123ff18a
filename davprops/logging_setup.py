"""Central logging configuration for test runs.

Applies a root stdout handler so all module loggers emit INFO-level logs
without requiring per-module setup. Keeps httpx request logs at WARNING so
the WebDAV helper's own request lines are not duplicated, and avoids
duplicate handlers when behave and pytest both configure logging.
"""
from __future__ import annotations
import logging
from logging.config import dictConfig

_DICT_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        }
    },
    "root": {"level": "INFO", "handlers": ["console"]},
    "loggers": {
        "davprops": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "httpx": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        "httpcore": {"level": "WARNING", "handlers": ["console"], "propagate": False},
    },
}

def configure_logging(level: str = "INFO") -> None:
    """Configure run-wide logging once.

    If the root logger already has handlers, return to prevent duplicate output
    (behave's log capture installs its own).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    config = dict(_DICT_CONFIG)
    config["loggers"] = dict(_DICT_CONFIG["loggers"])
    config["loggers"]["davprops"] = {"level": level.upper(), "handlers": ["console"], "propagate": False}
    dictConfig(config)
