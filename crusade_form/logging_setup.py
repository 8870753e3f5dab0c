"""Central logging configuration for the report app.

Attaches a single stdout handler to the root logger so every module logger,
page modules included, emits INFO-level records.  Streamlit reruns the entry
script on each interaction, so configuration is skipped once handlers exist.
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
}


def configure_logging() -> None:
    """Configure application-wide logging once per process."""

    if logging.getLogger().handlers:
        return
    dictConfig(_DICT_CONFIG)
