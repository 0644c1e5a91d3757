"""
Logging configuration.

The packaged `movermatch/config/logging.yaml` holds handlers and formatters; the level
comes from settings (`MOVERMATCH_LOG_LEVEL`) unless the CLI passes one explicitly.
"""

from __future__ import annotations

import copy
import logging.config

from movermatch.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> None:
    """Apply the packaged dictConfig with the effective log level."""
    config = copy.deepcopy(get_logging_config())
    effective = (level or get_settings().app.log_level).upper()

    config.setdefault("root", {})["level"] = effective
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict):
            handler["level"] = effective

    logging.config.dictConfig(config)
