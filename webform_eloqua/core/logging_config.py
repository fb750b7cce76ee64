"""Logging setup for the handler package.

The host owns handlers and formatting; only the level of the
``webform_eloqua`` logger tree is set here.
"""

from __future__ import annotations

import logging

from webform_eloqua.core.config import Settings

PACKAGE_LOGGER = "webform_eloqua"


def configure_logging(settings: Settings) -> logging.Logger:
    """Apply ``settings.log_level`` to the package logger and return it."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, settings.log_level))
    return package_logger
