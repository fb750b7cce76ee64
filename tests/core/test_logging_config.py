"""Tests for package logging setup."""

from __future__ import annotations

import logging

import pytest

from webform_eloqua.core.config import Settings
from webform_eloqua.core.logging_config import PACKAGE_LOGGER, configure_logging


class TestConfigureLogging:
    """Tests for configure_logging()."""

    @pytest.mark.parametrize(
        ("log_level", "expected"),
        [("DEBUG", logging.DEBUG), ("info", logging.INFO), ("Error", logging.ERROR)],
    )
    def test_sets_package_level(self, log_level: str, expected: int) -> None:
        package_logger = configure_logging(Settings(_env_file=None, log_level=log_level))

        assert package_logger is logging.getLogger(PACKAGE_LOGGER)
        assert package_logger.level == expected

    def test_child_loggers_inherit_level(self) -> None:
        configure_logging(Settings(_env_file=None, log_level="ERROR"))

        catalog_logger = logging.getLogger("webform_eloqua.handler.catalog")
        assert not catalog_logger.isEnabledFor(logging.WARNING)
        assert catalog_logger.isEnabledFor(logging.ERROR)

    def test_no_handlers_attached(self) -> None:
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        before = list(package_logger.handlers)

        configure_logging(Settings(_env_file=None, log_level="DEBUG"))

        assert package_logger.handlers == before

    def test_root_logger_untouched(self) -> None:
        root_level = logging.getLogger().level

        configure_logging(Settings(_env_file=None, log_level="DEBUG"))

        assert logging.getLogger().level == root_level
