"""Tests for application settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from webform_eloqua.core.config import Settings, get_settings


class TestSettings:
    """Tests for Settings defaults and environment loading."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ELOQUA_BASE_URL", raising=False)
        settings = Settings(_env_file=None)
        assert settings.log_level == "INFO"
        assert settings.eloqua_base_url == ""
        assert settings.eloqua_timeout_seconds == 30.0
        assert settings.eloqua_read_retries == 2
        assert settings.eloqua_access_token.get_secret_value() == ""

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ELOQUA_BASE_URL", "https://secure.p01.eloqua.com/")
        monkeypatch.setenv("ELOQUA_SITE_NAME", "Acme")
        monkeypatch.setenv("ELOQUA_PASSWORD", "s3cret")
        settings = Settings(_env_file=None)
        # Trailing slash stripped
        assert settings.eloqua_base_url == "https://secure.p01.eloqua.com"
        assert settings.eloqua_site_name == "Acme"
        assert settings.eloqua_password.get_secret_value() == "s3cret"

    def test_password_not_shown_in_repr(self) -> None:
        settings = Settings(_env_file=None, eloqua_password="s3cret")
        assert "s3cret" not in repr(settings)

    def test_log_level_is_upper_cased(self) -> None:
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown log level"):
            Settings(_env_file=None, log_level="chatty")

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
