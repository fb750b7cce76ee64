"""Application configuration using Pydantic Settings v2.

Loads configuration from environment variables with .env file support.
All settings are validated at startup and available as typed attributes.
"""

from __future__ import annotations

import functools
import logging

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Webform Eloqua handler settings.

    Configuration is loaded from environment variables.
    A .env file in the project root is also read if present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────
    log_level: str = "INFO"  # Applied to the webform_eloqua loggers by create_handler

    # ── Eloqua REST API ──────────────────────────────────────────
    eloqua_base_url: str = ""
    eloqua_site_name: str = ""
    eloqua_username: str = ""
    eloqua_password: SecretStr = SecretStr("")
    eloqua_access_token: SecretStr = SecretStr("")  # Wins over Basic auth
    eloqua_timeout_seconds: float = 30.0
    eloqua_read_retries: int = 2  # GETs only, form data posts are never retried
    eloqua_forms_page_size: int = 100

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the level name and reject unknown levels."""
        level = str(v).strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("eloqua_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@functools.lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""
    return Settings()
