"""Configuration management service with Pydantic Settings.

This module provides centralized configuration for the Discord alerts
client, loading and validating environment variables at startup.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from discord_alerts.alerter.limits import DISCORD_LIMITS


class WebhookSettings(BaseSettings):
    """Discord webhook destination settings."""

    model_config = SettingsConfigDict(env_prefix="ALERTS_")

    webhook_url: SecretStr | None = Field(
        default=None,
        alias="ALERTS_WEBHOOK_URL",
        description="Discord webhook URL for alerts",
    )
    label: str | None = Field(
        default=None,
        alias="ALERTS_LABEL",
        description="Label shown above every payload, e.g. the application name",
    )
    env: str | None = Field(
        default=None,
        alias="ALERTS_ENV",
        description="Environment shown next to the label",
    )
    disabled: bool = Field(
        default=False,
        alias="ALERTS_DISABLED",
        description="Log alerts instead of sending them",
    )

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: SecretStr | None) -> SecretStr | None:
        """Validate webhook URL format."""
        if v is None:
            return v
        if not v.get_secret_value().startswith(("http://", "https://")):
            raise ValueError("ALERTS_WEBHOOK_URL must be an HTTP(S) endpoint")
        return v

    @property
    def enabled(self) -> bool:
        """Check if alerts can be delivered."""
        return self.webhook_url is not None


class BatchingSettings(BaseSettings):
    """Alert sizing and batching settings."""

    model_config = SettingsConfigDict(env_prefix="ALERTS_")

    truncated_suffix: str = Field(
        default="...",
        alias="ALERTS_TRUNCATED_SUFFIX",
        description="Suffix appended to truncated alert parts",
    )
    batch_delay_ms: int = Field(
        default=10_000,
        alias="ALERTS_BATCH_DELAY_MS",
        description="Milliseconds to wait before sending a batch of alerts",
        gt=0,
    )
    flush_delay_ms: int = Field(
        default=5_000,
        alias="ALERTS_FLUSH_DELAY_MS",
        description="Milliseconds between batches while flushing",
        gt=0,
    )
    request_timeout: float = Field(
        default=10.0,
        alias="ALERTS_REQUEST_TIMEOUT",
        description="HTTP request timeout in seconds",
        gt=0,
    )

    @field_validator("truncated_suffix")
    @classmethod
    def validate_truncated_suffix(cls, v: str) -> str:
        """Reject suffixes that cannot fit the smallest truncated part."""
        if len(v) > DISCORD_LIMITS.title:
            raise ValueError(
                f"ALERTS_TRUNCATED_SUFFIX must be at most {DISCORD_LIMITS.title} characters"
            )
        return v


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files via python-dotenv.

    Example:
        ```python
        from discord_alerts.config import get_settings

        settings = get_settings()
        print(settings.webhook.enabled)
        print(settings.log_level)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Nested configuration groups
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    batching: BatchingSettings = Field(default_factory=BatchingSettings)

    # Application settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    def redacted_summary(self) -> dict[str, str]:
        """Get a summary of settings with secrets redacted.

        Returns:
            Dictionary of settings with sensitive values masked.
        """
        webhook_url = self.webhook.webhook_url
        return {
            "webhook_url": (
                self._redact_webhook_url(webhook_url.get_secret_value())
                if webhook_url
                else "(not set)"
            ),
            "label": self.webhook.label or "(not set)",
            "env": self.webhook.env or "(not set)",
            "disabled": str(self.webhook.disabled),
            "truncated_suffix": self.batching.truncated_suffix,
            "batch_delay_ms": str(self.batching.batch_delay_ms),
            "flush_delay_ms": str(self.batching.flush_delay_ms),
            "log_level": self.log_level,
        }

    @staticmethod
    def _redact_webhook_url(url: str) -> str:
        """Redact the token segment of a webhook URL."""
        base, sep, _token = url.rstrip("/").rpartition("/")
        if not sep or "://" not in base:
            return url
        return f"{base}/***"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Uses LRU cache to ensure settings are loaded only once and
    reused across the application.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
