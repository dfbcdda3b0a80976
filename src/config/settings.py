# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for provider credentials, cache policy and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Provider hard limit on participants per availability request.
PROVIDER_MAX_BATCH_SIZE = 10


class ConfigurationError(Exception):
    """Raised when configuration is missing or internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Provider ===
    provider_api_token: SecretStr = SecretStr("")
    provider_base_url: str = "https://api-au.cronofy.com"
    provider_timeout_seconds: float = 25.0
    provider_batch_size: int = 5
    provider_max_results: int = 512

    # === Cache ===
    cache_backend: Literal["memory"] = "memory"
    cache_ttl_seconds: float = 3600.0
    cache_sweep_interval_seconds: float = 0.0
    cache_key_scope: Literal["bucket", "query"] = "bucket"
    cache_coverage_policy: Literal["asked", "appeared"] = "asked"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("provider_base_url")
    @classmethod
    def strip_base_url(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator(
        "provider_timeout_seconds",
        "provider_batch_size",
        "provider_max_results",
        "cache_ttl_seconds",
    )
    @classmethod
    def validate_positive(cls, v: float, info) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("cache_sweep_interval_seconds")
    @classmethod
    def validate_sweep_interval(cls, v: float) -> float:
        if v < 0:
            raise ValueError("cache_sweep_interval_seconds must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.provider_batch_size > PROVIDER_MAX_BATCH_SIZE:
            errors.append(
                f"PROVIDER_BATCH_SIZE must be <= {PROVIDER_MAX_BATCH_SIZE}"
            )

        if self.cache_sweep_interval_seconds > self.cache_ttl_seconds:
            errors.append(
                "CACHE_SWEEP_INTERVAL_SECONDS must be <= CACHE_TTL_SECONDS"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def has_provider_token(self) -> bool:
        return bool(self.provider_api_token.get_secret_value().strip())

    def require_provider_token(self) -> str:
        """Return the provider bearer token.

        Raises:
            ConfigurationError: If PROVIDER_API_TOKEN is not set.
        """
        token = self.provider_api_token.get_secret_value().strip()
        if not token:
            raise ConfigurationError(
                "PROVIDER_API_TOKEN is not configured. Add it to .env."
            )
        return token


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-process config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
