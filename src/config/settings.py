# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for client, transport, cache backend and logging
settings. Values are read from the environment (case-insensitive) or from a
``.env`` file in the working directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Client ===
    # Scope of every fingerprint created by the default client.
    client_name: str = "default"

    # === Transport ===
    api_base_url: str = ""
    api_timeout_s: float = 30.0
    api_default_headers: str = ""
    retry_enabled: bool = True

    # === Cache ===
    cache_backend: Literal["memory", "sqlite"] = "memory"
    cache_root: Path = Path("~/.querycache/cache")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: str = ""
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("client_name")
    @classmethod
    def validate_client_name(cls, v: str) -> str:  # noqa: N805
        return v.strip()

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not self.client_name:
            errors.append("CLIENT_NAME must not be empty")

        if self.api_timeout_s <= 0:
            errors.append("API_TIMEOUT_S must be > 0")

        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        for raw in self.api_default_headers_list:
            if ":" not in raw:
                errors.append(f"API_DEFAULT_HEADERS entry {raw!r} is not 'Name:Value'")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def api_default_headers_list(self) -> list[str]:
        """Parse comma-separated default headers."""
        return [h.strip() for h in self.api_default_headers.split(",") if h.strip()]

    @property
    def api_default_headers_dict(self) -> dict[str, str]:
        """Default headers as a name -> value mapping."""
        headers: dict[str, str] = {}
        for raw in self.api_default_headers_list:
            name, _, value = raw.partition(":")
            headers[name.strip()] = value.strip()
        return headers


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-client config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
