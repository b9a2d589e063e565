# src/docgate/core/config.py
"""Configuration schema and loading for docgate.

Example YAML:
    rate_limit:
      window_seconds: 60
      permits: 30
    registry:
      endpoint: https://markirovka.crpt.ru/api/v3/true-api/lk/documents/create
      auth_token: ${CRPT_TOKEN}
      product_group: shoes
    logging:
      level: INFO
      json_output: true
"""

from __future__ import annotations

import logging
import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from docgate.contracts.enums import DocumentFormat
from docgate.core.rate_limit.limiter import window_to_nanos

DEFAULT_ENDPOINT = "https://markirovka.crpt.ru/api/v3/true-api/lk/documents/create"


class RateLimitSettings(BaseModel):
    """Token bucket configuration: ``permits`` submissions per ``window_seconds``."""

    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = Field(default=True, description="Enable rate limiting for submissions")
    window_seconds: float = Field(default=1.0, gt=0, description="Replenishment window in seconds")
    permits: int = Field(default=1, gt=0, description="Bucket capacity and submissions per window")

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.window_seconds)

    @model_validator(mode="after")
    def validate_token_interval(self) -> RateLimitSettings:
        # Mirrors TokenBucket: every permit needs a non-zero nanosecond interval
        if self.enabled and window_to_nanos(self.window) // self.permits <= 0:
            raise ValueError(
                f"window_seconds={self.window_seconds:g} is too short for {self.permits} permits "
                "(each permit needs at least 1ns; windows are truncated to whole microseconds)"
            )
        return self


class RegistrySettings(BaseModel):
    """Remote registry endpoint and envelope fields."""

    model_config = {"frozen": True, "extra": "forbid"}

    endpoint: str = Field(default=DEFAULT_ENDPOINT, description="Document create URL")
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP request timeout")
    auth_token: str | None = Field(default=None, description="Bearer token sent as Authorization header")
    document_format: DocumentFormat = Field(default=DocumentFormat.MANUAL)
    document_type: str = Field(default="SETS_AGGREGATION", min_length=1, description="Envelope 'type' field")
    product_group: str = Field(description="Envelope 'product_group' field")
    allow_insecure: bool = Field(default=False, description="Permit http:// endpoints (local mocks only)")

    @field_validator("product_group")
    @classmethod
    def validate_product_group(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("product_group must not be blank")
        return v.strip()

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint_scheme(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"endpoint must be an http(s) URL, got {v!r}")
        return v


class LoggingSettings(BaseModel):
    """Log output configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: str = Field(default="INFO")
    json_output: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        normalized = v.upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v!r}")
        return normalized


class DocgateSettings(BaseModel):
    """Top-level docgate configuration."""

    model_config = {"frozen": True}

    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    registry: RegistrySettings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Regex pattern for ${VAR} or ${VAR:-default} syntax
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values.

    Raises:
        ValueError: If a referenced environment variable is unset and has no default.
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value
        if default is not None:
            return default
        raise ValueError(f"Required environment variable '{var_name}' is not set")

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _ENV_VAR_PATTERN.sub(replacer, value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lowercase_keys(value: Any) -> Any:
    """Lowercase dict keys recursively (Dynaconf uppercases env-sourced keys)."""
    if isinstance(value, dict):
        return {str(k).lower(): _lowercase_keys(v) for k, v in value.items()}
    return value


def load_settings(config_path: Path) -> DocgateSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (DOCGATE_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: DOCGATE_RATE_LIMIT__PERMITS for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated DocgateSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
        ValueError: If a ${VAR} reference cannot be resolved
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="DOCGATE",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _lowercase_keys(raw_config)

    raw_config = _expand_env_vars(raw_config)

    return DocgateSettings(**raw_config)
