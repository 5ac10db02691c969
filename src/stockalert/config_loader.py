"""Configuration loader with Pydantic validation and environment variable interpolation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables at module level
load_dotenv(find_dotenv(usecwd=True))

from stockalert.constants import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_QUOTE_URL_TEMPLATE,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_SERVER_HOST,
    DEFAULT_SERVER_PORT,
    DEFAULT_STATIC_DIR,
    Direction,
    LogLevel,
)

DEFAULT_CONFIG_PATH = "config/config.yaml"

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def interpolate_env_vars(value: Any) -> Any:
    """
    Interpolate environment variables in string values.

    Supports formats:
    - ${VAR_NAME} - replaced by the variable, or an empty string if unset
    - ${VAR_NAME:default} - optional with default value
    """
    if not isinstance(value, str):
        return value

    def replacer(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        return match.group(2) or ""

    return _ENV_PATTERN.sub(replacer, value)


def process_config_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively process config dict to interpolate env vars."""
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = process_config_dict(value)
        elif isinstance(value, list):
            result[key] = [
                process_config_dict(item) if isinstance(item, dict) else interpolate_env_vars(item)
                for item in value
            ]
        else:
            result[key] = interpolate_env_vars(value)
    return result


# ============================================
# Pydantic Configuration Models
# ============================================


class EnvironmentConfig(BaseModel):
    """Runtime settings."""

    log_level: LogLevel = LogLevel.INFO


class UpstreamConfig(BaseModel):
    """Where and how quotes are fetched."""

    url_template: str = DEFAULT_QUOTE_URL_TEMPLATE
    timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    user_agent: str = f"{APP_NAME}/{APP_VERSION}"

    @field_validator("url_template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        """The template must have a slot for the symbol."""
        if "{symbol}" not in v:
            raise ValueError(f"url_template must contain '{{symbol}}', got: {v}")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got: {v}")
        return v

    def build_url(self, quoted_symbol: str) -> str:
        """Fill the template with an already URL-encoded symbol."""
        return self.url_template.replace("{symbol}", quoted_symbol)


class AlertDefaultsConfig(BaseModel):
    """Defaults offered by the interactive prompts."""

    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    direction: Direction = Direction.ABOVE

    @field_validator("interval_seconds")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"interval_seconds must be positive, got: {v}")
        return v


class ServerConfig(BaseModel):
    """Relay server settings."""

    host: str = DEFAULT_SERVER_HOST
    port: int = DEFAULT_SERVER_PORT
    static_dir: str = DEFAULT_STATIC_DIR

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port must be 1-65535, got: {v}")
        return v


class AppConfig(BaseModel):
    """Root configuration model."""

    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    alert: AlertDefaultsConfig = Field(default_factory=AlertDefaultsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


# ============================================
# Configuration Loader
# ============================================


class ConfigLoader:
    """Load and validate configuration from YAML files with env var interpolation."""

    def __init__(self, config_path: str | Path) -> None:
        """
        Initialize config loader.

        Args:
            config_path: Path to the YAML configuration file.
        """
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """
        Load and validate configuration.

        Returns:
            Validated AppConfig instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            yaml.YAMLError: If YAML is invalid.
            pydantic.ValidationError: If config validation fails.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}

        processed_config = process_config_dict(raw_config)
        self._config = AppConfig.model_validate(processed_config)

        return self._config

    @property
    def config(self) -> AppConfig:
        """Get loaded config, loading if necessary."""
        if self._config is None:
            return self.load()
        return self._config

    def reload(self) -> AppConfig:
        """Force reload configuration from disk."""
        self._config = None
        return self.load()


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """
    Load configuration, falling back to defaults when no file is present.

    Args:
        config_path: Path to the YAML configuration file. ``None`` means the
            default location; an explicit path that doesn't exist is an error.

    Returns:
        Validated AppConfig instance.
    """
    if config_path is None:
        if not Path(DEFAULT_CONFIG_PATH).exists():
            return AppConfig()
        config_path = DEFAULT_CONFIG_PATH
    return ConfigLoader(config_path).load()


def load_config_with_overrides(
    config_path: str | Path | None = None,
    *,
    log_level: str | None = None,
    host: str | None = None,
    port: int | None = None,
) -> AppConfig:
    """
    Load configuration with CLI overrides.

    Args:
        config_path: Path to the YAML configuration file.
        log_level: Override logging level.
        host: Override relay server host.
        port: Override relay server port.

    Returns:
        Validated AppConfig instance with overrides applied.
    """
    config = load_config(config_path)

    updates: dict[str, Any] = {}

    if log_level is not None:
        updates["environment"] = config.environment.model_copy(
            update={"log_level": LogLevel(log_level.upper())}
        )

    server_updates: dict[str, Any] = {}
    if host is not None:
        server_updates["host"] = host
    if port is not None:
        server_updates["port"] = port
    if server_updates:
        updates["server"] = ServerConfig.model_validate(
            {**config.server.model_dump(), **server_updates}
        )

    if updates:
        return config.model_copy(update=updates)

    return config
