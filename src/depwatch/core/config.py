"""
Configuration - Startup settings for the dependency watcher.

The config file is a JSON object with the keys ``apikey``, ``interval`` and
``target``. It is parsed with YAML's safe loader, so a YAML document with the
same keys works too.

Path resolution order:
1. Explicit path (CLI ``--config``)
2. ``DEPWATCH_CONFIG`` environment variable
3. ``/var/run/secrets/.config`` when running under Docker (``DOCKER`` set)
4. ``.config`` in the working directory
"""

import os
from pathlib import Path
from typing import Optional, Union

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator


DEFAULT_CONFIG_PATH = ".config"
DOCKER_CONFIG_PATH = "/var/run/secrets/.config"

logger = structlog.get_logger(__name__)


class ConfigError(Exception):
    """Raised when startup configuration is missing or invalid"""
    pass


class WatchConfig(BaseModel):
    """Validated watcher configuration"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    api_key: SecretStr = Field(alias="apikey")
    interval: str
    target: str
    exit_on_failure: bool = False
    minute: int = Field(default=52, ge=0, le=59)

    @field_validator("api_key")
    @classmethod
    def _api_key_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("apikey not set")
        return value

    @field_validator("target")
    @classmethod
    def _target_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("target not set")
        return value

    @field_validator("interval", mode="before")
    @classmethod
    def _interval_is_hours(cls, value) -> str:
        # Accept both "6" and 6; bool is an int subclass and is rejected
        if isinstance(value, bool) or value is None:
            raise ValueError("interval not set")
        text = str(value).strip()
        if not text:
            raise ValueError("interval not set")
        if not (text.isascii() and text.isdigit()):
            raise ValueError(f"interval must be a non-negative integer, got {text!r}")
        return text

    @property
    def lookback_hours(self) -> int:
        """Lookback window (and schedule step) in hours"""
        return int(self.interval)


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Pick the config file location (see module docstring for order)"""
    if path:
        return Path(path)

    env_path = os.environ.get("DEPWATCH_CONFIG")
    if env_path:
        return Path(env_path)

    if os.environ.get("DOCKER"):
        return Path(DOCKER_CONFIG_PATH)

    return Path(DEFAULT_CONFIG_PATH)


def load_config(path: Optional[Union[str, Path]] = None) -> WatchConfig:
    """
    Read and validate the watcher configuration.

    Args:
        path: Config file path (resolved with resolve_config_path if None)

    Returns:
        Validated WatchConfig

    Raises:
        ConfigError: If the file cannot be read, parsed or validated
    """
    config_path = resolve_config_path(path)

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"reading config {config_path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"parsing config {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config {config_path} must be a mapping, got {type(data).__name__}")

    try:
        config = WatchConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"invalid config {config_path}: {problems}") from e

    logger.info(
        "config_loaded",
        path=str(config_path),
        target=config.target,
        interval_hours=config.lookback_hours,
    )
    return config
