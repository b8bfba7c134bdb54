"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

The Config model is defined in src/core/config.py to avoid
information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from src.core.config import Config, ConfigError, validate_config


logger = logging.getLogger(__name__)


# Environment variable -> config field
ENV_OVERRIDES: dict[str, str] = {
    "FEED_URL": "feed_url",
    "REFRESH_INTERVAL_SECONDS": "refresh_interval_seconds",
    "BROADCAST_INTERVAL_SECONDS": "broadcast_interval_seconds",
    "FETCH_TIMEOUT_SECONDS": "fetch_timeout_seconds",
    "SUBSCRIBER_QUEUE_SIZE": "subscriber_queue_size",
    "STALE_AFTER_SECONDS": "stale_after_seconds",
}


def _resolve_value(value: Any) -> Any:
    """Resolve a ${VAR} placeholder from the environment.

    Non-string values and plain strings are returned unchanged. An unset
    variable leaves the placeholder in place.
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = os.environ.get(var_name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", var_name)

    return value


def _parse_origins(value: Any) -> list[str]:
    """Parse CORS origins from a list or a comma-separated string."""
    if value is None:
        return ["*"]
    if isinstance(value, str):
        return [o.strip() for o in value.split(",") if o.strip()]
    return [str(_resolve_value(o)).strip() for o in value]


def _check(config: Config) -> Config:
    """Validate a config, logging warnings and raising on errors."""
    result = validate_config(config)

    for warning in result.warnings:
        logger.warning("Config warning in %s: %s", warning.field, warning.message)

    if not result.valid:
        details = "; ".join(
            f"{e.field}: {e.message}" for e in result.critical_errors
        )
        raise ConfigError(f"Invalid configuration: {details}")

    return config


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed and validated Config object

    Raises:
        ConfigError: If a value cannot be parsed or fails validation
    """
    defaults = Config()

    try:
        stale_after = _resolve_value(data.get("stale_after_seconds"))
        config = Config(
            feed_url=str(_resolve_value(data.get("feed_url", defaults.feed_url))),
            refresh_interval_seconds=float(_resolve_value(data.get(
                "refresh_interval_seconds", defaults.refresh_interval_seconds,
            ))),
            broadcast_interval_seconds=float(_resolve_value(data.get(
                "broadcast_interval_seconds", defaults.broadcast_interval_seconds,
            ))),
            fetch_timeout_seconds=float(_resolve_value(data.get(
                "fetch_timeout_seconds", defaults.fetch_timeout_seconds,
            ))),
            subscriber_queue_size=int(_resolve_value(data.get(
                "subscriber_queue_size", defaults.subscriber_queue_size,
            ))),
            stale_after_seconds=float(stale_after) if stale_after is not None else None,
            cors_allowed_origins=_parse_origins(data.get("cors_allowed_origins")),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}") from e

    return _check(config)


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        ConfigError: If the config fails validation
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: refresh every %.0fs, broadcast every %.0fs, feed %s",
        config.refresh_interval_seconds,
        config.broadcast_interval_seconds,
        config.feed_url,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for container deployments without a YAML file. Unset variables
    keep their defaults.

    Environment variables:
        FEED_URL: GeoJSON summary feed to poll
        REFRESH_INTERVAL_SECONDS: Seconds between feed fetches
        BROADCAST_INTERVAL_SECONDS: Seconds between stream events
        FETCH_TIMEOUT_SECONDS: Per-request timeout
        SUBSCRIBER_QUEUE_SIZE: Pending events allowed per subscriber
        STALE_AFTER_SECONDS: Age at which health reports the snapshot stale
        CORS_ALLOWED_ORIGINS: Comma-separated allowed origins

    Returns:
        Config object from environment
    """
    data: dict[str, Any] = {}

    for var_name, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(var_name)
        if value:
            data[field_name] = value

    origins = os.environ.get("CORS_ALLOWED_ORIGINS")
    if origins:
        data["cors_allowed_origins"] = origins

    return load_config_from_dict(data)
