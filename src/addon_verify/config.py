"""Verifier configuration management.

Handles configuration stored in ~/.addon-verify/config.yaml.
Supports environment variable overrides and CLI flag precedence.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .cluster.resources import TKG_NAMESPACE
from .errors import ConfigError
from .shared.logging import get_logger
from .shared.paths import CONFIG_FILE

logger = get_logger(__name__)

# Default values
DEFAULT_READY_TIMEOUT = 20 * 60.0
DEFAULT_GET_RESOURCE_TIMEOUT = 60.0
DEFAULT_POLL_INTERVAL = 30.0
DEFAULT_CONCURRENCY = 1

# Packages skipped because of known install issues
DEFAULT_EXCLUDED_PACKAGES = ["tkg-storageclass"]

# Environment variable mappings
ENV_VARS = {
    "namespace": "ADDON_VERIFY_NAMESPACE",
    "ready_timeout": "ADDON_VERIFY_READY_TIMEOUT",
    "get_resource_timeout": "ADDON_VERIFY_GET_RESOURCE_TIMEOUT",
    "poll_interval": "ADDON_VERIFY_POLL_INTERVAL",
    "excluded_packages": "ADDON_VERIFY_EXCLUDED_PACKAGES",
    "concurrency": "ADDON_VERIFY_CONCURRENCY",
    "mismatch_grace": "ADDON_VERIFY_MISMATCH_GRACE",
    "fail_on_reconcile_failure": "ADDON_VERIFY_FAIL_ON_RECONCILE_FAILURE",
    "strict_references": "ADDON_VERIFY_STRICT_REFERENCES",
}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    raise ValueError(f"not a list: {value!r}")


def _parse_optional_float(value: Any) -> float | None:
    if value is None or (isinstance(value, str) and value.strip().lower() in ("", "none")):
        return None
    return float(value)


PARSERS: dict[str, Callable[[Any], Any]] = {
    "namespace": str,
    "ready_timeout": float,
    "get_resource_timeout": float,
    "poll_interval": float,
    "excluded_packages": _parse_list,
    "concurrency": int,
    "mismatch_grace": _parse_optional_float,
    "fail_on_reconcile_failure": _parse_bool,
    "strict_references": _parse_bool,
}


@dataclass
class VerifierConfig:
    """Verifier configuration. Durations are in seconds."""

    namespace: str = TKG_NAMESPACE
    ready_timeout: float = DEFAULT_READY_TIMEOUT
    get_resource_timeout: float = DEFAULT_GET_RESOURCE_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    excluded_packages: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_PACKAGES))
    concurrency: int = DEFAULT_CONCURRENCY
    # None keeps polling through a mismatch until ready_timeout
    mismatch_grace: float | None = None
    fail_on_reconcile_failure: bool = False
    strict_references: bool = True

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigError: If any value is out of range.
        """
        for key in ("ready_timeout", "get_resource_timeout", "poll_interval"):
            if getattr(self, key) <= 0:
                raise ConfigError(message=f"{key} must be positive", data={"key": key})
        if self.concurrency < 1:
            raise ConfigError(message="concurrency must be at least 1", data={"key": "concurrency"})
        if self.mismatch_grace is not None and self.mismatch_grace < 0:
            raise ConfigError(message="mismatch_grace must not be negative", data={"key": "mismatch_grace"})
        if not self.namespace:
            raise ConfigError(message="namespace must not be empty", data={"key": "namespace"})

    def to_dict(self) -> dict[str, Any]:
        """Public values as a plain dict."""
        return {f.name: getattr(self, f.name) for f in fields(self) if not f.name.startswith("_")}

    def with_overrides(self, **overrides: Any) -> VerifierConfig:
        """Apply CLI flag overrides, skipping values that were not given.

        Returns:
            New validated VerifierConfig.
        """
        values = self.to_dict()
        sources = dict(self._sources)
        for key, value in overrides.items():
            if key not in PARSERS:
                raise ConfigError(message=f"Unknown config key: {key}", data={"key": key})
            if value is None:
                continue
            values[key] = value
            sources[key] = "command line"
        config = VerifierConfig(**values)
        config._sources = sources
        config.validate()
        return config


def get_config_path() -> Path:
    """Get the config file path.

    Returns:
        Path to ~/.addon-verify/config.yaml
    """
    return CONFIG_FILE


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(message=f"Cannot read config file {path}: {e}", data={"path": str(path)})
    if not isinstance(data, dict):
        raise ConfigError(message=f"Config file {path} must contain a mapping", data={"path": str(path)})
    return data


def load_config(path: str | Path | None = None) -> VerifierConfig:
    """Load verifier configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (explicit path, else ~/.addon-verify/config.yaml)
    3. Defaults

    Args:
        path: Explicit config file; must exist when given.

    Returns:
        VerifierConfig with values and sources

    Raises:
        ConfigError: If the config file is unreadable or holds bad values.
    """
    config = VerifierConfig()
    sources: dict[str, str] = {key: "default" for key in PARSERS}

    config_path = Path(path) if path else get_config_path()
    if path and not config_path.exists():
        raise ConfigError(message=f"Config file not found: {config_path}", data={"path": str(config_path)})

    if config_path.exists():
        file_config = _read_config_file(config_path)
        for key, raw in file_config.items():
            parser = PARSERS.get(key)
            if parser is None:
                raise ConfigError(message=f"Unknown config key: {key}", data={"path": str(config_path)})
            try:
                setattr(config, key, parser(raw))
            except (TypeError, ValueError) as e:
                raise ConfigError(message=f"Invalid value for {key}: {e}", data={"key": key})
            sources[key] = "config file"

    # Override with environment variables
    for key, env_var in ENV_VARS.items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        try:
            setattr(config, key, PARSERS[key](raw))
            sources[key] = "environment"
        except (TypeError, ValueError):
            logger.warning("invalid_env_value", variable=env_var, value=raw)

    config._sources = sources
    config.validate()
    return config
