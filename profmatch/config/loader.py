"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. ``config/config.yaml`` - selectors and generation defaults, checked in
  2. ``.env`` file           - local developer overrides (not committed)
  3. Environment variables   - set at deploy time

:func:`load_config` reads the YAML first, deep-merges the env-derived
values on top and validates the result into an :class:`AppConfig`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from profmatch.config.app_config import AppConfig
from profmatch.config.settings import Settings
from profmatch.utils.errors import ConfigurationError


def load_config(path: str | None = None, settings: Settings | None = None) -> AppConfig:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: YAML file; defaults to ``settings.config_path``.  A missing
            file is not an error, the built-in defaults apply.
        settings: Pre-built settings (tests pass their own).

    Returns:
        The validated, frozen application configuration.

    Raises:
        ConfigurationError: If the YAML is malformed or a value is invalid.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.config_path)

    yaml_config: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Cannot parse {config_path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

    # Only values actually provided via env/.env override the YAML file.
    explicit = settings.model_fields_set
    env_overrides: dict[str, Any] = {}
    if "rag_top_k" in explicit:
        env_overrides["top_k"] = settings.rag_top_k
    if "index_namespace" in explicit:
        env_overrides["namespace"] = settings.index_namespace
    timeouts = {
        name: getattr(settings, f"{name}_timeout")
        for name in ("fetch", "embed", "index", "generation")
        if f"{name}_timeout" in explicit
    }
    if timeouts:
        env_overrides["timeouts"] = timeouts
    if settings.embedding_dimension > 0:
        env_overrides["embedding_dimension"] = settings.embedding_dimension

    _deep_merge(yaml_config, env_overrides)

    try:
        return AppConfig.model_validate(yaml_config)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
