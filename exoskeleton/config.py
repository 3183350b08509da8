"""Process-wide configuration for the ledger and its API.

The first accessor call loads config/config.yaml; tests and embedding
code install their own AppConfig with use_config(). Ledger construction
(IdentityLedger.from_config) and the API runner (run_api) read from here
when they are not handed a config explicitly.

Usage:
    from exoskeleton.config import get, get_validated_config, load_config

    load_config("deploy/ledger.yaml")
    cap = get("minting.max_per_account")
    config = get_validated_config()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from .config_schema import AppConfig, load_validated_config


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH: Path = Path(__file__).parent.parent / "config" / "config.yaml"

_active: AppConfig | None = None


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Validate a YAML file and make it the active configuration.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        pydantic.ValidationError: If the file is invalid.
    """
    global _active
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    _active = load_validated_config(path)
    logger.debug("Configuration loaded from %s", path)
    return _active


def use_config(config: AppConfig) -> None:
    """Install an already-built configuration."""
    global _active
    _active = config


def get_validated_config() -> AppConfig:
    """The active configuration, loading the default file on first use."""
    if _active is None:
        return load_config()
    return _active


def get(key: str, default: Any = None) -> Any:
    """Look up a value by dot path, e.g. ``get("render.ring_period")``."""
    value: Any = get_validated_config()
    for part in key.split("."):
        if not isinstance(value, BaseModel) or part not in type(value).model_fields:
            return default
        value = getattr(value, part)
    return value


def reset_config() -> None:
    """Forget the active configuration (used by tests)."""
    global _active
    _active = None
