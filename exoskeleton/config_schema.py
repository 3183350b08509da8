"""Pydantic schema for configuration validation.

All config values are validated at startup. Typos and invalid values
fail fast with clear error messages.

Usage:
    from exoskeleton.config_schema import load_validated_config, AppConfig
    config = load_validated_config("config/config.yaml")
    # config is now a validated AppConfig instance
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# BASE MODEL WITH STRICT VALIDATION
# =============================================================================

class StrictModel(BaseModel):
    """Base model that rejects unknown fields (catches typos)."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# PRICING MODEL
# =============================================================================

class PricingConfig(StrictModel):
    """Creation price schedule.

    Two fixed-price phases followed by a quadratic bonding curve:
    - ids 1..genesis_supply pay genesis_price
    - ids genesis_supply+1..growth_supply pay growth_price
    - beyond growth_supply: curve_base + (id - growth_supply)^2 * curve_scale
    """

    genesis_supply: int = Field(
        default=1000,
        gt=0,
        description="Last id of the genesis phase (also the privileged cohort size)"
    )
    growth_supply: int = Field(
        default=5000,
        gt=0,
        description="Last id of the growth phase"
    )
    genesis_price: int = Field(
        default=5_000_000_000_000_000,
        ge=0,
        description="Price per identity in the genesis phase (wei)"
    )
    growth_price: int = Field(
        default=20_000_000_000_000_000,
        ge=0,
        description="Price per identity in the growth phase (wei)"
    )
    curve_base: int = Field(
        default=50_000_000_000_000_000,
        ge=0,
        description="Bonding curve base price (wei)"
    )
    curve_scale: int = Field(
        default=1_000_000_000_000,
        ge=0,
        description="Bonding curve quadratic coefficient (wei)"
    )

    @model_validator(mode="after")
    def validate_monotonic(self) -> "PricingConfig":
        """Ensure the schedule never decreases across phase boundaries."""
        if self.growth_supply <= self.genesis_supply:
            raise ValueError(
                f"growth_supply ({self.growth_supply}) must be greater than "
                f"genesis_supply ({self.genesis_supply})"
            )
        if self.growth_price < self.genesis_price:
            raise ValueError("growth_price must be >= genesis_price")
        if self.curve_base < self.growth_price:
            raise ValueError("curve_base must be >= growth_price")
        return self


# =============================================================================
# MINTING MODEL
# =============================================================================

class MintingConfig(StrictModel):
    """Creation gate configuration."""

    max_per_account: int = Field(
        default=3,
        gt=0,
        description="Maximum identities an account may create through create()"
    )
    whitelist_only: bool = Field(
        default=True,
        description="Only whitelisted accounts may create"
    )
    paused: bool = Field(
        default=False,
        description="Start with creation paused"
    )


# =============================================================================
# IDENTITY MODEL
# =============================================================================

class IdentityConfig(StrictModel):
    """Size bounds for identity fields and per-identity data."""

    name_max_length: int = Field(default=32, gt=0, description="Maximum name length (UTF-8 bytes)")
    bio_max_length: int = Field(default=256, gt=0, description="Maximum bio length (UTF-8 bytes)")
    config_max_bytes: int = Field(default=64, ge=9, description="Maximum visual config size")
    custom_visual_max_length: int = Field(
        default=128,
        gt=0,
        description="Maximum custom visual key length"
    )
    storage_max_value_bytes: int = Field(
        default=1024,
        gt=0,
        description="Maximum size of a stored value"
    )
    message_max_payload_bytes: int = Field(
        default=1024,
        gt=0,
        description="Maximum size of a message payload"
    )


# =============================================================================
# MODULES MODEL
# =============================================================================

class ModulesConfig(StrictModel):
    """Module slot capacity per privilege tier."""

    privileged_capacity: int = Field(default=8, gt=0, description="Slots for genesis identities")
    standard_capacity: int = Field(default=5, gt=0, description="Slots for standard identities")

    @model_validator(mode="after")
    def validate_capacity(self) -> "ModulesConfig":
        """Privileged identities never get fewer slots than standard ones."""
        if self.privileged_capacity < self.standard_capacity:
            raise ValueError("privileged_capacity must be >= standard_capacity")
        return self


# =============================================================================
# REPUTATION MODEL
# =============================================================================

class ReputationConfig(StrictModel):
    """Reputation and activity scoring."""

    privileged_multiplier_pct: int = Field(
        default=150,
        ge=100,
        description="Percentage multiplier applied to genesis identities"
    )


# =============================================================================
# RENDER MODEL
# =============================================================================

class RenderConfig(StrictModel):
    """Image rendering configuration."""

    renderer: Literal["tiered", "static", "none"] = Field(
        default="tiered",
        description="Renderer installed at startup ('none' = built-in fallback only)"
    )
    ring_period: int = Field(
        default=43200,
        gt=0,
        description="Blocks of age per age ring"
    )
    description: str = Field(
        default="An onchain exoskeleton for AI agents.",
        description="Metadata description field"
    )


# =============================================================================
# ROYALTY MODEL
# =============================================================================

class RoyaltyConfig(StrictModel):
    """Secondary-sale royalty exposed as marketplace metadata."""

    bps: int = Field(default=420, ge=0, le=10000, description="Royalty in basis points")


# =============================================================================
# LOGGING MODEL
# =============================================================================

class LoggingConfig(StrictModel):
    """Logging configuration."""

    output_file: str | None = Field(
        default=None,
        description="JSONL file for ledger events (None = in-memory only)"
    )
    default_recent: int = Field(
        default=50,
        gt=0,
        description="Default number of recent events to return"
    )
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Diagnostic log level"
    )


# =============================================================================
# API MODEL
# =============================================================================

class ApiConfig(StrictModel):
    """Where the read API listens."""

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8080, gt=0, le=65535, description="Listen port")


# =============================================================================
# ROOT CONFIG
# =============================================================================

class AppConfig(StrictModel):
    """Root configuration model for the entire application.

    All fields have sensible defaults, so an empty config file is valid.
    """

    pricing: PricingConfig = Field(default_factory=PricingConfig)
    minting: MintingConfig = Field(default_factory=MintingConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    modules: ModulesConfig = Field(default_factory=ModulesConfig)
    reputation: ReputationConfig = Field(default_factory=ReputationConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    royalty: RoyaltyConfig = Field(default_factory=RoyaltyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)


# =============================================================================
# LOADING FUNCTIONS
# =============================================================================

def load_validated_config(config_path: str | Path = "config/config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid (with detailed error message).
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    return AppConfig.model_validate(raw_config)


def validate_config_dict(config_dict: dict[str, Any]) -> AppConfig:
    """Validate a configuration dictionary.

    Args:
        config_dict: Configuration as a dictionary.

    Returns:
        Validated AppConfig instance.

    Raises:
        pydantic.ValidationError: If config is invalid.
    """
    return AppConfig.model_validate(config_dict)


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "AppConfig",
    "PricingConfig",
    "MintingConfig",
    "IdentityConfig",
    "ModulesConfig",
    "ReputationConfig",
    "RenderConfig",
    "RoyaltyConfig",
    "LoggingConfig",
    "ApiConfig",
    "StrictModel",
    "load_validated_config",
    "validate_config_dict",
]
