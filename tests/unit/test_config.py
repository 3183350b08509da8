"""Unit tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from pydantic import ValidationError

from exoskeleton import config as config_module
from exoskeleton.config_schema import AppConfig, load_validated_config, validate_config_dict
from exoskeleton.core.ledger import IdentityLedger
from tests.testing_utils import ADMIN, TREASURY


CONFIG_PATH = Path(__file__).parents[2] / "config" / "config.yaml"


@pytest.fixture(autouse=True)
def clean_config() -> Iterator[None]:
    config_module.reset_config()
    yield
    config_module.reset_config()


class TestSchema:
    """Tests for the pydantic schema."""

    def test_shipped_config_matches_defaults(self) -> None:
        assert load_validated_config(CONFIG_PATH) == AppConfig()

    def test_empty_file_is_valid(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_validated_config(path) == AppConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_validated_config(tmp_path / "nope.yaml")

    def test_unknown_field_rejected(self) -> None:
        """Typos fail fast instead of being silently ignored."""
        with pytest.raises(ValidationError):
            validate_config_dict({"minting": {"max_per_acount": 5}})

    def test_growth_must_follow_genesis(self) -> None:
        with pytest.raises(ValidationError, match="growth_supply"):
            validate_config_dict({"pricing": {"genesis_supply": 10, "growth_supply": 10}})

    def test_prices_must_not_decrease(self) -> None:
        with pytest.raises(ValidationError, match="curve_base"):
            validate_config_dict({"pricing": {"curve_base": 1}})

    def test_privileged_capacity_not_below_standard(self) -> None:
        with pytest.raises(ValidationError):
            validate_config_dict({"modules": {"privileged_capacity": 4, "standard_capacity": 5}})

    def test_royalty_bounds(self) -> None:
        with pytest.raises(ValidationError):
            validate_config_dict({"royalty": {"bps": 10001}})

    def test_unknown_renderer(self) -> None:
        with pytest.raises(ValidationError):
            validate_config_dict({"render": {"renderer": "fancy"}})


class TestLoader:
    """Tests for the process-wide configuration."""

    def test_get_dot_path(self) -> None:
        config_module.load_config(CONFIG_PATH)
        assert config_module.get("minting.max_per_account") == 3
        assert config_module.get("render.renderer") == "tiered"
        assert config_module.get("api.port") == 8080
        assert config_module.get("render.missing", "fallback") == "fallback"
        assert config_module.get("royalty.bps.deeper") is None

    def test_load_returns_active_config(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text("royalty:\n  bps: 100\n")
        loaded = config_module.load_config(path)
        assert loaded.royalty.bps == 100
        assert config_module.get_validated_config() is loaded

    def test_invalid_file_keeps_previous(self, tmp_path: Path) -> None:
        config_module.load_config(CONFIG_PATH)
        path = tmp_path / "bad.yaml"
        path.write_text("royalty:\n  bps: -1\n")
        with pytest.raises(ValidationError):
            config_module.load_config(path)
        assert config_module.get_validated_config().royalty.bps == 420

    def test_default_path_loads_lazily(self) -> None:
        assert config_module.get("identity.name_max_length") == 32

    def test_use_config(self) -> None:
        config = validate_config_dict({"minting": {"paused": True}})
        config_module.use_config(config)
        assert config_module.get("minting.paused") is True


class TestLedgerFromConfig:
    """IdentityLedger.from_config falls back to the process-wide config."""

    def test_uses_active_config(self) -> None:
        config_module.use_config(
            validate_config_dict({"minting": {"whitelist_only": False}, "royalty": {"bps": 99}})
        )
        ledger = IdentityLedger.from_config(ADMIN, TREASURY)
        assert ledger.whitelist_only is False
        assert ledger.royalty_info(10_000) == (TREASURY, 99)

    def test_explicit_config_wins(self) -> None:
        config_module.use_config(validate_config_dict({"minting": {"paused": True}}))
        ledger = IdentityLedger.from_config(ADMIN, TREASURY, AppConfig())
        assert ledger.paused is False
