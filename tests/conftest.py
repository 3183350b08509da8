"""Pytest fixtures for exoskeleton ledger tests.

Common accounts, configs and pre-populated ledgers.
"""

from __future__ import annotations

import pytest

from exoskeleton.config_schema import AppConfig, validate_config_dict
from exoskeleton.core.ledger import IdentityLedger
from tests.testing_utils import ADMIN, ALICE, BOB, CAROL, STARTING_FUNDS, TREASURY, mint


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: tests that exercise several components together",
    )


@pytest.fixture
def config() -> AppConfig:
    """Default configuration."""
    return AppConfig()


@pytest.fixture
def small_config() -> AppConfig:
    """Configuration with a two-identity genesis cohort.

    Ids 1-2 are privileged, 3-5 growth, 6+ on the bonding curve.
    """
    return validate_config_dict({"pricing": {"genesis_supply": 2, "growth_supply": 5}})


@pytest.fixture
def ledger(config: AppConfig) -> IdentityLedger:
    """Fresh ledger: ALICE and BOB whitelisted, everyone funded."""
    ledger = IdentityLedger(ADMIN, TREASURY, config=config)
    ledger.set_whitelist_batch(ADMIN, [ALICE, BOB], True)
    for account in (ALICE, BOB, CAROL):
        ledger.deposit(account, STARTING_FUNDS)
    return ledger


@pytest.fixture
def small_ledger(small_config: AppConfig) -> IdentityLedger:
    """Ledger over small_config with public creation and funded accounts."""
    ledger = IdentityLedger(ADMIN, TREASURY, config=small_config)
    ledger.set_whitelist_only(ADMIN, False)
    for account in (ALICE, BOB, CAROL):
        ledger.deposit(account, STARTING_FUNDS)
    return ledger


@pytest.fixture
def alice_identity(ledger: IdentityLedger) -> int:
    """ALICE's first (free, privileged) identity."""
    return mint(ledger, ALICE)
