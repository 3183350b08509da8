"""Creation pricing: two fixed-price phases, then a quadratic bonding curve.

    ids 1..C1            genesis_price
    ids C1+1..C2         growth_price
    ids > C2             curve_base + (id - C2)^2 * curve_scale

Pure integer arithmetic. The config schema guarantees the schedule is
monotonic non-decreasing across both phase boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..config_schema import PricingConfig
from .errors import ErrorCode, invalid


MintPhase = Literal["genesis", "growth", "open"]


@dataclass(frozen=True)
class PricingCurve:
    """Price schedule for the next identity id."""

    genesis_supply: int
    growth_supply: int
    genesis_price: int
    growth_price: int
    curve_base: int
    curve_scale: int

    @classmethod
    def from_config(cls, config: PricingConfig) -> "PricingCurve":
        return cls(
            genesis_supply=config.genesis_supply,
            growth_supply=config.growth_supply,
            genesis_price=config.genesis_price,
            growth_price=config.growth_price,
            curve_base=config.curve_base,
            curve_scale=config.curve_scale,
        )

    def price(self, next_id: int) -> int:
        """Price to create the identity that will receive ``next_id``."""
        _check_id(next_id)
        if next_id <= self.genesis_supply:
            return self.genesis_price
        if next_id <= self.growth_supply:
            return self.growth_price
        excess = next_id - self.growth_supply
        return self.curve_base + excess * excess * self.curve_scale

    def phase(self, identity_id: int) -> MintPhase:
        """Phase label for an id."""
        _check_id(identity_id)
        if identity_id <= self.genesis_supply:
            return "genesis"
        if identity_id <= self.growth_supply:
            return "growth"
        return "open"

    def is_privileged(self, identity_id: int) -> bool:
        """Whether an id falls in the first creation cohort."""
        return 1 <= identity_id <= self.genesis_supply


def _check_id(identity_id: int) -> None:
    if identity_id < 1:
        raise invalid(f"Identity ids start at 1, got {identity_id}", ErrorCode.INVALID_ARGUMENT)
