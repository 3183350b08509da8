"""Pydantic models for read API responses."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class IdentityInfo(BaseModel):
    """Profile and status of one identity."""
    identity_id: int
    owner: str
    name: str = ""
    bio: str = ""
    visual_config: str = ""  # hex
    custom_visual: str = ""
    storage_operator: str = ""
    created_at: int
    privileged: bool
    phase: Literal["genesis", "growth", "open"]
    tier: str
    active_modules: list[str] = Field(default_factory=list)


class ReputationInfo(BaseModel):
    """Counters and derived scores."""
    identity_id: int
    messages_sent: int = 0
    storage_writes: int = 0
    modules_active: int = 0
    age: int = 0
    reputation_score: int = 0
    activity_score: int = 0
    tier: str


class ModuleInfo(BaseModel):
    """A registered module descriptor."""
    key: str
    capability_ref: str
    premium: bool = False
    premium_cost: int = 0
    registered_at: int = 0


class PricingInfo(BaseModel):
    """Current creation terms."""
    next_id: int
    price: int
    phase: Literal["genesis", "growth", "open"]
    paused: bool
    whitelist_only: bool
    royalty_bps: int


class MetadataAttribute(BaseModel):
    trait_type: str
    value: Any
    display_type: str | None = None


class TokenMetadata(BaseModel):
    """Marketplace metadata for one identity."""
    name: str
    description: str
    image: str
    attributes: list[MetadataAttribute]


class LedgerEvent(BaseModel):
    """One event from the ledger event log."""
    sequence: int
    timestamp: str
    event_type: str
    data: dict[str, Any] = Field(default_factory=dict)
