"""Record types held by the identity ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


ZERO_ADDRESS = "0x" + "0" * 40

# Message addressing
BROADCAST = 0  # to_id for messages addressed to no single identity
DIRECT_CHANNEL = 0  # channel for unchanneled messages


def is_zero_address(address: str | None) -> bool:
    """Empty, None and the all-zero address all count as 'no address'."""
    return not address or address.lower() == ZERO_ADDRESS


@dataclass
class Identity:
    """A persistent, ownable identity record. Never deleted."""

    identity_id: int
    owner: str
    visual_config: bytes
    created_at: int  # ledger height at creation
    privileged: bool  # fixed forever at creation
    name: str = ""
    bio: str = ""
    custom_visual: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity_id": self.identity_id,
            "owner": self.owner,
            "name": self.name,
            "bio": self.bio,
            "visual_config": self.visual_config.hex(),
            "custom_visual": self.custom_visual,
            "created_at": self.created_at,
            "privileged": self.privileged,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Identity":
        return cls(
            identity_id=int(data["identity_id"]),
            owner=data["owner"],
            visual_config=bytes.fromhex(data["visual_config"]),
            created_at=int(data["created_at"]),
            privileged=bool(data["privileged"]),
            name=data.get("name", ""),
            bio=data.get("bio", ""),
            custom_visual=data.get("custom_visual", ""),
        )


@dataclass
class ReputationCounters:
    """Activity counters. Only modules_active ever decreases."""

    messages_sent: int = 0
    storage_writes: int = 0
    modules_active: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "messages_sent": self.messages_sent,
            "storage_writes": self.storage_writes,
            "modules_active": self.modules_active,
        }


@dataclass(frozen=True)
class Message:
    """An append-only message between identities."""

    from_id: int
    to_id: int  # BROADCAST = 0
    channel: int  # DIRECT_CHANNEL = 0
    msg_type: int
    payload: bytes
    timestamp: int  # ledger height when sent

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_id": self.from_id,
            "to_id": self.to_id,
            "channel": self.channel,
            "msg_type": self.msg_type,
            "payload": self.payload.hex(),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            from_id=int(data["from_id"]),
            to_id=int(data["to_id"]),
            channel=int(data["channel"]),
            msg_type=int(data["msg_type"]),
            payload=bytes.fromhex(data["payload"]),
            timestamp=int(data["timestamp"]),
        )


@dataclass(frozen=True)
class ModuleDescriptor:
    """A registered capability module. Immutable after registration."""

    key: str
    capability_ref: str
    premium: bool
    premium_cost: int
    registered_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "capability_ref": self.capability_ref,
            "premium": self.premium,
            "premium_cost": self.premium_cost,
            "registered_at": self.registered_at,
        }


@dataclass
class ModuleActivation:
    """Activation state of one module for one identity."""

    active: bool
    activated_at: int


@dataclass(frozen=True)
class IdentitySnapshot:
    """Read-only view of one identity, everything a renderer may consume."""

    identity_id: int
    visual_config: bytes
    privileged: bool
    name: str
    messages_sent: int
    storage_writes: int
    modules_active: int
    created_at: int
    current_height: int
    reputation_score: int = 0
    phase: str = "genesis"

    @property
    def age(self) -> int:
        return max(self.current_height - self.created_at, 0)


@dataclass
class LedgerState:
    """Everything a ledger mutation may touch.

    Kept in one object so the ledger, its helper views and checkpoints
    all share the same tables.
    """

    height: int = 0
    next_id: int = 1
    admin: str = ""
    treasury: str = ""
    paused: bool = False
    whitelist_only: bool = True
    royalty_bps: int = 0
    identities: dict[int, Identity] = field(default_factory=dict)
    counters: dict[int, ReputationCounters] = field(default_factory=dict)
    external_scores: dict[int, dict[str, int]] = field(default_factory=dict)
    scorers: dict[int, set[str]] = field(default_factory=dict)
    storage: dict[int, dict[str, bytes]] = field(default_factory=dict)
    storage_operators: dict[int, str] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)
    channel_index: dict[int, list[int]] = field(default_factory=dict)
    inbox_index: dict[int, list[int]] = field(default_factory=dict)
    names: dict[str, int] = field(default_factory=dict)
    mint_counts: dict[str, int] = field(default_factory=dict)
    used_free_mint: set[str] = field(default_factory=set)
    whitelist: set[str] = field(default_factory=set)
    balances: dict[str, int] = field(default_factory=dict)
    module_descriptors: dict[str, ModuleDescriptor] = field(default_factory=dict)
    module_activations: dict[int, dict[str, ModuleActivation]] = field(default_factory=dict)
