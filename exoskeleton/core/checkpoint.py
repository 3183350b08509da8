"""Checkpoint save/load for ledger state.

One table per entity kind plus the uniqueness indices, as JSON. Bytes are
stored as hex. Writes are atomic (temp file + rename), so an interrupted
save leaves the previous checkpoint intact.

- Version 1: identities, counters, scores, modules, messages, storage,
  storage operators, indices, balances
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config_schema import AppConfig
from .events import EventLog
from .ledger import IdentityLedger
from .models import (
    Identity,
    LedgerState,
    Message,
    ModuleActivation,
    ModuleDescriptor,
    ReputationCounters,
)


logger = logging.getLogger(__name__)

# Current checkpoint format version
CHECKPOINT_VERSION = 1


def state_to_dict(state: LedgerState) -> dict[str, Any]:
    """Serialize ledger state to JSON-compatible tables."""
    return {
        "height": state.height,
        "next_id": state.next_id,
        "admin": state.admin,
        "treasury": state.treasury,
        "paused": state.paused,
        "whitelist_only": state.whitelist_only,
        "royalty_bps": state.royalty_bps,
        "identities": [i.to_dict() for i in state.identities.values()],
        "counters": {str(k): c.to_dict() for k, c in state.counters.items()},
        "external_scores": {str(k): dict(v) for k, v in state.external_scores.items()},
        "scorers": {str(k): sorted(v) for k, v in state.scorers.items()},
        "modules": [d.to_dict() for d in state.module_descriptors.values()],
        "activations": {
            str(identity_id): {
                key: {"active": a.active, "activated_at": a.activated_at}
                for key, a in slots.items()
            }
            for identity_id, slots in state.module_activations.items()
        },
        "messages": [m.to_dict() for m in state.messages],
        "storage": {
            str(k): {key: value.hex() for key, value in slots.items()}
            for k, slots in state.storage.items()
        },
        "storage_operators": {str(k): v for k, v in state.storage_operators.items()},
        "names": dict(state.names),
        "mint_counts": dict(state.mint_counts),
        "used_free_mint": sorted(state.used_free_mint),
        "whitelist": sorted(state.whitelist),
        "balances": dict(state.balances),
    }


def state_from_dict(data: dict[str, Any]) -> LedgerState:
    """Inverse of state_to_dict. Rebuilds the message indices."""
    messages = [Message.from_dict(m) for m in data.get("messages", [])]
    channel_index: dict[int, list[int]] = {}
    inbox_index: dict[int, list[int]] = {}
    for index, message in enumerate(messages):
        if message.channel:
            channel_index.setdefault(message.channel, []).append(index)
        if message.to_id:
            inbox_index.setdefault(message.to_id, []).append(index)

    identities = [Identity.from_dict(i) for i in data.get("identities", [])]
    return LedgerState(
        height=int(data["height"]),
        next_id=int(data["next_id"]),
        admin=data["admin"],
        treasury=data["treasury"],
        paused=bool(data["paused"]),
        whitelist_only=bool(data["whitelist_only"]),
        royalty_bps=int(data["royalty_bps"]),
        identities={i.identity_id: i for i in identities},
        counters={
            int(k): ReputationCounters(**v) for k, v in data.get("counters", {}).items()
        },
        external_scores={
            int(k): {key: int(value) for key, value in v.items()}
            for k, v in data.get("external_scores", {}).items()
        },
        scorers={int(k): set(v) for k, v in data.get("scorers", {}).items()},
        storage={
            int(k): {key: bytes.fromhex(value) for key, value in slots.items()}
            for k, slots in data.get("storage", {}).items()
        },
        storage_operators={
            int(k): v for k, v in data.get("storage_operators", {}).items()
        },
        messages=messages,
        channel_index=channel_index,
        inbox_index=inbox_index,
        names={name: int(i) for name, i in data.get("names", {}).items()},
        mint_counts={a: int(n) for a, n in data.get("mint_counts", {}).items()},
        used_free_mint=set(data.get("used_free_mint", [])),
        whitelist=set(data.get("whitelist", [])),
        balances={a: int(b) for a, b in data.get("balances", {}).items()},
        module_descriptors={
            d["key"]: ModuleDescriptor(**d) for d in data.get("modules", [])
        },
        module_activations={
            int(identity_id): {key: ModuleActivation(**a) for key, a in slots.items()}
            for identity_id, slots in data.get("activations", {}).items()
        },
    )


def save_checkpoint(ledger: IdentityLedger, checkpoint_file: str | Path, reason: str = "") -> str:
    """Save ledger state for later resumption.

    Uses atomic write (temp file + rename) to prevent corruption from
    partial writes during interruption.

    Returns:
        Path to the saved checkpoint file
    """
    checkpoint = {
        "version": CHECKPOINT_VERSION,
        "state": state_to_dict(ledger.state),
        "reason": reason,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    path = str(checkpoint_file)
    temp_file = f"{path}.tmp"
    with open(temp_file, "w") as f:
        json.dump(checkpoint, f, indent=2)
    os.replace(temp_file, path)

    logger.info("Checkpoint saved to %s at height %d", path, ledger.height)
    return path


def load_checkpoint(
    checkpoint_file: str | Path,
    config: AppConfig | None = None,
    event_log: EventLog | None = None,
) -> IdentityLedger | None:
    """Rebuild a ledger from a checkpoint file.

    Returns:
        The restored ledger, or None if the file does not exist.

    Raises:
        ValueError: If the checkpoint was written by a newer format version.
    """
    path = Path(checkpoint_file)
    if not path.exists():
        return None

    with open(path) as f:
        data: dict[str, Any] = json.load(f)

    version = data.get("version", CHECKPOINT_VERSION)
    if version > CHECKPOINT_VERSION:
        raise ValueError(
            f"Checkpoint version {version} is newer than supported {CHECKPOINT_VERSION}"
        )

    state = state_from_dict(data["state"])
    logger.info("Checkpoint loaded from %s at height %d", path, state.height)
    return IdentityLedger.from_state(state, config=config, event_log=event_log)
