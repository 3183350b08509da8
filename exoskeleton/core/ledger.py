"""Identity ledger - the single repository owning every identity record

All state lives in one LedgerState. Mutations:
1. Validate (raise InvalidOperation before touching anything)
2. Apply effects to state
3. Forward value to the treasury (hooks may refuse -> TransferFailed)

Each mutation runs in a transaction: every change is journaled with its
undo and the journal is replayed backwards on any exception. Events are
buffered until the outermost transaction commits. Payable entry points
(create, activate_module) reject nested entry while one of them is running.

Read queries never mutate state.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Iterator

from ..config import get_validated_config
from ..config_schema import AppConfig
from .balances import BalanceBook
from .errors import ErrorCode, LedgerError, TransferFailed, invalid, not_found
from .events import EventLog
from .models import (
    BROADCAST,
    DIRECT_CHANNEL,
    Identity,
    IdentitySnapshot,
    LedgerState,
    Message,
    ModuleDescriptor,
    ReputationCounters,
    is_zero_address,
)
from .modules import ModuleCatalog
from .pricing import MintPhase, PricingCurve
from .reputation import ReputationEngine
from .tiers import Tier, TierEngine
from ..render.metadata import build_metadata, encode_token_uri, render_image
from ..render.pipeline import Renderer, build_renderer


logger = logging.getLogger(__name__)

# Called with (sender, amount) after value lands in the receiver's balance.
# Raising refuses the payment.
ReceiverHook = Callable[[str, int], None]

BPS_DENOMINATOR = 10000


class IdentityLedger:
    """Registry of identities, their profiles, activity and module slots."""

    config: AppConfig
    event_log: EventLog
    renderer: Renderer | None
    pricing: PricingCurve
    reputation: ReputationEngine
    tiers: TierEngine
    balances: BalanceBook
    modules: ModuleCatalog

    def __init__(
        self,
        admin: str,
        treasury: str,
        config: AppConfig | None = None,
        event_log: EventLog | None = None,
        state: LedgerState | None = None,
    ) -> None:
        if is_zero_address(admin):
            raise invalid("Admin address must be set", ErrorCode.ZERO_ADDRESS)
        if is_zero_address(treasury):
            raise invalid("Treasury address must be set", ErrorCode.ZERO_ADDRESS)

        self.config = config or AppConfig()
        self.event_log = event_log or EventLog(
            default_recent=self.config.logging.default_recent
        )
        self.pricing = PricingCurve.from_config(self.config.pricing)
        multiplier = self.config.reputation.privileged_multiplier_pct
        self.reputation = ReputationEngine(privileged_multiplier_pct=multiplier)
        self.tiers = TierEngine(privileged_multiplier_pct=multiplier)
        self.renderer = build_renderer(
            self.config.render.renderer,
            ring_period=self.config.render.ring_period,
            tier_engine=self.tiers,
        )

        if state is None:
            state = LedgerState(
                admin=admin,
                treasury=treasury,
                paused=self.config.minting.paused,
                whitelist_only=self.config.minting.whitelist_only,
                royalty_bps=self.config.royalty.bps,
            )
        self._state = state
        self._receivers: dict[str, ReceiverHook] = {}
        self._pending: list[list[tuple[str, dict[str, Any]]]] = []
        self._journal: list[list[Callable[[], None]]] = []
        self._entered = False
        self._bind()

    @classmethod
    def from_config(
        cls,
        admin: str,
        treasury: str,
        config: AppConfig | None = None,
    ) -> "IdentityLedger":
        """Build a ledger with its event log wired from the logging section.

        Without an explicit config the process-wide one is used.
        """
        config = config or get_validated_config()
        logging.getLogger("exoskeleton").setLevel(config.logging.level)
        event_log = EventLog(
            output_file=config.logging.output_file,
            default_recent=config.logging.default_recent,
        )
        return cls(admin, treasury, config=config, event_log=event_log)

    @classmethod
    def from_state(
        cls,
        state: LedgerState,
        config: AppConfig | None = None,
        event_log: EventLog | None = None,
    ) -> "IdentityLedger":
        """Rebuild a ledger around previously saved state."""
        return cls(state.admin, state.treasury, config=config, event_log=event_log, state=state)

    def _bind(self) -> None:
        """Point the helper views at the current state's maps."""
        self.balances = BalanceBook(self._state.balances)
        self.modules = ModuleCatalog(
            self._state.module_descriptors,
            self._state.module_activations,
            privileged_capacity=self.config.modules.privileged_capacity,
            standard_capacity=self.config.modules.standard_capacity,
        )

    @property
    def state(self) -> LedgerState:
        """Live state. Callers must treat it as read-only."""
        return self._state

    # ===== TRANSACTION MACHINERY =====

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        self._journal.append([])
        self._pending.append([])
        try:
            yield
        except BaseException:
            self._pending.pop()
            for undo in reversed(self._journal.pop()):
                undo()
            raise
        undos = self._journal.pop()
        events = self._pending.pop()
        if self._pending:
            self._journal[-1].extend(undos)
            self._pending[-1].extend(events)
            return
        for event_type, data in events:
            self.event_log.log(event_type, data)

    def _record(self, undo: Callable[[], None]) -> None:
        if self._journal:
            self._journal[-1].append(undo)

    def _assign(self, obj: Any, attr: str, value: Any) -> None:
        previous = getattr(obj, attr)
        setattr(obj, attr, value)
        self._record(lambda: setattr(obj, attr, previous))

    def _journal_keys(self, mapping: dict[Any, Any], *keys: Any) -> None:
        """Remember the current entries for ``keys`` so rollback restores them."""
        saved = {key: mapping[key] for key in keys if key in mapping}

        def undo() -> None:
            for key in keys:
                if key in saved:
                    mapping[key] = saved[key]
                else:
                    mapping.pop(key, None)

        self._record(undo)

    def _put(self, mapping: dict[Any, Any], key: Any, value: Any) -> None:
        self._journal_keys(mapping, key)
        mapping[key] = value

    def _remove(self, mapping: dict[Any, Any], key: Any) -> None:
        if key in mapping:
            self._journal_keys(mapping, key)
            del mapping[key]

    def _append(self, items: list[Any], value: Any) -> None:
        items.append(value)
        self._record(items.pop)

    def _push(self, index: dict[Any, list[Any]], key: Any, value: Any) -> None:
        """Append to the list under ``key``, creating it when missing."""
        if key not in index:
            self._put(index, key, [])
        self._append(index[key], value)

    def _add(self, members: set[Any], value: Any) -> None:
        if value not in members:
            members.add(value)
            self._record(lambda: members.discard(value))

    def _discard(self, members: set[Any], value: Any) -> None:
        if value in members:
            members.discard(value)
            self._record(lambda: members.add(value))

    def _journal_slots(self, identity_id: int) -> None:
        """Remember an identity's module slots as they are now."""
        activations = self._state.module_activations
        slots = activations.get(identity_id)
        saved = None if slots is None else {k: replace(a) for k, a in slots.items()}

        def undo() -> None:
            if saved is None:
                activations.pop(identity_id, None)
            else:
                activations[identity_id] = saved

        self._record(undo)

    @contextmanager
    def _non_reentrant(self) -> Iterator[None]:
        if self._entered:
            raise invalid("Reentrant call rejected", ErrorCode.REENTRANT_CALL)
        self._entered = True
        try:
            yield
        finally:
            self._entered = False

    def _emit(self, event_type: str, **data: Any) -> None:
        if self._pending:
            self._pending[-1].append((event_type, data))
        else:
            self.event_log.log(event_type, data)

    def register_receiver(self, address: str, hook: ReceiverHook | None) -> None:
        """Install (or with None, remove) the payment hook for an address."""
        if hook is None:
            self._receivers.pop(address, None)
        else:
            self._receivers[address] = hook

    def _forward(self, sender: str, recipient: str, amount: int) -> None:
        """Move value to ``recipient`` and let its hook accept or refuse it.

        Runs after all state effects of the calling operation are applied.
        """
        if amount <= 0:
            return
        self._journal_keys(self._state.balances, sender, recipient)
        if not self.balances.transfer(sender, recipient, amount):
            raise invalid(
                f"{sender} cannot cover {amount}",
                ErrorCode.INSUFFICIENT_FUNDS,
                required=amount,
                available=self.balances.get_balance(sender),
            )
        self._emit("value_forwarded", sender=sender, recipient=recipient, amount=amount)
        hook = self._receivers.get(recipient)
        if hook is None:
            return
        try:
            hook(sender, amount)
        except Exception as exc:
            raise TransferFailed(recipient, amount, str(exc) or type(exc).__name__) from exc

    # ===== VALIDATION HELPERS =====

    def _identity(self, identity_id: int) -> Identity:
        identity = self._state.identities.get(identity_id)
        if identity is None:
            raise not_found("Identity", identity_id)
        return identity

    def _owned(self, caller: str, identity_id: int) -> Identity:
        identity = self._identity(identity_id)
        if identity.owner != caller:
            raise invalid(
                f"{caller} does not own identity {identity_id}",
                ErrorCode.NOT_OWNER,
                identity_id=identity_id,
            )
        return identity

    def _require_admin(self, caller: str) -> None:
        if caller != self._state.admin:
            raise invalid(f"{caller} is not the admin", ErrorCode.NOT_ADMIN)

    @staticmethod
    def _require_address(address: str, what: str = "Address") -> None:
        if is_zero_address(address):
            raise invalid(f"{what} must not be the zero address", ErrorCode.ZERO_ADDRESS)

    def _check_config(self, config: bytes) -> None:
        limit = self.config.identity.config_max_bytes
        if len(config) > limit:
            raise invalid(
                f"Visual config is {len(config)} bytes, max {limit}",
                ErrorCode.VALUE_TOO_LARGE,
                max_length=limit,
            )

    @staticmethod
    def _check_payment(payment: int) -> None:
        if payment < 0:
            raise invalid("Payment must not be negative", payment=payment)

    # ===== CREATION =====

    def create(self, caller: str, config: bytes, payment: int = 0) -> int:
        """Create an identity owned by ``caller``. Returns the new id.

        Whitelisted accounts get their first creation free. Whatever is paid,
        overpayment included, goes to the treasury in full.
        """
        with self._non_reentrant(), self._transaction():
            self._require_address(caller, "Caller")
            self._check_config(config)
            self._check_payment(payment)
            state = self._state
            if state.paused:
                raise invalid("Minting is paused", ErrorCode.MINT_PAUSED)
            minted = state.mint_counts.get(caller, 0)
            limit = self.config.minting.max_per_account
            if minted >= limit:
                raise invalid(
                    f"{caller} already created {minted} identities",
                    ErrorCode.MINT_LIMIT_REACHED,
                    limit=limit,
                )
            whitelisted = caller in state.whitelist
            if state.whitelist_only and not whitelisted:
                raise invalid(f"{caller} is not whitelisted", ErrorCode.NOT_WHITELISTED)

            free = whitelisted and caller not in state.used_free_mint
            price = self.pricing.price(state.next_id)
            if not free and payment < price:
                raise invalid(
                    f"Creation costs {price}, got {payment}",
                    ErrorCode.INSUFFICIENT_PAYMENT,
                    required=price,
                    provided=payment,
                )
            if not self.balances.can_afford(caller, payment):
                raise invalid(
                    f"{caller} cannot cover payment of {payment}",
                    ErrorCode.INSUFFICIENT_FUNDS,
                    required=payment,
                    available=self.balances.get_balance(caller),
                )

            if free:
                self._add(state.used_free_mint, caller)
            self._put(state.mint_counts, caller, minted + 1)
            identity_id = self._mint(caller, config)

            self._forward(caller, state.treasury, payment)
        logger.info("Identity %d created for %s", identity_id, caller)
        return identity_id

    def admin_create(
        self,
        caller: str,
        config: bytes,
        recipient: str,
        count: int = 1,
    ) -> list[int]:
        """Create ``count`` identities for ``recipient``, free and uncapped."""
        with self._transaction():
            self._require_admin(caller)
            self._require_address(recipient, "Recipient")
            self._check_config(config)
            if count < 1:
                raise invalid("Count must be at least 1", count=count)
            created = [self._mint(recipient, config) for _ in range(count)]
        logger.info("Admin created %d identities for %s", len(created), recipient)
        return created

    def _mint(self, owner: str, config: bytes) -> int:
        state = self._state
        identity_id = state.next_id
        privileged = self.pricing.is_privileged(identity_id)
        identity = Identity(
            identity_id=identity_id,
            owner=owner,
            visual_config=bytes(config),
            created_at=state.height,
            privileged=privileged,
        )
        self._put(state.identities, identity_id, identity)
        self._put(state.counters, identity_id, ReputationCounters())
        self._assign(state, "next_id", identity_id + 1)
        self._emit(
            "identity_created",
            identity_id=identity_id,
            owner=owner,
            privileged=privileged,
            visual_config=bytes(config).hex(),
        )
        return identity_id

    # ===== PROFILE =====

    @staticmethod
    def _check_text(text: str, limit: int, what: str, code: ErrorCode) -> None:
        """Text limits count UTF-8 bytes, not characters."""
        size = len(text.encode("utf-8"))
        if size > limit:
            raise invalid(f"{what} is {size} bytes, max {limit}", code, max_length=limit)

    def set_name(self, caller: str, identity_id: int, name: str) -> None:
        """Claim ``name`` (exact match, unique). Empty clears the name."""
        with self._transaction():
            identity = self._owned(caller, identity_id)
            self._check_text(
                name, self.config.identity.name_max_length, "Name", ErrorCode.NAME_TOO_LONG
            )
            names = self._state.names
            holder = names.get(name) if name else None
            if holder is not None and holder != identity_id:
                raise invalid(f"Name '{name}' is taken", ErrorCode.NAME_TAKEN, holder=holder)

            if identity.name:
                self._remove(names, identity.name)
            self._assign(identity, "name", name)
            if name:
                self._put(names, name, identity_id)
            self._emit("name_set", identity_id=identity_id, name=name)
            self._emit("metadata_update", identity_id=identity_id)

    def set_bio(self, caller: str, identity_id: int, bio: str) -> None:
        with self._transaction():
            identity = self._owned(caller, identity_id)
            self._check_text(
                bio, self.config.identity.bio_max_length, "Bio", ErrorCode.VALUE_TOO_LARGE
            )
            self._assign(identity, "bio", bio)
            self._emit("bio_set", identity_id=identity_id)
            self._emit("metadata_update", identity_id=identity_id)

    def set_visual_config(self, caller: str, identity_id: int, config: bytes) -> None:
        with self._transaction():
            identity = self._owned(caller, identity_id)
            self._check_config(config)
            self._assign(identity, "visual_config", bytes(config))
            self._emit(
                "visual_config_updated",
                identity_id=identity_id,
                visual_config=bytes(config).hex(),
            )
            self._emit("metadata_update", identity_id=identity_id)

    def set_custom_visual(self, caller: str, identity_id: int, visual_key: str) -> None:
        """Point the identity at an externally stored custom visual."""
        with self._transaction():
            identity = self._owned(caller, identity_id)
            self._check_text(
                visual_key,
                self.config.identity.custom_visual_max_length,
                "Custom visual key",
                ErrorCode.VALUE_TOO_LARGE,
            )
            self._assign(identity, "custom_visual", visual_key)
            self._emit("custom_visual_set", identity_id=identity_id, visual_key=visual_key)
            self._emit("metadata_update", identity_id=identity_id)

    def transfer(self, caller: str, identity_id: int, to: str) -> None:
        """Hand the identity to another account. Only the owner changes."""
        with self._transaction():
            identity = self._owned(caller, identity_id)
            self._require_address(to, "Recipient")
            self._assign(identity, "owner", to)
            self._emit("identity_transferred", identity_id=identity_id, sender=caller, recipient=to)

    # ===== COMMUNICATION =====

    def send_message(
        self,
        caller: str,
        from_id: int,
        to_id: int,
        channel: int,
        msg_type: int,
        payload: bytes,
    ) -> int:
        """Append a message. Returns its index in the message log."""
        with self._transaction():
            self._owned(caller, from_id)
            if to_id != BROADCAST and to_id not in self._state.identities:
                raise not_found("Identity", to_id)
            limit = self.config.identity.message_max_payload_bytes
            if len(payload) > limit:
                raise invalid(
                    f"Payload is {len(payload)} bytes, max {limit}",
                    ErrorCode.VALUE_TOO_LARGE,
                    max_length=limit,
                )
            state = self._state
            index = len(state.messages)
            message = Message(
                from_id=from_id,
                to_id=to_id,
                channel=channel,
                msg_type=msg_type,
                payload=bytes(payload),
                timestamp=state.height,
            )
            self._append(state.messages, message)
            if channel != DIRECT_CHANNEL:
                self._push(state.channel_index, channel, index)
            if to_id != BROADCAST:
                self._push(state.inbox_index, to_id, index)
            counters = state.counters[from_id]
            self._assign(counters, "messages_sent", counters.messages_sent + 1)
            self._emit(
                "message_sent",
                index=index,
                from_id=from_id,
                to_id=to_id,
                channel=channel,
                msg_type=msg_type,
            )
        return index

    def store(self, caller: str, identity_id: int, key: str, value: bytes) -> None:
        with self._transaction():
            self._owned(caller, identity_id)
            if not key:
                raise invalid("Storage key must not be empty", ErrorCode.EMPTY_KEY)
            limit = self.config.identity.storage_max_value_bytes
            if len(value) > limit:
                raise invalid(
                    f"Value is {len(value)} bytes, max {limit}",
                    ErrorCode.VALUE_TOO_LARGE,
                    max_length=limit,
                )
            storage = self._state.storage
            if identity_id not in storage:
                self._put(storage, identity_id, {})
            self._put(storage[identity_id], key, bytes(value))
            counters = self._state.counters[identity_id]
            self._assign(counters, "storage_writes", counters.storage_writes + 1)
            self._emit("data_stored", identity_id=identity_id, key=key)

    def set_storage_operator(self, caller: str, identity_id: int, operator: str) -> None:
        """Name the account that manages the identity's external storage.

        The zero address (or empty string) clears the operator.
        """
        with self._transaction():
            self._owned(caller, identity_id)
            operators = self._state.storage_operators
            if is_zero_address(operator):
                self._remove(operators, identity_id)
                operator = ""
            else:
                self._put(operators, identity_id, operator)
            self._emit("storage_operator_set", identity_id=identity_id, operator=operator)

    # ===== EXTERNAL SCORES =====

    def grant_scorer(self, caller: str, identity_id: int, scorer: str) -> None:
        with self._transaction():
            self._owned(caller, identity_id)
            self._require_address(scorer, "Scorer")
            scorers = self._state.scorers
            if identity_id not in scorers:
                self._put(scorers, identity_id, set())
            self._add(scorers[identity_id], scorer)
            self._emit("scorer_granted", identity_id=identity_id, scorer=scorer)

    def revoke_scorer(self, caller: str, identity_id: int, scorer: str) -> None:
        with self._transaction():
            self._owned(caller, identity_id)
            self._discard(self._state.scorers.get(identity_id, set()), scorer)
            self._emit("scorer_revoked", identity_id=identity_id, scorer=scorer)

    def set_external_score(self, caller: str, identity_id: int, key: str, value: int) -> None:
        """Overwrite a scorer-managed value. Never feeds into reputation."""
        with self._transaction():
            self._identity(identity_id)
            if caller not in self._state.scorers.get(identity_id, set()):
                raise invalid(
                    f"{caller} may not score identity {identity_id}",
                    ErrorCode.SCORER_NOT_ALLOWED,
                    identity_id=identity_id,
                )
            if not key:
                raise invalid("Score key must not be empty", ErrorCode.EMPTY_KEY)
            scores = self._state.external_scores
            if identity_id not in scores:
                self._put(scores, identity_id, {})
            self._put(scores[identity_id], key, value)
            self._emit(
                "score_updated",
                identity_id=identity_id,
                key=key,
                value=value,
                scorer=caller,
            )

    # ===== MODULES =====

    def register_module(
        self,
        caller: str,
        key: str,
        capability_ref: str,
        premium: bool = False,
        premium_cost: int = 0,
    ) -> ModuleDescriptor:
        with self._transaction():
            self._require_admin(caller)
            self._journal_keys(self._state.module_descriptors, key)
            descriptor = self.modules.register(
                key, capability_ref, premium, premium_cost, self._state.height
            )
            self._emit(
                "module_registered",
                key=key,
                capability_ref=capability_ref,
                premium=premium,
                premium_cost=premium_cost,
            )
        return descriptor

    def activate_module(
        self,
        caller: str,
        identity_id: int,
        key: str,
        payment: int = 0,
    ) -> None:
        """Occupy a module slot. Premium payments go to the treasury in full."""
        with self._non_reentrant(), self._transaction():
            identity = self._owned(caller, identity_id)
            descriptor = self.modules.check_activate(
                identity_id, key, payment, identity.privileged
            )
            if not self.balances.can_afford(caller, payment):
                raise invalid(
                    f"{caller} cannot cover payment of {payment}",
                    ErrorCode.INSUFFICIENT_FUNDS,
                    required=payment,
                    available=self.balances.get_balance(caller),
                )
            self._journal_slots(identity_id)
            self.modules.activate(identity_id, key, self._state.height)
            counters = self._state.counters[identity_id]
            self._assign(counters, "modules_active", counters.modules_active + 1)
            self._emit("module_activated", identity_id=identity_id, key=key, payment=payment)

            if descriptor.premium:
                self._forward(caller, self._state.treasury, payment)

    def deactivate_module(self, caller: str, identity_id: int, key: str) -> None:
        with self._transaction():
            self._owned(caller, identity_id)
            self.modules.check_deactivate(identity_id, key)
            counters = self._state.counters[identity_id]
            if counters.modules_active <= 0:
                raise LedgerError(
                    f"Active module count of identity {identity_id} would go negative",
                    ErrorCode.INTERNAL_ERROR,
                )
            self._journal_slots(identity_id)
            self.modules.deactivate(identity_id, key)
            self._assign(counters, "modules_active", counters.modules_active - 1)
            self._emit("module_deactivated", identity_id=identity_id, key=key)

    # ===== ADMINISTRATION =====

    def set_whitelist(self, caller: str, account: str, allowed: bool) -> None:
        self.set_whitelist_batch(caller, [account], allowed)

    def set_whitelist_batch(self, caller: str, accounts: list[str], allowed: bool) -> None:
        with self._transaction():
            self._require_admin(caller)
            for account in accounts:
                self._require_address(account, "Account")
                if allowed:
                    self._add(self._state.whitelist, account)
                else:
                    self._discard(self._state.whitelist, account)
                self._emit("whitelist_updated", account=account, allowed=allowed)

    def set_whitelist_only(self, caller: str, enabled: bool) -> None:
        with self._transaction():
            self._require_admin(caller)
            self._assign(self._state, "whitelist_only", enabled)
            self._emit("whitelist_only_updated", enabled=enabled)

    def set_paused(self, caller: str, paused: bool) -> None:
        with self._transaction():
            self._require_admin(caller)
            self._assign(self._state, "paused", paused)
            self._emit("mint_paused", paused=paused)
        logger.info("Minting %s", "paused" if paused else "resumed")

    def set_treasury(self, caller: str, treasury: str) -> None:
        with self._transaction():
            self._require_admin(caller)
            self._require_address(treasury, "Treasury")
            self._assign(self._state, "treasury", treasury)
            self._emit("treasury_updated", treasury=treasury)

    def set_renderer(self, caller: str, renderer: Renderer | None) -> None:
        """Swap the renderer. None leaves only the built-in fallback image."""
        with self._transaction():
            self._require_admin(caller)
            self._emit(
                "renderer_updated",
                renderer=type(renderer).__name__ if renderer is not None else "none",
            )
        self.renderer = renderer

    def set_royalty(self, caller: str, bps: int) -> None:
        with self._transaction():
            self._require_admin(caller)
            if not 0 <= bps <= BPS_DENOMINATOR:
                raise invalid(f"Royalty must be 0..{BPS_DENOMINATOR} bps, got {bps}", bps=bps)
            self._assign(self._state, "royalty_bps", bps)
            self._emit("royalty_updated", bps=bps)

    def transfer_admin(self, caller: str, new_admin: str) -> None:
        with self._transaction():
            self._require_admin(caller)
            self._require_address(new_admin, "Admin")
            self._assign(self._state, "admin", new_admin)
            self._emit("admin_transferred", previous=caller, admin=new_admin)

    def deposit(self, account: str, amount: int) -> None:
        """Credit value arriving from outside the ledger to ``account``."""
        self._require_address(account, "Account")
        if amount < 0:
            raise invalid("Deposit must not be negative", amount=amount)
        self._journal_keys(self._state.balances, account)
        self.balances.credit(account, amount)

    def advance(self, blocks: int = 1) -> int:
        """Move the ledger height forward. Returns the new height."""
        if blocks < 0:
            raise invalid("Height cannot move backwards", blocks=blocks)
        self._assign(self._state, "height", self._state.height + blocks)
        return self._state.height

    # ===== READS =====

    @property
    def height(self) -> int:
        return self._state.height

    @property
    def admin(self) -> str:
        return self._state.admin

    @property
    def treasury(self) -> str:
        return self._state.treasury

    @property
    def paused(self) -> bool:
        return self._state.paused

    @property
    def whitelist_only(self) -> bool:
        return self._state.whitelist_only

    @property
    def next_id(self) -> int:
        return self._state.next_id

    @property
    def total_identities(self) -> int:
        return self._state.next_id - 1

    def get_identity(self, identity_id: int) -> Identity:
        return replace(self._identity(identity_id))

    def owner_of(self, identity_id: int) -> str:
        return self._identity(identity_id).owner

    def get_reputation_counters(self, identity_id: int) -> ReputationCounters:
        self._identity(identity_id)
        return replace(self._state.counters[identity_id])

    def get_reputation_score(self, identity_id: int) -> int:
        identity = self._identity(identity_id)
        counters = self._state.counters[identity_id]
        return self.reputation.score(
            self._state.height - identity.created_at,
            counters.messages_sent,
            counters.storage_writes,
            counters.modules_active,
            identity.privileged,
        )

    def get_activity_score(self, identity_id: int) -> int:
        identity = self._identity(identity_id)
        counters = self._state.counters[identity_id]
        return self.tiers.activity_score(
            counters.messages_sent,
            counters.storage_writes,
            counters.modules_active,
            identity.privileged,
        )

    def get_tier(self, identity_id: int) -> Tier:
        return self.tiers.tier_for_score(self.get_activity_score(identity_id))

    def is_module_active(self, identity_id: int, key: str) -> bool:
        return self.modules.is_active(identity_id, key)

    def get_module(self, key: str) -> ModuleDescriptor | None:
        return self.modules.get(key)

    def active_modules(self, identity_id: int) -> list[str]:
        self._identity(identity_id)
        return self.modules.active_keys(identity_id)

    def get_external_score(self, identity_id: int, key: str) -> int:
        self._identity(identity_id)
        return self._state.external_scores.get(identity_id, {}).get(key, 0)

    def is_scorer(self, identity_id: int, scorer: str) -> bool:
        return scorer in self._state.scorers.get(identity_id, set())

    def get_data(self, identity_id: int, key: str) -> bytes:
        self._identity(identity_id)
        return self._state.storage.get(identity_id, {}).get(key, b"")

    def storage_operator(self, identity_id: int) -> str:
        """Account managing the identity's external storage, or "" when unset."""
        self._identity(identity_id)
        return self._state.storage_operators.get(identity_id, "")

    def get_message(self, index: int) -> Message:
        if not 0 <= index < len(self._state.messages):
            raise not_found("Message", index)
        return self._state.messages[index]

    def message_count(self) -> int:
        return len(self._state.messages)

    def inbox(self, identity_id: int) -> list[Message]:
        """Messages addressed directly to an identity, oldest first."""
        return [self._state.messages[i] for i in self._state.inbox_index.get(identity_id, [])]

    def channel_messages(self, channel: int) -> list[Message]:
        return [self._state.messages[i] for i in self._state.channel_index.get(channel, [])]

    def name_to_id(self, name: str) -> int:
        """Id holding ``name``, or 0 when unclaimed."""
        return self._state.names.get(name, 0)

    def mint_price(self) -> int:
        return self.pricing.price(self._state.next_id)

    def mint_phase(self) -> MintPhase:
        return self.pricing.phase(self._state.next_id)

    def mint_count(self, account: str) -> int:
        return self._state.mint_counts.get(account, 0)

    def used_free_mint(self, account: str) -> bool:
        return account in self._state.used_free_mint

    def is_whitelisted(self, account: str) -> bool:
        return account in self._state.whitelist

    def balance_of(self, account: str) -> int:
        return self.balances.get_balance(account)

    def royalty_info(self, sale_price: int) -> tuple[str, int]:
        """(receiver, amount) owed on a secondary sale."""
        return self._state.treasury, sale_price * self._state.royalty_bps // BPS_DENOMINATOR

    # ===== RENDERING =====

    def snapshot(self, identity_id: int) -> IdentitySnapshot:
        identity = self._identity(identity_id)
        counters = self._state.counters[identity_id]
        return IdentitySnapshot(
            identity_id=identity_id,
            visual_config=identity.visual_config,
            privileged=identity.privileged,
            name=identity.name,
            messages_sent=counters.messages_sent,
            storage_writes=counters.storage_writes,
            modules_active=counters.modules_active,
            created_at=identity.created_at,
            current_height=self._state.height,
            reputation_score=self.get_reputation_score(identity_id),
            phase=self.pricing.phase(identity_id),
        )

    def render(self, identity_id: int) -> str:
        """SVG image of the identity's current state."""
        return render_image(self.snapshot(identity_id), self.renderer)

    def metadata(self, identity_id: int) -> dict[str, Any]:
        snapshot = self.snapshot(identity_id)
        return build_metadata(
            snapshot,
            render_image(snapshot, self.renderer),
            tier=self.get_tier(identity_id),
            description=self.config.render.description,
        )

    def token_uri(self, identity_id: int) -> str:
        return encode_token_uri(self.metadata(identity_id))
