"""Unit tests for all-or-nothing mutations, payment hooks and reentrancy."""

from __future__ import annotations

import time
from typing import Any

import pytest

from exoskeleton.core.errors import ErrorCode, InvalidOperation, TransferFailed
from exoskeleton.core.ledger import IdentityLedger
from tests.testing_utils import (
    ADMIN,
    ALICE,
    BOB,
    GENESIS_PRICE,
    MODULE_REF,
    STARTING_FUNDS,
    TREASURY,
)


def refuse(sender: str, amount: int) -> None:
    raise RuntimeError("treasury closed")


class TestRefusedPayment:
    """A refused payment undoes the whole operation."""

    def test_create_rolled_back(self, ledger: IdentityLedger) -> None:
        ledger.create(ALICE, b"", 0)
        events_before = len(ledger.event_log)
        ledger.register_receiver(TREASURY, refuse)

        with pytest.raises(TransferFailed) as exc_info:
            ledger.create(ALICE, b"", GENESIS_PRICE)

        assert exc_info.value.code == ErrorCode.TRANSFER_REFUSED
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert ledger.next_id == 2
        assert ledger.mint_count(ALICE) == 1
        assert ledger.balance_of(ALICE) == STARTING_FUNDS
        assert ledger.balance_of(TREASURY) == 0
        assert len(ledger.event_log) == events_before

    def test_free_mint_restored(self, ledger: IdentityLedger) -> None:
        """A refused payment on the free creation keeps the free creation unused."""
        ledger.register_receiver(TREASURY, refuse)
        with pytest.raises(TransferFailed):
            ledger.create(ALICE, b"", 1)
        assert not ledger.used_free_mint(ALICE)

        ledger.register_receiver(TREASURY, None)
        assert ledger.create(ALICE, b"", 0) == 1

    def test_premium_activation_rolled_back(self, ledger: IdentityLedger) -> None:
        ledger.register_module(ADMIN, "oracle", MODULE_REF, premium=True, premium_cost=100)
        identity_id = ledger.create(ALICE, b"", 0)
        ledger.register_receiver(TREASURY, refuse)

        with pytest.raises(TransferFailed):
            ledger.activate_module(ALICE, identity_id, "oracle", 100)

        assert not ledger.is_module_active(identity_id, "oracle")
        assert ledger.get_reputation_counters(identity_id).modules_active == 0
        assert ledger.balance_of(ALICE) == STARTING_FUNDS

    def test_ledger_usable_after_rollback(self, ledger: IdentityLedger) -> None:
        ledger.create(ALICE, b"", 0)
        ledger.register_receiver(TREASURY, refuse)
        with pytest.raises(TransferFailed):
            ledger.create(ALICE, b"", GENESIS_PRICE)
        ledger.register_receiver(TREASURY, None)

        assert ledger.create(ALICE, b"", GENESIS_PRICE) == 2
        assert ledger.balance_of(TREASURY) == GENESIS_PRICE

    def test_no_hook_on_zero_payment(self, ledger: IdentityLedger) -> None:
        ledger.register_receiver(TREASURY, refuse)
        assert ledger.create(ALICE, b"", 0) == 1


class TestHookView:
    """The receiving hook runs after the operation's effects are applied."""

    def test_hook_sees_committed_effects(self, ledger: IdentityLedger) -> None:
        ledger.create(ALICE, b"", 0)
        seen: dict[str, Any] = {}

        def observe(sender: str, amount: int) -> None:
            seen["sender"] = sender
            seen["amount"] = amount
            seen["next_id"] = ledger.next_id
            seen["owner"] = ledger.owner_of(2)
            seen["treasury_balance"] = ledger.balance_of(TREASURY)

        ledger.register_receiver(TREASURY, observe)
        ledger.create(ALICE, b"", GENESIS_PRICE)

        assert seen == {
            "sender": ALICE,
            "amount": GENESIS_PRICE,
            "next_id": 3,
            "owner": ALICE,
            "treasury_balance": GENESIS_PRICE,
        }

    def test_nested_mutation_rolled_back_with_outer(self, ledger: IdentityLedger) -> None:
        """Work done inside the hook is undone when the hook then refuses."""
        identity_id = ledger.create(BOB, b"", 0)
        ledger.create(ALICE, b"", 0)

        def rename_then_refuse(sender: str, amount: int) -> None:
            ledger.set_name(BOB, identity_id, "inside-hook")
            raise RuntimeError("changed my mind")

        ledger.register_receiver(TREASURY, rename_then_refuse)
        with pytest.raises(TransferFailed):
            ledger.create(ALICE, b"", GENESIS_PRICE)

        assert ledger.get_identity(identity_id).name == ""
        assert ledger.name_to_id("inside-hook") == 0
        assert ledger.event_log.events("name_set") == []

    def test_nested_mutation_kept_on_success(self, ledger: IdentityLedger) -> None:
        identity_id = ledger.create(BOB, b"", 0)
        ledger.create(ALICE, b"", 0)

        def rename(sender: str, amount: int) -> None:
            ledger.set_name(BOB, identity_id, "inside-hook")

        ledger.register_receiver(TREASURY, rename)
        ledger.create(ALICE, b"", GENESIS_PRICE)
        assert ledger.name_to_id("inside-hook") == identity_id


class TestReentrancy:
    """Payable entry points reject nested entry."""

    def test_reentrant_create_rejected(self, ledger: IdentityLedger) -> None:
        ledger.create(ALICE, b"", 0)
        captured: list[ErrorCode] = []

        def reenter(sender: str, amount: int) -> None:
            try:
                ledger.create(BOB, b"", 0)
            except InvalidOperation as exc:
                captured.append(exc.code)

        ledger.register_receiver(TREASURY, reenter)
        ledger.create(ALICE, b"", GENESIS_PRICE)

        assert captured == [ErrorCode.REENTRANT_CALL]
        assert ledger.next_id == 3
        assert ledger.mint_count(BOB) == 0

    def test_reentrant_activation_rejected(self, ledger: IdentityLedger) -> None:
        ledger.register_module(ADMIN, "plain", MODULE_REF)
        bob_identity = ledger.create(BOB, b"", 0)
        ledger.create(ALICE, b"", 0)
        captured: list[ErrorCode] = []

        def reenter(sender: str, amount: int) -> None:
            try:
                ledger.activate_module(BOB, bob_identity, "plain")
            except InvalidOperation as exc:
                captured.append(exc.code)

        ledger.register_receiver(TREASURY, reenter)
        ledger.create(ALICE, b"", GENESIS_PRICE)

        assert captured == [ErrorCode.REENTRANT_CALL]
        assert not ledger.is_module_active(bob_identity, "plain")

    def test_guard_released_after_failure(self, ledger: IdentityLedger) -> None:
        with pytest.raises(InvalidOperation):
            ledger.create(ALICE, bytes(100), 0)
        assert ledger.create(ALICE, b"", 0) == 1


class TestEventPublication:
    """Events are published in order, once the operation commits."""

    def test_create_event_order(self, ledger: IdentityLedger) -> None:
        ledger.create(ALICE, b"", 0)
        ledger.create(ALICE, b"\x02", GENESIS_PRICE)
        types = [e["event_type"] for e in ledger.event_log.read_recent(2)]
        assert types == ["identity_created", "value_forwarded"]
        created = ledger.event_log.events("identity_created")[-1]
        assert created["identity_id"] == 2
        assert created["visual_config"] == "02"

    def test_subscriber_sees_nothing_mid_operation(self, ledger: IdentityLedger) -> None:
        ledger.create(ALICE, b"", 0)
        published: list[str] = []
        during_hook: list[int] = []
        ledger.event_log.subscribe(lambda e: published.append(e["event_type"]))

        def observe(sender: str, amount: int) -> None:
            during_hook.append(len(published))

        ledger.register_receiver(TREASURY, observe)
        ledger.create(ALICE, b"", GENESIS_PRICE)

        assert during_hook == [0]
        assert published == ["identity_created", "value_forwarded"]

    def test_sequences_increase(self, ledger: IdentityLedger) -> None:
        ledger.create(ALICE, b"", 0)
        ledger.set_name(ALICE, 1, "Ada")
        sequences = [e["sequence"] for e in ledger.event_log.events()]
        assert sequences == sorted(sequences)
        assert len(set(sequences)) == len(sequences)


class TestRollbackCost:
    """Rollback is driven by a per-operation undo journal."""

    def test_caught_inner_failure_keeps_outer_work(self, ledger: IdentityLedger) -> None:
        """A hook that catches a failed nested call keeps the outer operation."""
        bob_id = ledger.create(BOB, b"", 0)
        ledger.create(ALICE, b"", 0)

        def store_then_fail(sender: str, amount: int) -> None:
            ledger.store(BOB, bob_id, "kept", b"1")
            try:
                ledger.set_bio(BOB, bob_id, "b" * 1000)
            except InvalidOperation:
                pass

        ledger.register_receiver(TREASURY, store_then_fail)
        paid_id = ledger.create(ALICE, b"", GENESIS_PRICE)

        assert ledger.owner_of(paid_id) == ALICE
        assert ledger.get_data(bob_id, "kept") == b"1"
        assert ledger.get_identity(bob_id).bio == ""
        assert ledger.balance_of(TREASURY) == GENESIS_PRICE

    def test_rollback_keeps_existing_messages(self, ledger: IdentityLedger) -> None:
        alice_id = ledger.create(ALICE, b"", 0)
        bob_id = ledger.create(BOB, b"", 0)
        for _ in range(50):
            ledger.send_message(ALICE, alice_id, bob_id, 7, 0, b"x")

        ledger.register_receiver(TREASURY, refuse)
        with pytest.raises(TransferFailed):
            ledger.create(ALICE, b"", GENESIS_PRICE)

        assert ledger.message_count() == 50
        assert len(ledger.inbox(bob_id)) == 50
        assert len(ledger.channel_messages(7)) == 50
        assert ledger.get_reputation_counters(alice_id).messages_sent == 50

    def test_failed_send_leaves_indices_untouched(self, ledger: IdentityLedger) -> None:
        alice_id = ledger.create(ALICE, b"", 0)
        bob_id = ledger.create(BOB, b"", 0)
        ledger.send_message(ALICE, alice_id, bob_id, 7, 0, b"x")

        def send_then_refuse(sender: str, amount: int) -> None:
            ledger.send_message(ALICE, alice_id, bob_id, 9, 0, b"y")
            raise RuntimeError("no")

        ledger.register_receiver(TREASURY, send_then_refuse)
        with pytest.raises(TransferFailed):
            ledger.create(ALICE, b"", GENESIS_PRICE)

        assert ledger.message_count() == 1
        assert len(ledger.inbox(bob_id)) == 1
        assert ledger.channel_messages(9) == []
        assert 9 not in ledger.state.channel_index

    def test_cost_does_not_grow_with_message_log(self, ledger: IdentityLedger) -> None:
        alice_id = ledger.create(ALICE, b"", 0)
        bob_id = ledger.create(BOB, b"", 0)

        def timed_sends(count: int) -> float:
            start = time.perf_counter()
            for _ in range(count):
                ledger.send_message(ALICE, alice_id, bob_id, 7, 0, b"payload")
            return time.perf_counter() - start

        early = timed_sends(200)
        for _ in range(4000):
            ledger.send_message(ALICE, alice_id, bob_id, 7, 0, b"payload")
        late = timed_sends(200)

        # Copying the log on every send made this roughly 50x slower.
        assert late < early * 5 + 0.05
