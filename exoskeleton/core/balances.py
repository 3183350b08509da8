"""Account balances behind payable ledger operations

create and premium activate_module move the caller's payment to the
treasury through this book; deposit credits value arriving from outside.
Amounts are integer wei and a debit that would overdraw is refused.
"""

from __future__ import annotations


class BalanceBook:
    """Integer balances per account, over a ledger-owned mapping.

    Unknown accounts read as 0 and appear on first credit. The ledger
    journals the touched entries before calling in, so the book itself
    never needs to undo anything.
    """

    balances: dict[str, int]

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self.balances = balances if balances is not None else {}

    def get_balance(self, account: str) -> int:
        """Get an account's balance (0 for unknown accounts)."""
        return self.balances.get(account, 0)

    def can_afford(self, account: str, amount: int) -> bool:
        return self.get_balance(account) >= amount

    def credit(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        self.balances[account] = self.get_balance(account) + amount

    def transfer(self, from_id: str, to_id: str, amount: int) -> bool:
        """Move value between accounts. Returns False if the sender is short.

        A zero amount is a successful no-op.
        """
        if amount < 0:
            return False
        if amount == 0:
            return True
        if not self.can_afford(from_id, amount):
            return False
        self.balances[from_id] = self.get_balance(from_id) - amount
        self.balances[to_id] = self.get_balance(to_id) + amount
        return True
