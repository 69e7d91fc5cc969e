"""
Ledger adapter contract and an in-memory implementation.

The host ledger owns real fund custody. The engine only asks it to move value
between accounts; each `transfer` must be atomic on its own. Batch atomicity
is provided by the engine shell (compensating reversal on failure).
"""

from __future__ import annotations

from typing import Protocol

from ..state.balances import MAX_AMOUNT, Account, BalanceTable


class LedgerTransferError(Exception):
    """Raised by a ledger when a transfer cannot be applied (e.g. insufficient funds)."""


class LedgerAdapter(Protocol):
    def transfer(self, sender: Account, recipient: Account, amount: int) -> None:
        ...


class InMemoryLedger:
    """Ledger over a `BalanceTable`, for tests, simulations and embedded hosts."""

    def __init__(self, balances: BalanceTable | None = None) -> None:
        self.balances = balances if balances is not None else BalanceTable()

    def mint(self, account: Account, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"mint amount must be a non-negative int: {amount!r}")
        self.balances.add(account, amount)

    def balance_of(self, account: Account) -> int:
        return self.balances.get(account)

    def transfer(self, sender: Account, recipient: Account, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"transfer amount must be a non-negative int: {amount!r}")
        available = self.balances.get(sender)
        if amount > available:
            raise LedgerTransferError(
                f"insufficient funds: {sender} has {available}, needs {amount}"
            )
        if sender == recipient or amount == 0:
            return
        if self.balances.get(recipient) + amount > MAX_AMOUNT:
            raise LedgerTransferError(f"balance overflow for {recipient}")
        self.balances.subtract(sender, amount)
        self.balances.add(recipient, amount)

    def __repr__(self) -> str:
        return f"InMemoryLedger({self.balances!r})"
