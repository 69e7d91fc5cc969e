"""
Single-asset balance tracking for the in-memory ledger.

Implements BalanceTable[Account] -> Amount
"""

from typing import Dict

Account = str
Amount = int  # Non-negative integer in the u128 domain

MAX_AMOUNT = 2**128 - 1


class BalanceTable:
    """
    Balance table mapping account -> amount.

    Note: this class stores balances in a plain dict. Do not rely on dict
    iteration order; callers sort keys explicitly at serialization / hashing
    boundaries.
    """

    def __init__(self):
        """Initialize empty balance table."""
        self._balances: Dict[Account, Amount] = {}

    def get(self, account: Account) -> Amount:
        """Get balance for account. Returns 0 if not found."""
        return self._balances.get(account, 0)

    def set(self, account: Account, amount: Amount) -> None:
        """
        Set balance for account.

        Raises:
            ValueError: If amount is negative or above the u128 bound
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount > MAX_AMOUNT:
            raise ValueError(f"Balance exceeds u128: {amount}")
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop(account, None)
        else:
            self._balances[account] = amount

    def add(self, account: Account, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(account)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(account, new_balance)

    def subtract(self, account: Account, delta: Amount) -> None:
        """
        Subtract a non-negative delta from balance.

        Raises:
            ValueError: If delta is negative or insufficient balance
        """
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(account, -delta)

    def get_all_balances(self) -> Dict[Account, Amount]:
        return dict(self._balances)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
