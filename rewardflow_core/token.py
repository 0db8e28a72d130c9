"""
Reward-asset transfer primitive.

The ledger only needs a push-style ``transfer`` and a ``balance_of``
query; anything satisfying ``TokenTransfer`` can back it.  ``BalanceBook``
is the in-memory implementation used by default and in tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from rewardflow_core.errors import InsufficientRewardSupply
from rewardflow_core.precision import checked_add, checked_uint


@runtime_checkable
class TokenTransfer(Protocol):
    symbol: str

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...


class BalanceBook:
    """Fungible balances keyed by account identity."""

    def __init__(self, symbol: str = "RWD") -> None:
        self.symbol = symbol
        self.balances: dict[str, int] = {}
        self._total_supply: int = 0

    def mint(self, account: str, amount: int) -> None:
        amount = checked_uint(amount, what="mint amount")
        self._total_supply = checked_add(self._total_supply, amount, "total supply")
        self.balances[account] = self.balances.get(account, 0) + amount

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        amount = checked_uint(amount, what="transfer amount")
        available = self.balances.get(sender, 0)
        if amount > available:
            raise InsufficientRewardSupply(sender, amount, available)
        self.balances[sender] = available - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "total_supply": self._total_supply,
            "balances": dict(self.balances),
        }
