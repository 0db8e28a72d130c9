"""
Secondary-reward hooks for RewardFlow pools.

Each pool may carry one rewarder that distributes an auxiliary asset
alongside the primary reward.  The ledger notifies it after every
settlement, passing its own identity as the caller:

    on_reward(caller, pid, account, new_amount, paid)

  - ``new_amount`` — the account's staked amount after the settlement
  - ``paid``       — primary reward released by this call (0 when none)

A pool without a hook holds ``NO_REWARDER`` rather than ``None`` so that
the ledger never has to branch on a sentinel identity.

Hook failures are handled according to the ledger's ``HookPolicy``:
``ISOLATE`` logs and records them, ``PROPAGATE`` aborts the settlement.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

from rewardflow_core.errors import Unauthorized
from rewardflow_core.precision import UNITS_PER_TOKEN, checked_uint
from rewardflow_core.token import TokenTransfer

logger = logging.getLogger("rewardflow_rewarder")


class HookPolicy(Enum):
    ISOLATE = "isolate"
    PROPAGATE = "propagate"


@runtime_checkable
class Rewarder(Protocol):
    """Capability interface of a secondary-reward hook."""

    name: str

    def on_reward(self, caller: str, pid: int, account: str,
                  new_amount: int, paid: int) -> None: ...

    def pending_tokens(self, pid: int, account: str,
                       paid: int) -> list[tuple[str, int]]: ...


class NoRewarder:
    """The "no hook configured" variant."""

    name = "none"

    def on_reward(self, caller: str, pid: int, account: str,
                  new_amount: int, paid: int) -> None:
        return None

    def pending_tokens(self, pid: int, account: str,
                       paid: int) -> list[tuple[str, int]]:
        return []

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_REWARDER"


NO_REWARDER = NoRewarder()


def rewarder_id(rewarder: Rewarder) -> str | None:
    """Identity used in event payloads (``None`` for no hook)."""
    if not rewarder:
        return None
    return rewarder.name


class MultiplierRewarder:
    """
    Pays ``paid * multiplier // precision`` of an auxiliary token per
    settlement.

    Bound to one ledger: notifications from any other caller raise
    ``Unauthorized``.  The auxiliary balance is held under ``name`` in
    ``token``; if it runs dry the transfer error surfaces to the ledger,
    which applies its hook policy.
    """

    def __init__(self, token: TokenTransfer, multiplier: int, ledger: str,
                 name: str = "multiplier-rewarder",
                 precision: int = UNITS_PER_TOKEN) -> None:
        if precision <= 0:
            raise ValueError("precision must be positive")
        self.token = token
        self.multiplier = checked_uint(multiplier, what="rewarder multiplier")
        self.ledger = ledger
        self.name = name
        self.precision = precision
        self.notifications: list[tuple[int, str, int, int]] = []

    def _aux_amount(self, paid: int) -> int:
        return paid * self.multiplier // self.precision

    def on_reward(self, caller: str, pid: int, account: str,
                  new_amount: int, paid: int) -> None:
        if caller != self.ledger:
            logger.warning(f"{self.name}: rejected notification from {caller}")
            raise Unauthorized(caller, self.ledger, "on_reward",
                               reason="caller is not the bound ledger")
        self.notifications.append((pid, account, new_amount, paid))
        aux = self._aux_amount(paid)
        if aux > 0:
            self.token.transfer(self.name, account, aux)
            logger.debug(f"{self.name}: paid {aux} to {account} (pool {pid})")

    def pending_tokens(self, pid: int, account: str,
                       paid: int) -> list[tuple[str, int]]:
        return [(self.token.symbol, self._aux_amount(paid))]

    def __repr__(self) -> str:
        return (f"MultiplierRewarder({self.name!r}, ledger={self.ledger!r}, "
                f"multiplier={self.multiplier})")
