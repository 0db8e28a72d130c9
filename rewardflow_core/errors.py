"""
Error taxonomy for the RewardFlow ledger.

Every error carries a ``context`` dict (pool index, caller identity and
the violated condition) so the calling vault can surface an actionable
message without parsing strings.
"""

from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    """Base class for all ledger failures."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.context: dict[str, Any] = context

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": str(self), **self.context}


class Unauthorized(LedgerError):
    """Caller is not the identity bound for this operation."""

    def __init__(self, caller: str, expected: str, action: str,
                 reason: str = "not called by correct fountain") -> None:
        super().__init__(
            f"{reason}: {action} called by {caller}",
            caller=caller, expected=expected, action=action,
        )
        self.caller = caller
        self.action = action


class InvalidPool(LedgerError):
    def __init__(self, pid: Any, pool_length: int) -> None:
        super().__init__(
            f"invalid pool {pid!r} (pool length {pool_length})",
            pid=pid, pool_length=pool_length,
        )
        self.pid = pid


class InsufficientBalance(LedgerError):
    def __init__(self, pid: int, account: str,
                 requested: int, available: int) -> None:
        super().__init__(
            f"withdraw {requested} exceeds staked {available} "
            f"for {account} in pool {pid}",
            pid=pid, account=account, requested=requested, available=available,
        )


class ArithmeticOverflow(LedgerError):
    def __init__(self, what: str, value: int, bound: str) -> None:
        super().__init__(
            f"arithmetic overflow in {what or 'value'}: {value} outside {bound}",
            what=what, value=value, bound=bound,
        )


class InsufficientRewardSupply(LedgerError):
    """The reward-asset holder cannot cover a transfer."""

    def __init__(self, holder: str, requested: int, available: int) -> None:
        super().__init__(
            f"{holder} holds {available}, cannot transfer {requested}",
            holder=holder, requested=requested, available=available,
        )
