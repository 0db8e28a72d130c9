"""
Post-operation invariant checks for the reward ledger.

  - Total allocation weight equals the sum of pool weights
  - Each pool's supply equals the sum of its positions' amounts
  - Accumulators never decrease
  - Last-reward timestamps never decrease
  - The pool list only grows
  - Staked amounts are non-negative

``capture`` snapshots the ledger before an operation and ``verify``
checks the invariants afterwards.  Checks return ``(passed, message)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LedgerSnapshot:
    """Fields the invariants compare across one operation."""
    pool_count: int = 0
    acc_per_share: dict[int, int] = field(default_factory=dict)
    last_reward_time: dict[int, int] = field(default_factory=dict)


class InvariantChecker:
    """
    Captures a snapshot of the ledger and validates invariants after an
    operation has run.
    """

    def __init__(self):
        self._snapshot: LedgerSnapshot | None = None

    def capture(self, ledger) -> None:
        snap = LedgerSnapshot(pool_count=ledger.pool_length())
        for pid in range(ledger.pool_length()):
            pool = ledger.pool_info(pid)
            snap.acc_per_share[pid] = pool.acc_reward_per_share
            snap.last_reward_time[pid] = pool.last_reward_time
        self._snapshot = snap

    def verify(self, ledger) -> tuple[bool, str]:
        """
        Verify all invariants against the current ledger state.
        Returns (passed, error_message).
        """
        errors: list[str] = []
        for check in (
            self._check_total_alloc_point,
            self._check_pool_supply,
            self._check_non_negative_amounts,
            self._check_monotonic,
        ):
            ok, msg = check(ledger)
            if not ok:
                errors.append(msg)
        if errors:
            return False, "; ".join(errors)
        return True, ""

    # ── individual checks ──────────────────────────────────────────

    def _check_total_alloc_point(self, ledger) -> tuple[bool, str]:
        total = sum(p.alloc_point for p in ledger._registry)
        if total != ledger.total_alloc_point:
            return False, (
                f"Total alloc point mismatch: registry says "
                f"{ledger.total_alloc_point}, pools sum to {total}"
            )
        return True, ""

    def _check_pool_supply(self, ledger) -> tuple[bool, str]:
        for pool in ledger._registry:
            staked = sum(u.amount for _, u in ledger._positions.for_pool(pool.pid))
            if staked != pool.supply:
                return False, (
                    f"Pool {pool.pid} supply {pool.supply} != "
                    f"sum of positions {staked}"
                )
        return True, ""

    def _check_non_negative_amounts(self, ledger) -> tuple[bool, str]:
        for pool in ledger._registry:
            for acct, info in ledger._positions.for_pool(pool.pid):
                if info.amount < 0:
                    return False, f"Negative stake for {acct} in pool {pool.pid}"
        return True, ""

    def _check_monotonic(self, ledger) -> tuple[bool, str]:
        if self._snapshot is None:
            return True, ""
        snap = self._snapshot
        if ledger.pool_length() < snap.pool_count:
            return False, (
                f"Pool count decreased: {snap.pool_count} -> {ledger.pool_length()}"
            )
        for pid, before in snap.acc_per_share.items():
            pool = ledger.pool_info(pid)
            if pool.acc_reward_per_share < before:
                return False, (
                    f"Pool {pid} accumulator decreased: "
                    f"{before} -> {pool.acc_reward_per_share}"
                )
            if pool.last_reward_time < snap.last_reward_time[pid]:
                return False, (
                    f"Pool {pid} last_reward_time decreased: "
                    f"{snap.last_reward_time[pid]} -> {pool.last_reward_time}"
                )
        return True, ""
