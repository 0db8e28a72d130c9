"""
Multi-pool reward ledger.

Stakers never call the ledger directly: a single vault, bound at
construction, custodies the staked asset and forwards each user action
here.  The ledger keeps, per pool, a fixed-point accumulator of reward
earned per staked unit and, per position, a reward-debt baseline:

    pending = amount * acc_reward_per_share // precision - reward_debt

Settlement rules
────────────────
  deposit / withdraw      change ``amount`` and move the baseline so that
                          the pending reward is carried forward exactly
                          (the debt may go negative)
  harvest                 pays ``pending`` (when > 0) and resets the
                          baseline to ``amount * acc // precision``
  withdraw_and_harvest    both of the above in one step
  emergency_withdraw      zeroes the position, pays no reward

After each settlement has paid out, the pool's secondary rewarder (if
any) is notified with ``(pid, account, new_amount, paid)``; the ledger
passes its own address as the caller.

Every public method holds the ledger's re-entrant lock for its whole
duration, so concurrent callers observe a strict sequential order.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, Optional

from rewardflow_core.accumulator import accumulated, pending, project_acc
from rewardflow_core.clock import MonotonicClock
from rewardflow_core.errors import (
    InsufficientBalance,
    InsufficientRewardSupply,
    Unauthorized,
)
from rewardflow_core.events import (
    Deposit,
    EmergencyWithdraw,
    EventLog,
    Harvest,
    HookFailed,
    LogPoolAddition,
    LogRewardPerSecond,
    LogSetPool,
    LogUpdatePool,
    Withdraw,
)
from rewardflow_core.pools import PoolInfo, PoolRegistry, PositionTable, UserInfo
from rewardflow_core.precision import (
    ACC_PRECISION,
    checked_int,
    checked_uint,
    to_int256,
)
from rewardflow_core.rewarder import (
    NO_REWARDER,
    HookPolicy,
    Rewarder,
    rewarder_id,
)
from rewardflow_core.token import TokenTransfer

logger = logging.getLogger("rewardflow_ledger")


def _check_amount(amount: int, what: str = "amount") -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"{what} must be an integer, got {amount!r}")
    if amount < 0:
        raise ValueError(f"{what} must be non-negative, got {amount}")
    return checked_uint(amount, what=what)


class RewardLedger:
    """Reward accrual ledger bound to one reward asset and one vault."""

    def __init__(
        self,
        reward_token: TokenTransfer,
        vault: str,
        owner: str,
        *,
        address: str = "reward-ledger",
        reward_per_second: int = 0,
        precision: int = ACC_PRECISION,
        clock: Optional[Callable[[], int]] = None,
        hook_policy: HookPolicy = HookPolicy.ISOLATE,
        event_log: Optional[EventLog] = None,
    ) -> None:
        if precision <= 0:
            raise ValueError("precision must be positive")
        self._reward_token = reward_token
        self._vault = vault
        self._owner = owner
        self._address = address
        self._precision = precision
        self._reward_per_second = _check_amount(reward_per_second,
                                                "reward_per_second")
        self._clock = clock if clock is not None else MonotonicClock()
        self._hook_policy = HookPolicy(hook_policy)
        self._registry = PoolRegistry()
        self._positions = PositionTable()
        self.events = event_log if event_log is not None else EventLog()
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, cfg, reward_token: TokenTransfer,
                    clock: Optional[Callable[[], int]] = None) -> "RewardLedger":
        """Build a ledger from a loaded ``RewardFlowConfig``."""
        lc = cfg.ledger
        return cls(
            reward_token,
            vault=lc.vault,
            owner=lc.owner,
            address=lc.address,
            reward_per_second=lc.reward_per_second,
            precision=lc.precision,
            clock=clock,
            hook_policy=HookPolicy(lc.hook_policy),
        )

    # ── identities & parameters ─────────────────────────────────────

    @property
    def vault(self) -> str:
        return self._vault

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def address(self) -> str:
        return self._address

    @property
    def precision(self) -> int:
        return self._precision

    @property
    def reward_per_second(self) -> int:
        return self._reward_per_second

    @property
    def total_alloc_point(self) -> int:
        return self._registry.total_alloc_point

    @property
    def hook_policy(self) -> HookPolicy:
        return self._hook_policy

    # ── internal helpers ────────────────────────────────────────────

    def _now(self) -> int:
        return checked_uint(int(self._clock()), 64, "timestamp")

    def _require_vault(self, caller: str, action: str) -> None:
        if caller != self._vault:
            logger.warning(f"Rejected {action} from {caller}: not the vault",
                           extra={"action": action})
            raise Unauthorized(caller, self._vault, action)

    def _require_owner(self, caller: str, action: str) -> None:
        if caller != self._owner:
            logger.warning(f"Rejected {action} from {caller}: not the owner",
                           extra={"action": action})
            raise Unauthorized(caller, self._owner, action,
                               reason="caller is not the owner")

    def _update_pool(self, pool: PoolInfo) -> PoolInfo:
        now = self._now()
        if now <= pool.last_reward_time:
            return pool
        if pool.supply > 0:
            pool.acc_reward_per_share = project_acc(
                pool.acc_reward_per_share,
                pool.last_reward_time,
                now,
                pool.supply,
                self._reward_per_second,
                pool.alloc_point,
                self._registry.total_alloc_point,
                self._precision,
            )
        pool.last_reward_time = now
        self.events.emit(LogUpdatePool(
            pid=pool.pid,
            last_reward_time=now,
            lp_supply=pool.supply,
            acc_reward_per_share=pool.acc_reward_per_share,
        ))
        return pool

    def _notify(self, pool: PoolInfo, account: str, new_amount: int,
                paid: int, isolate: bool = False) -> None:
        rewarder = pool.rewarder
        if not rewarder:
            return
        try:
            rewarder.on_reward(self._address, pool.pid, account, new_amount, paid)
        except Exception as exc:
            if not isolate and self._hook_policy is HookPolicy.PROPAGATE:
                raise
            logger.warning(
                f"Rewarder {rewarder_id(rewarder)} failed for pool {pool.pid}, "
                f"account {account}: {exc}",
                extra={"pid": pool.pid, "account": account, "paid": paid},
            )
            self.events.emit(HookFailed(
                pid=pool.pid,
                account=account,
                rewarder=rewarder_id(rewarder),
                error=str(exc),
            ))

    def _settle(
        self,
        action: str,
        caller: str,
        pid: int,
        account: str,
        to: str,
        amount: int,
        sign: int,
        harvest: bool,
    ) -> int:
        """Shared body of deposit / withdraw / harvest.  Returns reward paid."""
        self._require_vault(caller, action)
        delta = sign * _check_amount(amount)
        pool = self._registry.get(pid)
        user = self._positions.get(pid, account)

        if delta < 0 and -delta > user.amount:
            raise InsufficientBalance(pid, account, -delta, user.amount)
        new_amount = checked_uint(user.amount + delta, what="staked amount")
        new_supply = checked_uint(pool.supply + delta, what="pool supply")

        self._update_pool(pool)
        acc = pool.acc_reward_per_share
        owed = pending(user.amount, acc, user.reward_debt, self._precision)
        baseline = accumulated(new_amount, acc, self._precision)

        if harvest:
            new_debt = to_int256(baseline, what="reward_debt")
            paid = owed if owed > 0 else 0
        else:
            new_debt = checked_int(baseline - owed, what="reward_debt")
            paid = 0

        if paid:
            available = self._reward_token.balance_of(self._address)
            if paid > available:
                raise InsufficientRewardSupply(self._address, paid, available)

        # commit, pay, then notify; a failed payout never reaches the hook,
        # a propagated hook failure returns the payout
        created = not self._positions.exists(pid, account)
        position = self._positions.ensure(pid, account)
        saved = (position.amount, position.reward_debt, pool.supply)
        position.amount = new_amount
        position.reward_debt = new_debt
        pool.supply = new_supply
        try:
            if paid:
                self._reward_token.transfer(self._address, to, paid)
            try:
                self._notify(pool, account, new_amount, paid)
            except Exception:
                if paid:
                    self._reward_token.transfer(to, self._address, paid)
                raise
        except Exception:
            position.amount, position.reward_debt, pool.supply = saved
            if created:
                self._positions.discard(pid, account)
            raise

        if delta > 0 or (delta == 0 and not harvest):
            self.events.emit(Deposit(account=account, pid=pid,
                                     amount=delta, to=to))
        if delta < 0:
            self.events.emit(Withdraw(account=account, pid=pid,
                                      amount=-delta, to=to))
        if harvest:
            self.events.emit(Harvest(account=account, pid=pid,
                                     amount=paid, to=to))
        logger.debug(
            f"{action} settled: delta={delta} staked={new_amount}",
            extra={"action": action, "pid": pid, "account": account,
                   "to": to, "amount": delta, "paid": paid},
        )
        return paid

    # ── views ───────────────────────────────────────────────────────

    def pool_length(self) -> int:
        with self._lock:
            return len(self._registry)

    def pool_info(self, pid: int) -> PoolInfo:
        """Copy of pool ``pid``'s stored state."""
        with self._lock:
            return replace(self._registry.get(pid))

    def user_info(self, pid: int, account: str) -> UserInfo:
        with self._lock:
            self._registry.get(pid)
            return replace(self._positions.get(pid, account))

    def pending_reward(self, pid: int, account: str) -> int:
        """
        Reward ``account`` could harvest from pool ``pid`` right now.

        Projects the accumulator to the current clock reading without
        persisting it; an ``update_pool`` at the same instant yields the
        same figure.
        """
        with self._lock:
            pool = self._registry.get(pid)
            user = self._positions.get(pid, account)
            acc = project_acc(
                pool.acc_reward_per_share,
                pool.last_reward_time,
                self._now(),
                pool.supply,
                self._reward_per_second,
                pool.alloc_point,
                self._registry.total_alloc_point,
                self._precision,
            )
            return pending(user.amount, acc, user.reward_debt, self._precision)

    def pending_tokens(self, pid: int, account: str) -> list[tuple[str, int]]:
        """Auxiliary rewards the pool's rewarder would pay on harvest."""
        with self._lock:
            pool = self._registry.get(pid)
            owed = self.pending_reward(pid, account)
            return pool.rewarder.pending_tokens(pid, account, max(owed, 0))

    # ── accrual ─────────────────────────────────────────────────────

    def update_pool(self, pid: int) -> PoolInfo:
        """Bring pool ``pid``'s accumulator current.  Returns a copy."""
        with self._lock:
            return replace(self._update_pool(self._registry.get(pid)))

    def mass_update_pools(self, pids: Iterable[int]) -> None:
        """
        Update each pool in the given order.

        Stops at the first invalid index with ``InvalidPool``; pools
        earlier in the sequence stay updated.
        """
        with self._lock:
            for pid in pids:
                self._update_pool(self._registry.get(pid))

    # ── vault-only position changes ─────────────────────────────────

    def deposit(self, caller: str, pid: int, amount: int, to: str) -> None:
        """Stake ``amount`` for ``to``."""
        with self._lock:
            self._settle("deposit", caller, pid, to, to, amount, 1,
                         harvest=False)

    def withdraw(self, caller: str, pid: int, amount: int, to: str) -> None:
        """Unstake ``amount`` from ``to``; pending reward stays claimable."""
        with self._lock:
            self._settle("withdraw", caller, pid, to, to, amount, -1,
                         harvest=False)

    def harvest(self, caller: str, pid: int, account: str, to: str) -> int:
        """Pay ``account``'s pending reward to ``to``."""
        with self._lock:
            return self._settle("harvest", caller, pid, account, to, 0, 1,
                                harvest=True)

    def withdraw_and_harvest(self, caller: str, pid: int, amount: int,
                             to: str) -> int:
        with self._lock:
            return self._settle("withdraw_and_harvest", caller, pid, to, to,
                                amount, -1, harvest=True)

    def emergency_withdraw(self, caller: str, pid: int, to: str) -> int:
        """
        Drop ``to``'s whole stake without touching rewards.

        Returns the amount the vault should release.  Rewarder failures
        are always isolated here.
        """
        with self._lock:
            self._require_vault(caller, "emergency_withdraw")
            pool = self._registry.get(pid)
            amount = 0
            if self._positions.exists(pid, to):
                position = self._positions.ensure(pid, to)
                amount = position.amount
                pool.supply -= amount
                position.amount = 0
                position.reward_debt = 0
            self._notify(pool, to, 0, 0, isolate=True)
            self.events.emit(EmergencyWithdraw(account=to, pid=pid,
                                               amount=amount, to=to))
            logger.info(
                f"Emergency withdraw of {amount} from pool {pid} for {to}",
                extra={"action": "emergency_withdraw", "pid": pid,
                       "account": to, "amount": amount},
            )
            return amount

    # ── owner-only administration ───────────────────────────────────

    def add(self, caller: str, alloc_point: int, staked_token: str,
            rewarder: Optional[Rewarder] = None) -> int:
        """Append a pool and return its ``pid``."""
        with self._lock:
            self._require_owner(caller, "add")
            if self._registry.has_token(staked_token):
                raise ValueError(f"staked token {staked_token} already added")
            pool = self._registry.add(
                staked_token,
                alloc_point,
                self._now(),
                rewarder if rewarder is not None else NO_REWARDER,
            )
            self.events.emit(LogPoolAddition(
                pid=pool.pid,
                alloc_point=pool.alloc_point,
                lp_token=staked_token,
                rewarder=rewarder_id(pool.rewarder),
            ))
            logger.info(
                f"Added pool {pool.pid} for {staked_token} "
                f"(alloc {pool.alloc_point}, total {self.total_alloc_point})"
            )
            return pool.pid

    def set(self, caller: str, pid: int, alloc_point: int,
            rewarder: Optional[Rewarder] = None,
            overwrite: bool = False) -> None:
        """
        Re-weight pool ``pid``.  The rewarder is replaced only when
        ``overwrite`` is true.
        """
        with self._lock:
            self._require_owner(caller, "set")
            pool = self._registry.set_alloc_point(pid, alloc_point)
            if overwrite:
                pool.rewarder = rewarder if rewarder is not None else NO_REWARDER
            self.events.emit(LogSetPool(
                pid=pid,
                alloc_point=pool.alloc_point,
                rewarder=rewarder_id(pool.rewarder),
                overwrite=overwrite,
            ))
            logger.info(
                f"Set pool {pid} alloc {pool.alloc_point} "
                f"(total {self.total_alloc_point}, overwrite={overwrite})"
            )

    def set_reward_per_second(self, caller: str, reward_per_second: int) -> None:
        """Change the emission rate.  Pools are not updated first."""
        with self._lock:
            self._require_owner(caller, "set_reward_per_second")
            self._reward_per_second = _check_amount(reward_per_second,
                                                    "reward_per_second")
            self.events.emit(LogRewardPerSecond(
                reward_per_second=self._reward_per_second))
            logger.info(f"Reward per second set to {self._reward_per_second}")

    # ── snapshot ────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "address": self._address,
                "vault": self._vault,
                "owner": self._owner,
                "precision": self._precision,
                "reward_per_second": self._reward_per_second,
                "total_alloc_point": self._registry.total_alloc_point,
                "pools": self._registry.to_list(),
                "positions": self._positions.to_dict(),
            }
