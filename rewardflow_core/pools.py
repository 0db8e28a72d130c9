"""
Pool registry and user position table.

Pools are append-only and addressed by a dense zero-based ``pid``.
Positions are keyed by ``(pid, account)``; they are created on first
mutation and kept at zero balance for the life of the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from rewardflow_core.errors import InvalidPool
from rewardflow_core.precision import checked_uint
from rewardflow_core.rewarder import NO_REWARDER, Rewarder, rewarder_id


@dataclass
class PoolInfo:
    """Accumulator state of one staking pool."""
    pid: int
    staked_token: str
    alloc_point: int
    last_reward_time: int
    acc_reward_per_share: int = 0
    supply: int = 0                 # total staked across all positions
    rewarder: Rewarder = field(default=NO_REWARDER)

    def to_dict(self) -> dict:
        return {
            "pid": self.pid,
            "staked_token": self.staked_token,
            "alloc_point": self.alloc_point,
            "acc_reward_per_share": self.acc_reward_per_share,
            "last_reward_time": self.last_reward_time,
            "supply": self.supply,
            "rewarder": rewarder_id(self.rewarder),
        }


@dataclass
class UserInfo:
    """A staked position.  ``reward_debt`` is signed."""
    amount: int = 0
    reward_debt: int = 0

    def to_dict(self) -> dict:
        return {"amount": self.amount, "reward_debt": self.reward_debt}


class PoolRegistry:
    """Ordered pools plus the sum of their allocation weights."""

    def __init__(self) -> None:
        self.pools: list[PoolInfo] = []
        self.total_alloc_point: int = 0

    def __len__(self) -> int:
        return len(self.pools)

    def __iter__(self) -> Iterator[PoolInfo]:
        return iter(self.pools)

    def get(self, pid: int) -> PoolInfo:
        """Return pool ``pid`` or raise ``InvalidPool``."""
        if isinstance(pid, bool) or not isinstance(pid, int):
            raise InvalidPool(pid, len(self.pools))
        if pid < 0 or pid >= len(self.pools):
            raise InvalidPool(pid, len(self.pools))
        return self.pools[pid]

    def has_token(self, staked_token: str) -> bool:
        return any(p.staked_token == staked_token for p in self.pools)

    def add(self, staked_token: str, alloc_point: int, now: int,
            rewarder: Rewarder = NO_REWARDER) -> PoolInfo:
        alloc_point = checked_uint(alloc_point, 64, "alloc_point")
        total = checked_uint(self.total_alloc_point + alloc_point, 64,
                             "total_alloc_point")
        pool = PoolInfo(
            pid=len(self.pools),
            staked_token=staked_token,
            alloc_point=alloc_point,
            last_reward_time=now,
            rewarder=rewarder,
        )
        self.pools.append(pool)
        self.total_alloc_point = total
        return pool

    def set_alloc_point(self, pid: int, alloc_point: int) -> PoolInfo:
        pool = self.get(pid)
        alloc_point = checked_uint(alloc_point, 64, "alloc_point")
        self.total_alloc_point = checked_uint(
            self.total_alloc_point - pool.alloc_point + alloc_point, 64,
            "total_alloc_point",
        )
        pool.alloc_point = alloc_point
        return pool

    def to_list(self) -> list[dict]:
        return [p.to_dict() for p in self.pools]


class PositionTable:
    """Per ``(pid, account)`` positions."""

    def __init__(self) -> None:
        self.positions: dict[tuple[int, str], UserInfo] = {}

    def get(self, pid: int, account: str) -> UserInfo:
        """Existing position, or a detached zero position (never stored)."""
        info = self.positions.get((pid, account))
        return info if info is not None else UserInfo()

    def ensure(self, pid: int, account: str) -> UserInfo:
        return self.positions.setdefault((pid, account), UserInfo())

    def discard(self, pid: int, account: str) -> None:
        self.positions.pop((pid, account), None)

    def exists(self, pid: int, account: str) -> bool:
        return (pid, account) in self.positions

    def for_pool(self, pid: int) -> Iterator[tuple[str, UserInfo]]:
        for (p, acct), info in self.positions.items():
            if p == pid:
                yield acct, info

    def to_dict(self) -> dict:
        out: dict[str, dict] = {}
        for (pid, acct), info in self.positions.items():
            out.setdefault(str(pid), {})[acct] = info.to_dict()
        return out
