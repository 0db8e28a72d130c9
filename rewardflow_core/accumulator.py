"""
Fixed-point reward accumulator math.

A pool's ``acc_reward_per_share`` is the running total of reward earned
per staked unit since the pool was created, scaled by the ledger's
precision constant.  Between two observations the increase is

    pool_reward = elapsed * reward_per_second * alloc_point // total_alloc_point
    delta       = pool_reward * precision // supply

and a position's entitlement is ``amount * acc // precision - reward_debt``.

The same ``project_acc`` function backs both the persisted update and the
read-only pending projection, so a projection at time T always equals the
value an update at T would store.
"""

from __future__ import annotations

from rewardflow_core.precision import (
    checked_div,
    checked_int,
    checked_mul,
    checked_uint,
)


def pool_reward(
    elapsed: int,
    reward_per_second: int,
    alloc_point: int,
    total_alloc_point: int,
) -> int:
    """Reward emitted to one pool over ``elapsed`` seconds."""
    if total_alloc_point == 0 or elapsed <= 0:
        return 0
    emitted = checked_mul(elapsed, reward_per_second, "pool reward")
    weighted = checked_mul(emitted, alloc_point, "pool reward")
    return checked_div(weighted, total_alloc_point, "pool reward")


def per_share_delta(reward: int, supply: int, precision: int) -> int:
    """Accumulator increase for ``reward`` spread over ``supply`` units."""
    if supply == 0:
        return 0
    return checked_div(
        checked_mul(reward, precision, "reward per share"),
        supply,
        "reward per share",
    )


def project_acc(
    acc: int,
    last_time: int,
    now: int,
    supply: int,
    reward_per_second: int,
    alloc_point: int,
    total_alloc_point: int,
    precision: int,
) -> int:
    """Accumulator value an update at ``now`` would produce."""
    if now <= last_time or supply == 0:
        return acc
    reward = pool_reward(now - last_time, reward_per_second,
                         alloc_point, total_alloc_point)
    return checked_uint(acc + per_share_delta(reward, supply, precision),
                        what="acc_reward_per_share")


def accumulated(amount: int, acc: int, precision: int) -> int:
    """Notional entitlement of ``amount`` since pool inception."""
    return checked_int(
        checked_mul(amount, acc, "accumulated reward") // precision,
        what="accumulated reward",
    )


def pending(amount: int, acc: int, reward_debt: int, precision: int) -> int:
    return checked_int(accumulated(amount, acc, precision) - reward_debt,
                       what="pending reward")
