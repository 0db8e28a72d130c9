"""
RewardFlow - multi-pool, time-weighted reward accrual for staking programs.

Key features:
- Per-pool fixed-point accumulators fed by a global emission rate
- Allocation weights splitting the emission across pools
- Reward-debt positions with exact integer entitlement
- A single authorized vault for every balance-changing call
- Optional per-pool secondary rewarders notified on each settlement
"""

__version__ = "0.1.0"
__all__ = [
    "accumulator",
    "clock",
    "config",
    "errors",
    "events",
    "invariants",
    "ledger",
    "logging_config",
    "pools",
    "precision",
    "rewarder",
    "token",
]
