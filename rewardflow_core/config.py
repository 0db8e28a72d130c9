"""
TOML-based configuration for RewardFlow ledgers.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

Usage:
    from rewardflow_core.config import load_config
    cfg = load_config("rewardflow.toml")
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rewardflow_core.precision import ACC_PRECISION

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import,no-redef]


@dataclass
class LedgerConfig:
    """Identities and emission settings of one ledger instance."""
    vault: str = "vault"
    owner: str = "owner"
    address: str = "reward-ledger"
    reward_token: str = "RWD"
    reward_per_second: int = 0
    # fixed-point scale of acc_reward_per_share
    precision: int = ACC_PRECISION
    hook_policy: str = "isolate"   # "isolate" or "propagate"


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class RewardFlowConfig:
    """Top-level configuration container."""
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def _validate(cfg: RewardFlowConfig) -> None:
    lc = cfg.ledger
    if lc.hook_policy not in ("isolate", "propagate"):
        raise ValueError(f"Unknown hook_policy: {lc.hook_policy!r}")
    if not isinstance(lc.precision, int) or lc.precision <= 0:
        raise ValueError(f"precision must be a positive integer, got {lc.precision!r}")
    if not isinstance(lc.reward_per_second, int) or lc.reward_per_second < 0:
        raise ValueError(
            f"reward_per_second must be a non-negative integer, "
            f"got {lc.reward_per_second!r}"
        )
    if lc.vault == lc.owner:
        raise ValueError("vault and owner must be distinct identities")


def load_config(path: str | None = None) -> RewardFlowConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        REWARDFLOW_VAULT              -> ledger.vault
        REWARDFLOW_OWNER              -> ledger.owner
        REWARDFLOW_REWARD_PER_SECOND  -> ledger.reward_per_second
        REWARDFLOW_PRECISION          -> ledger.precision
        REWARDFLOW_HOOK_POLICY        -> ledger.hook_policy
        REWARDFLOW_LOG_LEVEL          -> logging.level
        REWARDFLOW_LOG_FMT            -> logging.format
    """
    cfg = RewardFlowConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("ledger", cfg.ledger),
                ("logging", cfg.logging),
            ]:
                if section_name in data:
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("REWARDFLOW_VAULT"):
        cfg.ledger.vault = v
    if v := os.environ.get("REWARDFLOW_OWNER"):
        cfg.ledger.owner = v
    if v := os.environ.get("REWARDFLOW_REWARD_PER_SECOND"):
        cfg.ledger.reward_per_second = int(v)
    if v := os.environ.get("REWARDFLOW_PRECISION"):
        cfg.ledger.precision = int(v)
    if v := os.environ.get("REWARDFLOW_HOOK_POLICY"):
        cfg.ledger.hook_policy = v.lower()
    if v := os.environ.get("REWARDFLOW_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("REWARDFLOW_LOG_FMT"):
        cfg.logging.format = v

    _validate(cfg)
    return cfg
