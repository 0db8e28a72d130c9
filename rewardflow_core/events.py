"""
Ledger notifications.

Every state change the ledger makes is described by one event record.
Events are kept in an ordered ``EventLog`` and fanned out to any
subscribers (an indexer, a websocket bridge, a test).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Callable

logger = logging.getLogger("rewardflow_events")


@dataclass
class Event:
    name = "Event"

    def to_dict(self) -> dict:
        return {"event": self.name, **asdict(self)}


@dataclass
class LogPoolAddition(Event):
    name = "LogPoolAddition"
    pid: int
    alloc_point: int
    lp_token: str
    rewarder: str | None


@dataclass
class LogSetPool(Event):
    name = "LogSetPool"
    pid: int
    alloc_point: int
    rewarder: str | None
    overwrite: bool


@dataclass
class LogUpdatePool(Event):
    name = "LogUpdatePool"
    pid: int
    last_reward_time: int
    lp_supply: int
    acc_reward_per_share: int


@dataclass
class LogRewardPerSecond(Event):
    name = "LogRewardPerSecond"
    reward_per_second: int


@dataclass
class Deposit(Event):
    name = "Deposit"
    account: str
    pid: int
    amount: int
    to: str


@dataclass
class Withdraw(Event):
    name = "Withdraw"
    account: str
    pid: int
    amount: int
    to: str


@dataclass
class Harvest(Event):
    name = "Harvest"
    account: str
    pid: int
    amount: int
    to: str


@dataclass
class EmergencyWithdraw(Event):
    name = "EmergencyWithdraw"
    account: str
    pid: int
    amount: int
    to: str


@dataclass
class HookFailed(Event):
    name = "HookFailed"
    pid: int
    account: str
    rewarder: str | None
    error: str


@dataclass
class EventLog:
    """Ordered record of emitted events."""
    events: list[Event] = field(default_factory=list)
    subscribers: list[Callable[[Event], None]] = field(default_factory=list)

    def emit(self, event: Event) -> Event:
        self.events.append(event)
        logger.debug(f"{event.name} {asdict(event)}")
        for fn in list(self.subscribers):
            fn(event)
        return event

    def subscribe(self, fn: Callable[[Event], None]) -> None:
        self.subscribers.append(fn)

    def filter(self, name: str) -> list[Event]:
        return [e for e in self.events if e.name == name]

    def last(self, name: str | None = None) -> Event | None:
        for e in reversed(self.events):
            if name is None or e.name == name:
                return e
        return None

    def clear(self) -> None:
        self.events.clear()

    def to_list(self, limit: int = 50) -> list[dict]:
        return [e.to_dict() for e in self.events[-limit:]]
