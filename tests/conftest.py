"""
Shared pytest fixtures for the RewardFlow test suite.
"""

import pytest

from rewardflow_core.clock import ManualClock
from rewardflow_core.ledger import RewardLedger
from rewardflow_core.precision import parse_units
from rewardflow_core.rewarder import MultiplierRewarder
from rewardflow_core.token import BalanceBook

VAULT = "fountain"
OWNER = "rewarder"
USER = "user"
REWARD_PER_SECOND = parse_units("0.01")


@pytest.fixture
def clock():
    return ManualClock(start=1_700_000_000)


@pytest.fixture
def reward_token():
    """Reward token with the owner holding the whole supply."""
    token = BalanceBook("RWD")
    token.mint(OWNER, parse_units("1000000"))
    return token


@pytest.fixture
def ledger(reward_token, clock):
    """Ledger emitting 0.01 RWD/s and funded with 5000 RWD."""
    led = RewardLedger(reward_token, vault=VAULT, owner=OWNER, clock=clock)
    led.set_reward_per_second(OWNER, REWARD_PER_SECOND)
    reward_token.transfer(OWNER, led.address, parse_units("5000"))
    return led


@pytest.fixture
def dummy_token():
    token = BalanceBook("DUM")
    token.mint("rewarder-mock", parse_units("1000000"))
    return token


@pytest.fixture
def rewarder(dummy_token, ledger):
    """Secondary rewarder bound to the ledger, paying 1 DUM per RWD harvested."""
    return MultiplierRewarder(dummy_token, parse_units("1"), ledger.address,
                              name="rewarder-mock")


@pytest.fixture
def pool(ledger, rewarder):
    """One pool (weight 10) with the multiplier rewarder; returns its pid."""
    return ledger.add(OWNER, 10, "STK", rewarder)
