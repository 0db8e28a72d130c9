"""Tests for the in-memory reward-asset balance book."""

import pytest

from rewardflow_core.errors import ArithmeticOverflow, InsufficientRewardSupply
from rewardflow_core.token import BalanceBook, TokenTransfer


@pytest.fixture
def book():
    b = BalanceBook("RWD")
    b.mint("alice", 100)
    return b


class TestBalanceBook:
    def test_mint(self, book):
        assert book.balance_of("alice") == 100
        assert book.total_supply == 100
        assert book.balance_of("nobody") == 0

    def test_transfer(self, book):
        book.transfer("alice", "bob", 40)
        assert book.balance_of("alice") == 60
        assert book.balance_of("bob") == 40
        assert book.total_supply == 100

    def test_transfer_insufficient(self, book):
        with pytest.raises(InsufficientRewardSupply) as exc:
            book.transfer("alice", "bob", 101)
        assert exc.value.context == {
            "holder": "alice", "requested": 101, "available": 100,
        }
        assert book.balance_of("alice") == 100

    def test_negative_amounts_rejected(self, book):
        with pytest.raises(ArithmeticOverflow):
            book.transfer("alice", "bob", -1)
        with pytest.raises(ArithmeticOverflow):
            book.mint("alice", -1)

    def test_protocol(self, book):
        assert isinstance(book, TokenTransfer)

    def test_to_dict(self, book):
        assert book.to_dict() == {
            "symbol": "RWD",
            "total_supply": 100,
            "balances": {"alice": 100},
        }
