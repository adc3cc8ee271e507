"""Tests for payout arithmetic."""

import pytest

from blackjack_core.payout import (
    blackjack_payout,
    insurance_payout,
    push_payout,
    surrender_refund,
    win_payout,
)


class TestBlackjackPayout:
    @pytest.mark.parametrize(
        "bet, ratio, expected",
        [
            (100, 1.5, 250),
            (100, 1.2, 220),
            (20, 1.5, 50),
            (15, 1.5, 37),
            (15, 1.2, 33),
            (1, 1.5, 2),
        ],
    )
    def test_stake_plus_floored_winnings(self, bet, ratio, expected):
        assert blackjack_payout(bet, ratio) == expected

    def test_returns_int(self):
        assert isinstance(blackjack_payout(15, 1.5), int)


class TestEvenMoney:
    def test_win_returns_double(self):
        assert win_payout(50) == 100

    def test_push_returns_stake(self):
        assert push_payout(50) == 50


class TestInsurance:
    def test_pays_two_to_one_against_blackjack(self):
        assert insurance_payout(25, dealer_has_blackjack=True) == 75

    def test_lost_without_blackjack(self):
        assert insurance_payout(25, dealer_has_blackjack=False) == 0


class TestSurrender:
    @pytest.mark.parametrize("bet, expected", [(50, 25), (15, 7), (1, 0)])
    def test_half_rounded_down(self, bet, expected):
        assert surrender_refund(bet) == expected
