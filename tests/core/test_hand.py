"""Tests for hand scoring."""

from itertools import product

import pytest
from hypothesis import given
from hypothesis import strategies as st

from blackjack_core.cards import Card, Rank, Suit
from blackjack_core.hand import (
    SplitHand,
    calculate_score,
    card_value,
    compare_hands,
    is_blackjack,
    is_soft,
)


@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


def hand_strategy(min_cards=0, max_cards=8):
    return st.lists(card_strategy(), min_size=min_cards, max_size=max_cards)


def brute_force_score(cards):
    """Try every ace valuation and pick the best total."""
    aces = sum(1 for card in cards if card.is_ace)
    base = sum(card_value(card) for card in cards if not card.is_ace)
    totals = {base + sum(choice) for choice in product((1, 11), repeat=aces)}
    under = [total for total in totals if total <= 21]
    return max(under) if under else min(totals)


class TestCardValue:
    def test_values(self):
        assert card_value(Card(Rank.ACE, Suit.SPADES)) == 11
        assert card_value(Card(Rank.SEVEN, Suit.SPADES)) == 7
        for rank in (Rank.TEN, Rank.JACK, Rank.QUEEN, Rank.KING):
            assert card_value(Card(rank, Suit.CLUBS)) == 10


class TestCalculateScore:
    """Tests for calculate_score."""

    def test_empty_hand(self):
        assert calculate_score([]) == 0

    def test_soft_to_hard_transition(self, card_list):
        """Test ace switching from 11 to 1."""
        assert calculate_score(card_list("A", "5")) == 16
        assert calculate_score(card_list("A", "5", "8")) == 14

    def test_multiple_aces(self, card_list):
        assert calculate_score(card_list("A", "A")) == 12
        assert calculate_score(card_list("A", "A", "A")) == 13
        assert calculate_score(card_list("A", "A", "A", "9")) == 12

    def test_unavoidable_bust_is_minimal(self, card_list):
        assert calculate_score(card_list("K", "Q", "A", "5")) == 26

    @given(hand_strategy())
    def test_matches_brute_force(self, cards):
        """Best total <= 21 when one exists, otherwise the smallest bust."""
        assert calculate_score(cards) == brute_force_score(cards)

    @given(hand_strategy(min_cards=1))
    def test_never_busts_when_avoidable(self, cards):
        hard_total = sum(1 if card.is_ace else card_value(card) for card in cards)
        if hard_total <= 21:
            assert calculate_score(cards) <= 21
        else:
            assert calculate_score(cards) == hard_total


class TestSoftAndBlackjack:
    def test_soft_17(self, soft_17_hand):
        assert soft_17_hand.value == 17
        assert soft_17_hand.is_soft

    def test_hard_16(self, hard_16_hand):
        assert hard_16_hand.value == 16
        assert not hard_16_hand.is_soft

    def test_soft_with_downgraded_ace(self, card_list):
        # A-A-5: one ace at 11, one at 1
        assert is_soft(card_list("A", "A", "5"))
        assert not is_soft(card_list("A", "6", "10"))

    def test_blackjack(self, blackjack_hand):
        assert blackjack_hand.is_blackjack
        assert blackjack_hand.value == 21

    def test_three_card_21_is_not_blackjack(self, card_list):
        cards = card_list("7", "7", "7")
        assert calculate_score(cards) == 21
        assert not is_blackjack(cards)

    @given(hand_strategy())
    def test_blackjack_iff_two_cards_totalling_21(self, cards):
        assert is_blackjack(cards) == (len(cards) == 2 and calculate_score(cards) == 21)

    def test_bust(self, bust_hand):
        assert bust_hand.is_busted
        assert bust_hand.value == 26


class TestHand:
    def test_str(self, blackjack_hand, bust_hand):
        assert "BLACKJACK" in str(blackjack_hand)
        assert "BUST" in str(bust_hand)

    def test_split_hand_finished(self, card_list):
        hand = SplitHand(cards=card_list("8", "3"), bet=10)
        assert not hand.is_finished
        hand.add_card(Card(Rank.KING, Suit.CLUBS))
        assert hand.is_finished
        assert SplitHand(cards=card_list("8", "3"), stood=True).is_finished


class TestCompareHands:
    """Tests for hand comparison."""

    @pytest.mark.parametrize(
        "player, dealer, expected",
        [
            (("10", "9"), ("10", "8"), 1),
            (("10", "7"), ("10", "9"), -1),
            (("10", "8"), ("10", "8"), 0),
            (("10", "6", "K"), ("10", "7"), -1),
            (("10", "7"), ("10", "6", "K"), 1),
            (("10", "6", "K"), ("10", "6", "Q"), -1),
        ],
    )
    def test_totals_and_bust_precedence(self, card_list, player, dealer, expected):
        assert compare_hands(card_list(*player), card_list(*dealer)) == expected

    def test_three_card_21_pushes_dealer_two_card_21(self, card_list):
        """Naturals are paid at the deal; later 21s compare by total only."""
        assert compare_hands(card_list("7", "7", "7"), card_list("A", "K")) == 0

    def test_two_card_21_pushes_dealer_two_card_21(self, card_list):
        assert compare_hands(card_list("A", "K"), card_list("A", "Q")) == 0
