"""Blackjack round engine - 100% UI-agnostic."""

from blackjack_core.cards import Card, Rank, Shoe, Suit, create_shoe
from blackjack_core.exceptions import BlackjackError, ConfigurationError, InvariantViolation
from blackjack_core.hand import (
    Hand,
    HandResult,
    SplitHand,
    calculate_score,
    card_value,
    is_blackjack,
    is_soft,
)
from blackjack_core.rules import HouseRules

__all__ = [
    "BlackjackError",
    "Card",
    "ConfigurationError",
    "Hand",
    "HandResult",
    "HouseRules",
    "InvariantViolation",
    "Rank",
    "Shoe",
    "SplitHand",
    "Suit",
    "calculate_score",
    "card_value",
    "create_shoe",
    "is_blackjack",
    "is_soft",
]
