"""Hand scoring for blackjack."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from blackjack_core.cards import Card


class HandResult(Enum):
    """Result tag of a settled hand or round."""

    WIN = "win"
    LOSE = "lose"
    PUSH = "push"
    BLACKJACK = "blackjack"

    def __str__(self) -> str:
        return self.value


def card_value(card: Card) -> int:
    """Return the provisional value of a card (Ace = 11, faces = 10)."""
    return card.value


def _score(cards: Iterable[Card]) -> tuple[int, int]:
    """Return the best total and how many aces still count as 11."""
    total = 0
    aces = 0

    for card in cards:
        if card.is_ace:
            aces += 1
        total += card_value(card)

    # Reduce aces from 11 to 1 as needed
    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return total, aces


def calculate_score(cards: Iterable[Card]) -> int:
    """
    Calculate the best hand total.

    Returns the highest total that doesn't bust, or the lowest bust total.
    """
    return _score(cards)[0]


def is_soft(cards: Iterable[Card]) -> bool:
    """Check if the best total still counts an ace as 11."""
    return _score(cards)[1] > 0


def is_blackjack(cards: Iterable[Card]) -> bool:
    """Check for a natural: exactly two cards totalling 21."""
    cards = list(cards)
    return len(cards) == 2 and calculate_score(cards) == 21


@dataclass
class Hand:
    """An ordered list of cards with derived scoring."""

    cards: list[Card] = field(default_factory=list)

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    @property
    def value(self) -> int:
        return calculate_score(self.cards)

    @property
    def is_soft(self) -> bool:
        return is_soft(self.cards)

    @property
    def is_blackjack(self) -> bool:
        return is_blackjack(self.cards)

    @property
    def is_busted(self) -> bool:
        return self.value > 21

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"


@dataclass
class SplitHand(Hand):
    """One of the independent hands created by splitting a pair."""

    bet: int = 0
    stood: bool = False
    doubled: bool = False
    result: HandResult | None = None

    @property
    def is_finished(self) -> bool:
        """Check if no further player action applies to this hand."""
        return self.stood or self.value >= 21


def compare_hands(
    player_cards: Iterable[Card],
    dealer_cards: Iterable[Card],
) -> int:
    """
    Compare a played hand with the dealer's final hand.

    Naturals are settled at the deal, so only bust precedence and totals
    matter here: a 21 of any length against a dealer 21 is a push.

    Args:
        player_cards: The player's cards
        dealer_cards: The dealer's cards

    Returns:
        1 if player wins
        -1 if dealer wins
        0 if push (tie)
    """
    player_value = calculate_score(player_cards)
    dealer_value = calculate_score(dealer_cards)

    # Player bust loses even when the dealer also busts
    if player_value > 21:
        return -1
    if dealer_value > 21:
        return 1

    if player_value > dealer_value:
        return 1
    if dealer_value > player_value:
        return -1
    return 0
