"""Dealer drawing policy."""

from dataclasses import dataclass
from typing import Callable

from blackjack_core.cards import Card
from blackjack_core.hand import Hand, calculate_score, is_soft
from blackjack_core.rules import HouseRules


@dataclass(frozen=True)
class DealerPolicy:
    """
    Deterministic dealer rule: hit below the stand threshold, and on a soft
    total equal to it when the table hits soft 17.
    """

    stand_threshold: int = 17
    hits_soft_17: bool = False

    @classmethod
    def from_rules(cls, rules: HouseRules) -> "DealerPolicy":
        return cls(
            stand_threshold=rules.stand_threshold,
            hits_soft_17=rules.dealer_hits_soft_17,
        )

    def should_hit(self, cards: list[Card]) -> bool:
        """Determine if the dealer must draw another card."""
        score = calculate_score(cards)
        if score < self.stand_threshold:
            return True
        if score == self.stand_threshold and self.hits_soft_17 and is_soft(cards):
            return True
        return False

    def play(self, hand: Hand, draw: Callable[[], Card]) -> list[Card]:
        """
        Run the whole draw loop synchronously.

        Args:
            hand: Dealer hand, extended in place
            draw: Source of the next card

        Returns:
            The cards drawn, in order
        """
        drawn: list[Card] = []
        while self.should_hit(hand.cards):
            card = draw()
            hand.add_card(card)
            drawn.append(card)
        return drawn
