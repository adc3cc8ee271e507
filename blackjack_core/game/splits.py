"""Split hand coordination and per-hand settlement."""

from dataclasses import dataclass
from typing import Callable

from blackjack_core.cards import Card
from blackjack_core.game.state import RoundState
from blackjack_core.hand import HandResult, SplitHand, compare_hands
from blackjack_core.payout import push_payout, win_payout


@dataclass(frozen=True)
class HandSettlement:
    """Outcome of one hand against the dealer's final hand."""

    index: int
    bet: int
    result: HandResult
    payout: int


def settle_hand(
    cards: list[Card],
    bet: int,
    dealer_cards: list[Card],
    index: int = 0,
) -> HandSettlement:
    """
    Settle a played hand against the dealer.

    Naturals are paid at the deal, so a hand reaching this point never
    collects a blackjack payout.
    """
    outcome = compare_hands(cards, dealer_cards)
    if outcome > 0:
        return HandSettlement(index, bet, HandResult.WIN, win_payout(bet))
    if outcome < 0:
        return HandSettlement(index, bet, HandResult.LOSE, 0)
    return HandSettlement(index, bet, HandResult.PUSH, push_payout(bet))


def can_split_pair(cards: list[Card]) -> bool:
    """Check for exactly two cards of equal rank."""
    return len(cards) == 2 and cards[0].rank == cards[1].rank


class SplitCoordinator:
    """
    Plays the split hands of a round one at a time.

    Holds no state of its own; ``split_hands`` and ``active_hand_index`` live
    on the round state so snapshots and records see them directly.
    """

    def __init__(self, state: RoundState, max_hands: int) -> None:
        self._state = state
        self._max_hands = max_hands

    @property
    def hands(self) -> list[SplitHand]:
        return self._state.split_hands

    @property
    def active(self) -> SplitHand | None:
        return self._state.active_split_hand

    @property
    def is_complete(self) -> bool:
        """Check if the index has moved past the last hand."""
        return self._state.active_hand_index >= len(self._state.split_hands)

    def has_room(self) -> bool:
        """Check if one more split keeps the hand count within the limit."""
        return len(self.hands) < self._max_hands

    def split(self, cards: list[Card], bet: int, draw: Callable[[], Card]) -> list[SplitHand]:
        """
        Split a pair into two hands.

        Each hand keeps one original card and receives one fresh card. Split
        aces get that single card only and are stood at once.
        """
        first, second = cards
        aces = first.is_ace
        hands = []
        for card in (first, second):
            hand = SplitHand(bet=bet)
            hand.add_card(card)
            hand.add_card(draw())
            hand.stood = aces
            hands.append(hand)
        return hands

    def start(self, cards: list[Card], bet: int, draw: Callable[[], Card]) -> None:
        """Replace the player's pair with two split hands."""
        self._state.split_hands = self.split(cards, bet, draw)
        self._state.active_hand_index = 0
        self._skip_finished()

    def resplit_active(self, draw: Callable[[], Card]) -> None:
        """Split the active hand again in place."""
        index = self._state.active_hand_index
        hand = self.hands[index]
        self.hands[index:index + 1] = self.split(hand.cards, hand.bet, draw)
        self._skip_finished()

    def stand_active(self) -> None:
        """Stand the active hand and move to the next playable one."""
        hand = self.active
        if hand is not None:
            hand.stood = True
        self._state.active_hand_index += 1
        self._skip_finished()

    def advance_if_finished(self) -> None:
        """Move past the active hand if it busted or reached 21."""
        hand = self.active
        if hand is not None and hand.is_finished:
            self.stand_active()

    def _skip_finished(self) -> None:
        while not self.is_complete and self.active.is_finished:
            self.active.stood = True
            self._state.active_hand_index += 1

    def settle(self, dealer_cards: list[Card]) -> list[HandSettlement]:
        """Settle every split hand against the shared dealer hand."""
        return [
            settle_hand(hand.cards, hand.bet, dealer_cards, index=i)
            for i, hand in enumerate(self.hands)
        ]
