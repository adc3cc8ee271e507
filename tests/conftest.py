"""Pytest fixtures for round engine tests."""

import pytest
from random import Random

from blackjack_core.cards import Card, Rank, Shoe, Suit
from blackjack_core.game import ImmediateScheduler, ManualScheduler, RoundEngine
from blackjack_core.hand import Hand
from blackjack_core.rules import HouseRules

SUIT_CODES = "SHDC"


def cards_from_ranks(*ranks: str) -> list[Card]:
    """Build cards from rank codes, cycling through the suits."""
    return [
        Card.from_string(rank + SUIT_CODES[i % len(SUIT_CODES)])
        for i, rank in enumerate(ranks)
    ]


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def rules():
    """Default house rules."""
    return HouseRules()


@pytest.fixture
def shoe(rng):
    """A shuffled 6-deck shoe."""
    return Shoe(num_decks=6, penetration=0.75, rng=rng)


@pytest.fixture
def manual_scheduler():
    """Scheduler whose dealer steps run only when the test asks."""
    return ManualScheduler()


@pytest.fixture
def make_engine(rules):
    """
    Factory for engines dealing a fixed card order.

    Cards are dealt player, dealer, player, dealer (hole), then in order.
    """

    def factory(*ranks, bankroll=1000, house_rules=None, scheduler=None, **kwargs):
        return RoundEngine(
            rules=house_rules or rules,
            starting_bankroll=bankroll,
            rng=Random(7),
            scheduler=scheduler or ImmediateScheduler(),
            shoe=Shoe.stacked(cards_from_ranks(*ranks)),
            **kwargs,
        )

    return factory


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return Hand([Card(Rank.ACE, Suit.SPADES), Card(Rank.KING, Suit.HEARTS)])


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return Hand([Card(Rank.ACE, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS)])


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return Hand([Card(Rank.TEN, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS)])


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return Hand(
        [
            Card(Rank.TEN, Suit.SPADES),
            Card(Rank.SIX, Suit.HEARTS),
            Card(Rank.KING, Suit.CLUBS),
        ]
    )


@pytest.fixture
def card_list():
    """The rank-code card builder as a fixture."""
    return cards_from_ranks
