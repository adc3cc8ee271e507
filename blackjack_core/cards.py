"""Cards and the multi-deck shoe they are dealt from."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from random import Random
from typing import Iterable, Iterator

from blackjack_core.exceptions import ConfigurationError, InvariantViolation

logger = logging.getLogger(__name__)


class Suit(Enum):
    """Card suits."""

    CLUBS = auto()
    DIAMONDS = auto()
    HEARTS = auto()
    SPADES = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.CLUBS: "♣",
            Suit.DIAMONDS: "♦",
            Suit.HEARTS: "♥",
            Suit.SPADES: "♠",
        }
        return symbols[self]


class Rank(Enum):
    """Card ranks with blackjack values."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    @property
    def blackjack_value(self) -> int:
        """Return the provisional point value (Ace = 11, face cards = 10)."""
        if self.value <= 10:
            return self.value
        if self == Rank.ACE:
            return 11
        return 10

    @property
    def is_ace(self) -> bool:
        return self == Rank.ACE


_RANK_CODES = {
    "2": Rank.TWO,
    "3": Rank.THREE,
    "4": Rank.FOUR,
    "5": Rank.FIVE,
    "6": Rank.SIX,
    "7": Rank.SEVEN,
    "8": Rank.EIGHT,
    "9": Rank.NINE,
    "10": Rank.TEN,
    "T": Rank.TEN,
    "J": Rank.JACK,
    "Q": Rank.QUEEN,
    "K": Rank.KING,
    "A": Rank.ACE,
}

_SUIT_CODES = {
    "C": Suit.CLUBS,
    "♣": Suit.CLUBS,
    "D": Suit.DIAMONDS,
    "♦": Suit.DIAMONDS,
    "H": Suit.HEARTS,
    "♥": Suit.HEARTS,
    "S": Suit.SPADES,
    "♠": Suit.SPADES,
}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card.

    ``identity`` is assigned when the card is dealt and only keeps rendering
    order stable; it takes no part in equality or hashing.
    """

    rank: Rank
    suit: Suit
    identity: int | None = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        if self.identity is None:
            return f"Card({self.rank.name}, {self.suit.name})"
        return f"Card({self.rank.name}, {self.suit.name}, #{self.identity})"

    @property
    def value(self) -> int:
        """Return the provisional blackjack point value."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    def with_identity(self, identity: int) -> "Card":
        """Return a copy of this card tagged with a deal-order identity."""
        return replace(self, identity=identity)

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', 'Kh'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        if rank_str not in _RANK_CODES:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in _SUIT_CODES:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(_RANK_CODES[rank_str], _SUIT_CODES[suit_str])


def create_shoe(num_decks: int, rng: Random | None = None) -> list[Card]:
    """
    Build and shuffle the cards for an N-deck shoe.

    Every (rank, suit) pair appears exactly ``num_decks`` times. The list is
    permuted with ``Random.shuffle`` (Fisher-Yates).

    Args:
        num_decks: Number of 52-card decks
        rng: Random number generator for shuffling

    Returns:
        The shuffled cards; the last element is dealt first
    """
    if num_decks < 1:
        raise ConfigurationError("Shoe must have at least 1 deck")

    cards = [
        Card(rank, suit)
        for _ in range(num_decks)
        for suit in Suit
        for rank in Rank
    ]
    (rng or Random()).shuffle(cards)
    return cards


class Shoe:
    """A multi-deck shoe with a cut card."""

    def __init__(
        self,
        num_decks: int = 6,
        penetration: float = 0.75,
        rng: Random | None = None,
        cards: Iterable[Card] | None = None,
        original_size: int | None = None,
    ) -> None:
        """
        Initialize a shoe.

        Args:
            num_decks: Number of decks in the shoe
            penetration: Fraction of the shoe dealt before the cut card
            rng: Random number generator for shuffling
            cards: Explicit cards in deal order instead of a fresh shuffle
            original_size: Size the shoe started at (defaults to its length)
        """
        if num_decks < 1:
            raise ConfigurationError("Shoe must have at least 1 deck")
        if not 0.0 < penetration <= 1.0:
            raise ConfigurationError("Penetration must be between 0 and 1")

        self._num_decks = num_decks
        self._penetration = penetration
        self._rng = rng or Random()
        self._cards: list[Card] = []
        self._original_size = 0

        if cards is None:
            self.rebuild()
        else:
            self._cards = list(cards)[::-1]
            self._original_size = original_size or len(self._cards)

    @classmethod
    def stacked(cls, cards: Iterable[Card], penetration: float = 0.75) -> "Shoe":
        """Create a shoe that deals ``cards`` in the given order."""
        return cls(num_decks=1, penetration=penetration, cards=cards)

    def rebuild(self) -> None:
        """Replace the contents with a freshly shuffled full shoe."""
        self._cards = create_shoe(self._num_decks, self._rng)
        self._original_size = len(self._cards)
        logger.info("Shoe rebuilt with %d decks (%d cards)", self._num_decks, self._original_size)

    def draw(self) -> Card:
        """Remove and return the next card."""
        if not self._cards:
            raise InvariantViolation("Cannot draw from an exhausted shoe")
        return self._cards.pop()

    @property
    def cut_card_reached(self) -> bool:
        """Check if fewer than ``1 - penetration`` of the cards remain."""
        if self._original_size == 0:
            return True
        return len(self._cards) / self._original_size < (1 - self._penetration)

    @property
    def is_exhausted(self) -> bool:
        return not self._cards

    @property
    def needs_rebuild(self) -> bool:
        """Check if the shoe must be rebuilt at the next round boundary."""
        return self.is_exhausted or self.cut_card_reached

    @property
    def cards_remaining(self) -> int:
        return len(self._cards)

    @property
    def cards_dealt(self) -> int:
        return self._original_size - len(self._cards)

    @property
    def original_size(self) -> int:
        """Return the number of cards the shoe held when built."""
        return self._original_size

    @property
    def num_decks(self) -> int:
        return self._num_decks

    @property
    def penetration(self) -> float:
        return self._penetration

    def deal_order(self) -> list[Card]:
        """Return the remaining cards in the order they will be dealt."""
        return self._cards[::-1]

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.deal_order())
