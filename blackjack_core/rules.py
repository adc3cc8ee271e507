"""House rules injected into the round engine."""

from dataclasses import dataclass

from blackjack_core.exceptions import ConfigurationError

ALLOWED_DECK_COUNTS = (1, 2, 6, 8)
ALLOWED_BLACKJACK_PAYOUTS = (1.5, 1.2)


@dataclass(frozen=True)
class HouseRules:
    """
    Blackjack table rules configuration.

    Immutable for the lifetime of a round; values are validated here so the
    engine never has to.
    """

    # Shoe
    num_decks: int = 6
    deck_penetration: float = 0.75

    # Dealer rules
    dealer_hits_soft_17: bool = False  # H17 vs S17
    stand_threshold: int = 17

    # Blackjack payout (3:2 = 1.5, 6:5 = 1.2)
    blackjack_payout_ratio: float = 1.5

    # Player options
    allow_double_after_split: bool = False  # DAS
    allow_surrender: bool = True
    max_split_hands: int = 3

    def __post_init__(self) -> None:
        """Validate rule values."""
        if self.num_decks not in ALLOWED_DECK_COUNTS:
            raise ConfigurationError(
                f"num_decks must be one of {ALLOWED_DECK_COUNTS}, got {self.num_decks}"
            )
        if self.blackjack_payout_ratio not in ALLOWED_BLACKJACK_PAYOUTS:
            raise ConfigurationError(
                f"blackjack_payout_ratio must be one of {ALLOWED_BLACKJACK_PAYOUTS}, "
                f"got {self.blackjack_payout_ratio}"
            )
        if not 0.0 < self.deck_penetration < 1.0:
            raise ConfigurationError("deck_penetration must be between 0 and 1")
        if self.max_split_hands < 2:
            raise ConfigurationError("max_split_hands must be at least 2")
        if not 2 <= self.stand_threshold <= 21:
            raise ConfigurationError("stand_threshold must be between 2 and 21")

    @classmethod
    def vegas_strip(cls) -> "HouseRules":
        """Standard Vegas Strip rules."""
        return cls(
            num_decks=6,
            dealer_hits_soft_17=False,
            blackjack_payout_ratio=1.5,
            allow_double_after_split=True,
            allow_surrender=True,
        )

    @classmethod
    def downtown_vegas(cls) -> "HouseRules":
        """Downtown Las Vegas rules (typically H17)."""
        return cls(
            num_decks=6,
            dealer_hits_soft_17=True,
            blackjack_payout_ratio=1.5,
            allow_double_after_split=True,
            allow_surrender=True,
        )

    @classmethod
    def single_deck(cls) -> "HouseRules":
        """Single deck 6:5 rules."""
        return cls(
            num_decks=1,
            dealer_hits_soft_17=True,
            blackjack_payout_ratio=1.2,
            allow_double_after_split=False,
            allow_surrender=False,
        )

    @classmethod
    def atlantic_city(cls) -> "HouseRules":
        """Atlantic City rules."""
        return cls(
            num_decks=8,
            dealer_hits_soft_17=False,
            blackjack_payout_ratio=1.5,
            allow_double_after_split=True,
            allow_surrender=True,
        )
