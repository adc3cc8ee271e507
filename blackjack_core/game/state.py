"""Round phases and the mutable round state."""

from dataclasses import dataclass, field
from enum import Enum, auto

from blackjack_core.cards import Shoe
from blackjack_core.game.stats import SessionStats
from blackjack_core.hand import Hand, HandResult, SplitHand


class Phase(Enum):
    """
    Round state machine phases.

    Flow: IDLE → BETTING → DEALING → PLAYER_TURN → DEALER_TURN → RESOLVING → GAME_OVER
    """

    IDLE = auto()
    BETTING = auto()
    DEALING = auto()
    PLAYER_TURN = auto()
    SPLITTING = auto()
    DOUBLING = auto()
    INSURANCE_OFFER = auto()
    SURRENDERING = auto()
    DEALER_TURN = auto()
    RESOLVING = auto()
    GAME_OVER = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


class Action(Enum):
    """Player-facing actions of the engine API."""

    PLACE_BET = auto()
    CLEAR_BET = auto()
    DEAL = auto()
    HIT = auto()
    STAND = auto()
    DOUBLE = auto()
    SPLIT = auto()
    SURRENDER = auto()
    INSURE = auto()
    NEW_ROUND = auto()


# Actions each phase accepts; anything else is ignored. Every phase is listed.
VALID_ACTIONS: dict[Phase, frozenset[Action]] = {
    Phase.IDLE: frozenset({Action.PLACE_BET}),
    Phase.BETTING: frozenset({Action.PLACE_BET, Action.CLEAR_BET, Action.DEAL}),
    Phase.DEALING: frozenset(),
    Phase.PLAYER_TURN: frozenset(
        {Action.HIT, Action.STAND, Action.DOUBLE, Action.SPLIT, Action.SURRENDER}
    ),
    Phase.SPLITTING: frozenset({Action.HIT, Action.STAND, Action.DOUBLE, Action.SPLIT}),
    Phase.DOUBLING: frozenset(),
    Phase.INSURANCE_OFFER: frozenset({Action.INSURE}),
    Phase.SURRENDERING: frozenset(),
    Phase.DEALER_TURN: frozenset(),
    Phase.RESOLVING: frozenset(),
    Phase.GAME_OVER: frozenset({Action.NEW_ROUND}),
}


def is_action_allowed(phase: Phase, action: Action) -> bool:
    """
    Check if an action may run in a phase.

    Args:
        phase: Current phase
        action: Requested action

    Returns:
        True if the phase accepts the action
    """
    return action in VALID_ACTIONS[phase]


@dataclass
class RoundState:
    """All mutable state of a session, owned by one engine."""

    chips: int
    starting_bankroll: int
    shoe: Shoe | None = None
    player_hand: Hand = field(default_factory=Hand)
    dealer_hand: Hand = field(default_factory=Hand)
    split_hands: list[SplitHand] = field(default_factory=list)
    active_hand_index: int = 0
    bet: int = 0
    insurance_bet: int = 0
    dealer_revealed: bool = False
    last_result: HandResult | None = None
    message: str = "Place your bet to start!"
    stats: SessionStats = field(default_factory=SessionStats)
    # Bumped at round boundaries; scheduled dealer steps carry the value they
    # were created with and do nothing once it changes.
    generation: int = 0
    next_card_id: int = 0

    @property
    def is_split(self) -> bool:
        return bool(self.split_hands)

    @property
    def active_split_hand(self) -> SplitHand | None:
        if 0 <= self.active_hand_index < len(self.split_hands):
            return self.split_hands[self.active_hand_index]
        return None

    def clear_round(self) -> None:
        """Drop the hands and wagers of the current round."""
        self.player_hand = Hand()
        self.dealer_hand = Hand()
        self.split_hands = []
        self.active_hand_index = 0
        self.bet = 0
        self.insurance_bet = 0
        self.dealer_revealed = False
        self.last_result = None
