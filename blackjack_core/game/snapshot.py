"""Pydantic views of the round state.

``RoundSnapshot`` is what presentation code reads: the dealer's hole card is
masked until it has been revealed. ``RoundRecord`` is the verbatim form a
persistence collaborator stores and hands back to ``RoundEngine.restore``.
"""

from pydantic import BaseModel, ConfigDict, Field

from blackjack_core.cards import Card, Rank, Shoe, Suit
from blackjack_core.game.state import Phase, RoundState
from blackjack_core.game.stats import SessionStats
from blackjack_core.hand import Hand, HandResult, SplitHand, calculate_score


class CardView(BaseModel):
    """A card as shown to the player; face-down cards carry no rank or suit."""

    rank: str | None
    suit: str | None
    value: int | None
    identity: int | None
    face_up: bool = True


class SplitHandView(BaseModel):
    cards: list[CardView]
    score: int
    bet: int
    stood: bool
    doubled: bool
    result: str | None


class StatsModel(BaseModel):
    """Session statistics."""

    model_config = ConfigDict(from_attributes=True)

    wins: int = 0
    losses: int = 0
    pushes: int = 0
    blackjacks: int = 0
    hands_played: int = 0
    doubles: int = 0
    splits: int = 0
    surrenders: int = 0
    insurance_taken: int = 0
    insurance_won: int = 0
    total_wagered: int = 0
    total_returned: int = 0
    current_win_streak: int = 0
    current_loss_streak: int = 0
    biggest_win_streak: int = 0
    biggest_loss_streak: int = 0
    chip_history: list[int] = Field(default_factory=list)


class RoundSnapshot(BaseModel):
    """Current round as seen from the table."""

    model_config = ConfigDict(frozen=True)

    phase: str
    player_hand: list[CardView]
    player_score: int
    dealer_hand: list[CardView]
    dealer_visible_score: int
    dealer_revealed: bool
    split_hands: list[SplitHandView]
    active_hand_index: int
    is_split: bool
    bet: int
    insurance_bet: int
    max_insurance_bet: int
    chips: int
    last_result: str | None
    message: str
    can_hit: bool
    can_stand: bool
    can_double: bool
    can_split: bool
    can_surrender: bool
    can_insure: bool
    cards_remaining: int
    shoe_size: int
    cut_card_reached: bool
    stats: StatsModel


class CardRecord(BaseModel):
    rank: int = Field(..., ge=2, le=14)
    suit: str
    identity: int | None = None


class SplitHandRecord(BaseModel):
    cards: list[CardRecord]
    bet: int
    stood: bool
    doubled: bool
    result: str | None = None


class RoundRecord(BaseModel):
    """Every field of a session, hole card and shoe order included."""

    phase: str
    chips: int = Field(..., ge=0)
    starting_bankroll: int = Field(..., ge=0)
    shoe_cards: list[CardRecord]
    shoe_original_size: int
    shoe_num_decks: int
    shoe_penetration: float
    player_hand: list[CardRecord]
    dealer_hand: list[CardRecord]
    split_hands: list[SplitHandRecord]
    active_hand_index: int
    bet: int = Field(..., ge=0)
    insurance_bet: int = Field(..., ge=0)
    dealer_revealed: bool
    last_result: str | None
    message: str
    stats: StatsModel
    generation: int
    next_card_id: int


def _card_view(card: Card, face_up: bool = True) -> CardView:
    if not face_up:
        return CardView(rank=None, suit=None, value=None, identity=card.identity, face_up=False)
    return CardView(
        rank=str(card.rank),
        suit=card.suit.name.lower(),
        value=card.value,
        identity=card.identity,
    )


def _split_view(hand: SplitHand) -> SplitHandView:
    return SplitHandView(
        cards=[_card_view(card) for card in hand.cards],
        score=hand.value,
        bet=hand.bet,
        stood=hand.stood,
        doubled=hand.doubled,
        result=hand.result.value if hand.result else None,
    )


def build_snapshot(state: RoundState, phase: Phase, **flags) -> RoundSnapshot:
    """
    Build the table view of a round.

    Args:
        state: Round state to describe
        phase: Current phase
        **flags: Action availability and ``max_insurance_bet`` from the engine
    """
    dealer = state.dealer_hand.cards
    if state.dealer_revealed:
        dealer_view = [_card_view(card) for card in dealer]
        dealer_score = calculate_score(dealer)
    else:
        dealer_view = [_card_view(card, face_up=i != 1) for i, card in enumerate(dealer)]
        dealer_score = dealer[0].value if dealer else 0

    # Past the last split hand the player view stays on that last hand
    if state.is_split:
        active = state.active_split_hand or state.split_hands[-1]
        player_cards = active.cards
    else:
        player_cards = state.player_hand.cards
    shoe = state.shoe

    return RoundSnapshot(
        phase=phase.name.lower(),
        player_hand=[_card_view(card) for card in player_cards],
        player_score=calculate_score(player_cards),
        dealer_hand=dealer_view,
        dealer_visible_score=dealer_score,
        dealer_revealed=state.dealer_revealed,
        split_hands=[_split_view(hand) for hand in state.split_hands],
        active_hand_index=state.active_hand_index,
        is_split=state.is_split,
        bet=state.bet,
        insurance_bet=state.insurance_bet,
        chips=state.chips,
        last_result=state.last_result.value if state.last_result else None,
        message=state.message,
        cards_remaining=shoe.cards_remaining if shoe is not None else 0,
        shoe_size=shoe.original_size if shoe is not None else 0,
        cut_card_reached=shoe.cut_card_reached if shoe is not None else False,
        stats=StatsModel.model_validate(state.stats),
        **flags,
    )


def _card_record(card: Card) -> CardRecord:
    return CardRecord(rank=card.rank.value, suit=card.suit.name, identity=card.identity)


def _card_from_record(record: CardRecord) -> Card:
    return Card(Rank(record.rank), Suit[record.suit], identity=record.identity)


def record_from_state(state: RoundState, phase: Phase) -> RoundRecord:
    """Capture a round state verbatim."""
    shoe = state.shoe
    return RoundRecord(
        phase=phase.name,
        chips=state.chips,
        starting_bankroll=state.starting_bankroll,
        shoe_cards=[_card_record(card) for card in shoe.deal_order()] if shoe is not None else [],
        shoe_original_size=shoe.original_size if shoe is not None else 0,
        shoe_num_decks=shoe.num_decks if shoe is not None else 1,
        shoe_penetration=shoe.penetration if shoe is not None else 0.75,
        player_hand=[_card_record(card) for card in state.player_hand.cards],
        dealer_hand=[_card_record(card) for card in state.dealer_hand.cards],
        split_hands=[
            SplitHandRecord(
                cards=[_card_record(card) for card in hand.cards],
                bet=hand.bet,
                stood=hand.stood,
                doubled=hand.doubled,
                result=hand.result.value if hand.result else None,
            )
            for hand in state.split_hands
        ],
        active_hand_index=state.active_hand_index,
        bet=state.bet,
        insurance_bet=state.insurance_bet,
        dealer_revealed=state.dealer_revealed,
        last_result=state.last_result.value if state.last_result else None,
        message=state.message,
        stats=StatsModel.model_validate(state.stats),
        generation=state.generation,
        next_card_id=state.next_card_id,
    )


def state_from_record(record: RoundRecord) -> tuple[RoundState, Phase]:
    """Rebuild a round state and its phase from a record."""
    shoe = Shoe(
        num_decks=record.shoe_num_decks,
        penetration=record.shoe_penetration,
        cards=[_card_from_record(card) for card in record.shoe_cards],
        original_size=record.shoe_original_size,
    )
    split_hands = []
    for hand in record.split_hands:
        split = SplitHand(
            cards=[_card_from_record(card) for card in hand.cards],
            bet=hand.bet,
            stood=hand.stood,
            doubled=hand.doubled,
            result=HandResult(hand.result) if hand.result else None,
        )
        split_hands.append(split)

    state = RoundState(
        chips=record.chips,
        starting_bankroll=record.starting_bankroll,
        shoe=shoe,
        player_hand=Hand([_card_from_record(card) for card in record.player_hand]),
        dealer_hand=Hand([_card_from_record(card) for card in record.dealer_hand]),
        split_hands=split_hands,
        active_hand_index=record.active_hand_index,
        bet=record.bet,
        insurance_bet=record.insurance_bet,
        dealer_revealed=record.dealer_revealed,
        last_result=HandResult(record.last_result) if record.last_result else None,
        message=record.message,
        stats=SessionStats(**record.stats.model_dump()),
        generation=record.generation,
        next_card_id=record.next_card_id,
    )
    return state, Phase[record.phase]
