"""Blackjack round engine with state machine."""

import logging
from functools import partial
from random import Random

from transitions import Machine

from blackjack_core.cards import Card, Shoe
from blackjack_core.exceptions import InvariantViolation
from blackjack_core.game.dealer import DealerPolicy
from blackjack_core.game.events import EventEmitter, EventHandler, EventType
from blackjack_core.game.scheduler import ImmediateScheduler, Scheduler
from blackjack_core.game.snapshot import (
    RoundRecord,
    RoundSnapshot,
    build_snapshot,
    record_from_state,
    state_from_record,
)
from blackjack_core.game.splits import HandSettlement, SplitCoordinator, can_split_pair, settle_hand
from blackjack_core.game.state import Action, Phase, RoundState, is_action_allowed
from blackjack_core.game.stats import SessionStats
from blackjack_core.hand import HandResult, is_blackjack
from blackjack_core.payout import (
    blackjack_payout,
    insurance_payout,
    push_payout,
    surrender_refund,
)
from blackjack_core.rules import HouseRules

logger = logging.getLogger(__name__)

STARTING_BANKROLL = 1000

# Presentation pacing in seconds; never affects the cards drawn.
DEALER_PLAY_INITIAL_DELAY = 0.4
DEALER_DRAW_DELAY = 0.6

BET_MESSAGE = "Place your bet to start!"
BROKE_MESSAGE = "You're out of chips! Reset to play again."


class RoundEngine:
    """
    Blackjack round engine using a state machine.

    Owns all mutable round state. Every action returns ``None``; an action
    that is not valid in the current phase, or whose preconditions fail, is
    ignored without touching state. Callers observe the engine through
    ``snapshot()`` and ``subscribe()``.
    """

    # State machine states
    STATES = [p.name.lower() for p in Phase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "open_betting", "source": ["idle", "betting"], "dest": "betting"},
        {"trigger": "begin_deal", "source": "betting", "dest": "dealing"},
        {"trigger": "offer_insurance", "source": "dealing", "dest": "insurance_offer"},
        {"trigger": "start_player_turn", "source": ["dealing", "insurance_offer"], "dest": "player_turn"},
        {"trigger": "begin_split", "source": "player_turn", "dest": "splitting"},
        {"trigger": "begin_double", "source": "player_turn", "dest": "doubling"},
        {"trigger": "begin_surrender", "source": "player_turn", "dest": "surrendering"},
        {
            "trigger": "start_dealer_turn",
            "source": ["player_turn", "splitting", "doubling"],
            "dest": "dealer_turn",
        },
        {
            "trigger": "resolve",
            "source": [
                "dealing",
                "insurance_offer",
                "player_turn",
                "splitting",
                "doubling",
                "surrendering",
                "dealer_turn",
            ],
            "dest": "resolving",
        },
        {"trigger": "finish_round", "source": "resolving", "dest": "game_over"},
        {"trigger": "return_to_betting", "source": "game_over", "dest": "betting"},
        {"trigger": "restart", "source": "*", "dest": "betting"},
    ]

    def __init__(
        self,
        rules: HouseRules | None = None,
        starting_bankroll: int = STARTING_BANKROLL,
        rng: Random | None = None,
        scheduler: Scheduler | None = None,
        shoe: Shoe | None = None,
        dealer_initial_delay: float = DEALER_PLAY_INITIAL_DELAY,
        dealer_draw_delay: float = DEALER_DRAW_DELAY,
        initial_phase: Phase = Phase.IDLE,
    ) -> None:
        """
        Initialize a new session.

        Args:
            rules: House rules (uses defaults if not provided)
            starting_bankroll: Chips at the start and after a full reset
            rng: Random number generator for reproducible shoes
            scheduler: Runs the dealer's staged draws (immediate by default)
            shoe: Shoe to deal the first rounds from
            dealer_initial_delay: Pause before the dealer's first step
            dealer_draw_delay: Pause between dealer draws
            initial_phase: Phase to start in
        """
        if starting_bankroll < 0:
            raise InvariantViolation("starting bankroll cannot be negative")

        self.rules = rules or HouseRules()
        self._rng = rng or Random()
        self._scheduler: Scheduler = scheduler or ImmediateScheduler()
        self._dealer = DealerPolicy.from_rules(self.rules)
        self._initial_delay = dealer_initial_delay
        self._draw_delay = dealer_draw_delay

        self._state = RoundState(
            chips=starting_bankroll,
            starting_bankroll=starting_bankroll,
            shoe=shoe if shoe is not None else self._new_shoe(),
        )
        self._splits = SplitCoordinator(self._state, self.rules.max_split_hands)
        self.events = EventEmitter()
        self._previous_phase = initial_phase

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=initial_phase.name.lower(),
            auto_transitions=False,
            model_attribute="_machine_state",
            after_state_change="_on_phase_change",
        )

    # ── Observation ──

    @property
    def phase(self) -> Phase:
        """Get current phase as enum."""
        return Phase[self._machine_state.upper()]  # type: ignore[attr-defined]

    @property
    def state(self) -> RoundState:
        """Live round state. Read it; change it only through the actions."""
        return self._state

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to round events."""
        self.events.subscribe(handler, event_type)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        self.events.unsubscribe(handler, event_type)

    def snapshot(self) -> RoundSnapshot:
        """Return a read-only view with the hole card masked until revealed."""
        return build_snapshot(
            self._state,
            self.phase,
            can_hit=self.can_hit,
            can_stand=self.can_stand,
            can_double=self.can_double,
            can_split=self.can_split,
            can_surrender=self.can_surrender,
            can_insure=self.can_insure,
            max_insurance_bet=self.max_insurance_bet,
        )

    def export_state(self) -> RoundRecord:
        """Return the complete state, shoe order and hole card included."""
        return record_from_state(self._state, self.phase)

    @classmethod
    def restore(
        cls,
        record: RoundRecord,
        rules: HouseRules | None = None,
        rng: Random | None = None,
        scheduler: Scheduler | None = None,
        **kwargs,
    ) -> "RoundEngine":
        """
        Rebuild an engine from an exported record.

        A record taken during the dealer's turn resumes the dealer's draws.
        """
        state, phase = state_from_record(record)
        engine = cls(
            rules=rules,
            starting_bankroll=state.starting_bankroll,
            rng=rng,
            scheduler=scheduler,
            shoe=state.shoe,
            initial_phase=phase,
            **kwargs,
        )
        engine._load_state(state)
        if phase == Phase.DEALER_TURN:
            engine._schedule_dealer_step(engine._draw_delay)
        return engine

    def _load_state(self, state: RoundState) -> None:
        self._state = state
        self._splits = SplitCoordinator(state, self.rules.max_split_hands)
        self._check_invariants()

    def _on_phase_change(self) -> None:
        phase = self.phase
        if phase == self._previous_phase:
            return
        logger.debug("Phase %s -> %s", self._previous_phase.name, phase.name)
        self.events.emit_new(
            EventType.PHASE_CHANGED,
            previous=self._previous_phase.name,
            phase=phase.name,
        )
        self._previous_phase = phase

    # ── Action availability ──

    @property
    def can_hit(self) -> bool:
        """Check if hitting is allowed."""
        if self.phase == Phase.PLAYER_TURN:
            return True
        return self.phase == Phase.SPLITTING and self._splits.active is not None

    @property
    def can_stand(self) -> bool:
        return self.can_hit

    @property
    def can_double(self) -> bool:
        """Check if doubling is allowed."""
        s = self._state
        if self.phase == Phase.PLAYER_TURN:
            return len(s.player_hand) == 2 and s.chips >= s.bet
        if self.phase == Phase.SPLITTING and self.rules.allow_double_after_split:
            hand = self._splits.active
            return hand is not None and len(hand) == 2 and s.chips >= hand.bet
        return False

    @property
    def can_split(self) -> bool:
        """Check if splitting is allowed."""
        s = self._state
        if self.phase == Phase.PLAYER_TURN:
            cards, bet = s.player_hand.cards, s.bet
        elif self.phase == Phase.SPLITTING and self._splits.active is not None:
            cards, bet = self._splits.active.cards, self._splits.active.bet
        else:
            return False
        return can_split_pair(cards) and s.chips >= bet and self._splits.has_room()

    @property
    def can_surrender(self) -> bool:
        """Check if surrender is allowed."""
        s = self._state
        return (
            self.phase == Phase.PLAYER_TURN
            and self.rules.allow_surrender
            and len(s.player_hand) == 2
            and not s.is_split
        )

    @property
    def max_insurance_bet(self) -> int:
        return self._state.bet // 2

    @property
    def can_insure(self) -> bool:
        if self.phase != Phase.INSURANCE_OFFER:
            return False
        return min(self.max_insurance_bet, self._state.chips) > 0

    # ── Betting ──

    def place_bet(self, amount: int) -> None:
        """Add chips to the pending bet."""
        s = self._state
        if not is_action_allowed(self.phase, Action.PLACE_BET):
            return self._ignore(Action.PLACE_BET, "wrong phase")
        if amount <= 0 or amount > s.chips - s.bet:
            return self._ignore(Action.PLACE_BET, f"cannot cover {amount}")

        if self.phase == Phase.IDLE:
            self.open_betting()
        s.bet += amount
        s.message = f"Bet: {s.bet}. Deal when ready."
        self.events.emit_new(EventType.BET_PLACED, amount=amount, bet=s.bet)
        self._check_invariants()

    def clear_bet(self) -> None:
        """Return the pending bet to zero; chips are untouched."""
        if not is_action_allowed(self.phase, Action.CLEAR_BET):
            return self._ignore(Action.CLEAR_BET, "wrong phase")

        self._state.bet = 0
        self._state.message = BET_MESSAGE
        self.events.emit_new(EventType.BET_CLEARED)

    def deal_cards(self) -> None:
        """Take the bet, deal the opening cards and check for naturals."""
        s = self._state
        if not is_action_allowed(self.phase, Action.DEAL):
            return self._ignore(Action.DEAL, "wrong phase")
        if s.bet <= 0 or s.bet > s.chips:
            return self._ignore(Action.DEAL, "no bet placed")

        self._ensure_shoe()
        s.generation += 1
        self.begin_deal()

        bet = s.bet
        s.clear_round()
        s.bet = bet
        s.chips -= bet
        s.message = "Dealing..."

        # Player, dealer, player, dealer; the dealer's second card is the hole card
        for i in range(2):
            s.player_hand.add_card(self._draw("player"))
            s.dealer_hand.add_card(self._draw("dealer", face_up=i == 0))

        player_bj = s.player_hand.is_blackjack
        dealer_bj = s.dealer_hand.is_blackjack

        if player_bj and dealer_bj:
            self._settle(
                [HandSettlement(0, bet, HandResult.PUSH, push_payout(bet))],
                "Both have Blackjack. It's a push!",
            )
        elif player_bj:
            payout = blackjack_payout(bet, self.rules.blackjack_payout_ratio)
            self._settle(
                [HandSettlement(0, bet, HandResult.BLACKJACK, payout)],
                "Blackjack! You win!",
            )
        elif s.dealer_hand.cards[0].is_ace:
            s.message = "Dealer shows Ace. Insurance?"
            self.offer_insurance()
        else:
            s.message = "Hit or Stand?"
            self.start_player_turn()

        self._check_invariants()

    # ── Player turn ──

    def hit(self) -> None:
        """Draw a card to the player hand, or the active split hand."""
        s = self._state
        if not is_action_allowed(self.phase, Action.HIT) or not self.can_hit:
            return self._ignore(Action.HIT, "wrong phase")

        if self.phase == Phase.SPLITTING:
            self._splits.active.add_card(self._draw("player", hand_index=s.active_hand_index))
            self._splits.advance_if_finished()
            self._continue_split()
            self._check_invariants()
            return

        s.player_hand.add_card(self._draw("player"))
        score = s.player_hand.value

        if score > 21:
            self._settle(
                [HandSettlement(0, s.bet, HandResult.LOSE, 0)],
                f"Bust! You went over 21 with {score}.",
            )
        elif score == 21:
            self._start_dealer_turn()
        else:
            s.message = "Hit or Stand?"

        self._check_invariants()

    def stand(self) -> None:
        """Stand on the player hand, or the active split hand."""
        if not is_action_allowed(self.phase, Action.STAND) or not self.can_stand:
            return self._ignore(Action.STAND, "wrong phase")

        if self.phase == Phase.SPLITTING:
            self._splits.stand_active()
            self._continue_split()
        else:
            self._start_dealer_turn()
        self._check_invariants()

    def double_down(self) -> None:
        """Double the bet, take exactly one card, then stand."""
        s = self._state
        if not is_action_allowed(self.phase, Action.DOUBLE):
            return self._ignore(Action.DOUBLE, "wrong phase")
        if not self.can_double:
            return self._ignore(Action.DOUBLE, "needs two cards and chips to match the bet")

        s.stats.doubles += 1

        if self.phase == Phase.SPLITTING:
            hand = self._splits.active
            s.chips -= hand.bet
            hand.bet *= 2
            hand.doubled = True
            hand.add_card(self._draw("player", hand_index=s.active_hand_index))
            self._splits.stand_active()
            self._continue_split()
            self._check_invariants()
            return

        s.chips -= s.bet
        s.bet *= 2
        self.begin_double()
        s.message = "Doubling down..."
        s.player_hand.add_card(self._draw("player"))

        score = s.player_hand.value
        if score > 21:
            self._settle(
                [HandSettlement(0, s.bet, HandResult.LOSE, 0)],
                f"Bust! You went over 21 with {score}.",
            )
        else:
            self._start_dealer_turn()
        self._check_invariants()

    def split_pairs(self) -> None:
        """Split a pair into two hands, each with its own bet."""
        s = self._state
        if not is_action_allowed(self.phase, Action.SPLIT):
            return self._ignore(Action.SPLIT, "wrong phase")
        if not self.can_split:
            return self._ignore(Action.SPLIT, "needs an affordable pair within the split limit")

        s.stats.splits += 1
        draw = partial(self._draw, "player")

        if self.phase == Phase.SPLITTING:
            s.chips -= self._splits.active.bet
            self._splits.resplit_active(draw)
        else:
            s.chips -= s.bet
            self.begin_split()
            self._splits.start(s.player_hand.cards, s.bet, draw)

        self._continue_split()
        self._check_invariants()

    def surrender(self) -> None:
        """Give up the hand and take back half the bet."""
        s = self._state
        if not is_action_allowed(self.phase, Action.SURRENDER):
            return self._ignore(Action.SURRENDER, "wrong phase")
        if not self.can_surrender:
            return self._ignore(Action.SURRENDER, "only on the first two cards, without a split")

        s.stats.surrenders += 1
        self.begin_surrender()
        self._settle(
            [HandSettlement(0, s.bet, HandResult.LOSE, surrender_refund(s.bet))],
            "Surrendered. Half bet returned.",
        )
        self._check_invariants()

    # ── Insurance ──

    def accept_insurance(self, amount: int) -> None:
        """Take insurance, clamped to half the bet and the available chips."""
        s = self._state
        if not is_action_allowed(self.phase, Action.INSURE):
            return self._ignore(Action.INSURE, "wrong phase")

        clamped = min(amount, self.max_insurance_bet, s.chips)
        if clamped <= 0:
            return self._ignore(Action.INSURE, f"insurance of {amount} not possible")

        s.chips -= clamped
        s.insurance_bet = clamped
        s.stats.insurance_taken += 1
        self.events.emit_new(EventType.INSURANCE_TAKEN, amount=clamped)
        self._after_insurance_decision("Insurance taken. Hit or Stand?")

    def decline_insurance(self) -> None:
        if not is_action_allowed(self.phase, Action.INSURE):
            return self._ignore(Action.INSURE, "wrong phase")

        self.events.emit_new(EventType.INSURANCE_DECLINED)
        self._after_insurance_decision("Hit or Stand?")

    def _after_insurance_decision(self, message: str) -> None:
        s = self._state
        if s.dealer_hand.is_blackjack:
            self._settle(
                [HandSettlement(0, s.bet, HandResult.LOSE, 0)],
                "Dealer has Blackjack.",
            )
        else:
            s.message = message
            self.start_player_turn()
        self._check_invariants()

    # ── Round boundaries ──

    def new_round(self) -> None:
        """Clear the finished round and return to betting."""
        s = self._state
        if not is_action_allowed(self.phase, Action.NEW_ROUND):
            return self._ignore(Action.NEW_ROUND, "round still in progress")

        s.generation += 1
        s.clear_round()
        self._ensure_shoe()
        s.message = BROKE_MESSAGE if s.chips <= 0 else BET_MESSAGE
        self.return_to_betting()

    def reset_everything(self) -> None:
        """Restore the starting bankroll and zero the statistics."""
        s = self._state
        s.generation += 1
        s.clear_round()
        s.chips = s.starting_bankroll
        s.stats = SessionStats()
        s.message = BET_MESSAGE
        self.restart()
        logger.info("Session reset to %d chips", s.chips)
        self.events.emit_new(EventType.SESSION_RESET, chips=s.chips)

    # ── Dealer ──

    def dealer_step(self, generation: int) -> None:
        """
        Advance the dealer by one draw, or settle once the dealer stands.

        Scheduled continuations carry the generation they were created in;
        a step from an earlier generation does nothing.
        """
        s = self._state
        if generation != s.generation or self.phase != Phase.DEALER_TURN:
            logger.debug("Dropped stale dealer step (generation %d, current %d)", generation, s.generation)
            return

        if self._dealer.should_hit(s.dealer_hand.cards):
            s.dealer_hand.add_card(self._draw("dealer"))
            self._schedule_dealer_step(self._draw_delay)
            return

        self._settle_against_dealer()
        self._check_invariants()

    def _start_dealer_turn(self) -> None:
        self.start_dealer_turn()
        self._reveal_hole_card()
        self._state.message = "Dealer is playing..."
        self._schedule_dealer_step(self._initial_delay)

    def _schedule_dealer_step(self, delay: float) -> None:
        self._scheduler.call_later(delay, partial(self.dealer_step, self._state.generation))

    def _continue_split(self) -> None:
        s = self._state
        if self._splits.is_complete:
            self._start_dealer_turn()
        else:
            s.message = f"Playing hand {s.active_hand_index + 1}..."

    def _settle_against_dealer(self) -> None:
        s = self._state
        dealer_cards = s.dealer_hand.cards
        if s.is_split:
            settlements = self._splits.settle(dealer_cards)
            message = " | ".join(
                f"Hand {h.index + 1}: {h.result.value.title()}" for h in settlements
            )
        else:
            settlement = settle_hand(s.player_hand.cards, s.bet, dealer_cards)
            settlements = [settlement]
            message = self._outcome_message(settlement.result)
        self._settle(settlements, message)

    def _outcome_message(self, result: HandResult) -> str:
        player = self._state.player_hand.value
        dealer = self._state.dealer_hand.value
        if dealer > 21:
            return f"Dealer busts with {dealer}! You win!"
        if result == HandResult.WIN:
            return f"You win! {player} beats {dealer}."
        if result == HandResult.LOSE:
            return f"Dealer wins. {dealer} beats {player}."
        return f"Push! Both have {player}."

    # ── Settlement ──

    def _settle(self, settlements: list[HandSettlement], message: str) -> None:
        """Apply every hand result and the insurance stake in one step."""
        s = self._state
        self.resolve()
        self._reveal_hole_card()

        dealer_bj = is_blackjack(s.dealer_hand.cards)
        insurance = insurance_payout(s.insurance_bet, dealer_bj) if s.insurance_bet else 0
        hands_payout = sum(h.payout for h in settlements)
        hands_wagered = sum(h.bet for h in settlements)
        payout = hands_payout + insurance
        wagered = hands_wagered + s.insurance_bet

        s.chips += payout
        for settlement in settlements:
            if s.is_split:
                s.split_hands[settlement.index].result = settlement.result
            s.stats.record_result(settlement.result)
        s.stats.total_wagered += wagered
        s.stats.total_returned += payout
        s.stats.record_chips(s.chips)
        if insurance:
            s.stats.insurance_won += 1

        if len(settlements) == 1:
            s.last_result = settlements[0].result
        elif hands_payout > hands_wagered:
            s.last_result = HandResult.WIN
        elif hands_payout < hands_wagered:
            s.last_result = HandResult.LOSE
        else:
            s.last_result = HandResult.PUSH

        if insurance:
            message += " Insurance pays 2:1!"
        elif s.insurance_bet:
            message += " Insurance lost."
        s.message = message

        logger.info(
            "Round settled: %s, wagered %d, returned %d, chips %d",
            s.last_result.value,
            wagered,
            payout,
            s.chips,
        )
        self.events.emit_new(
            EventType.ROUND_SETTLED,
            result=s.last_result.value,
            hands=[
                {"index": h.index, "bet": h.bet, "result": h.result.value, "payout": h.payout}
                for h in settlements
            ],
            insurance_payout=insurance,
            payout=payout,
            chip_delta=payout - wagered,
            chips=s.chips,
        )
        self.finish_round()

    # ── Cards ──

    def _new_shoe(self) -> Shoe:
        return Shoe(
            num_decks=self.rules.num_decks,
            penetration=self.rules.deck_penetration,
            rng=self._rng,
        )

    def _ensure_shoe(self) -> None:
        """Rebuild the shoe if it ran out or the cut card came out."""
        s = self._state
        if s.shoe is not None and not s.shoe.needs_rebuild:
            return
        s.shoe = self._new_shoe()
        self.events.emit_new(EventType.SHOE_SHUFFLED, cards=s.shoe.original_size)

    def _draw(self, owner: str, face_up: bool = True, hand_index: int | None = None) -> Card:
        """Draw the next card and tag it with the next deal-order identity."""
        s = self._state
        card = s.shoe.draw().with_identity(s.next_card_id + 1)
        s.next_card_id += 1
        self.events.emit_new(
            EventType.CARD_DEALT,
            hand=owner,
            hand_index=hand_index,
            identity=card.identity,
            face_up=face_up,
            card=str(card) if face_up else None,
        )
        return card

    def _reveal_hole_card(self) -> None:
        s = self._state
        if s.dealer_revealed:
            return
        s.dealer_revealed = True
        if len(s.dealer_hand) >= 2:
            hole = s.dealer_hand.cards[1]
            self.events.emit_new(
                EventType.CARD_REVEALED,
                identity=hole.identity,
                card=str(hole),
                hand_value=s.dealer_hand.value,
            )

    # ── Guards ──

    def _ignore(self, action: Action, reason: str) -> None:
        logger.debug("Ignored %s in %s: %s", action.name, self.phase.name, reason)

    def _check_invariants(self) -> None:
        s = self._state
        if s.chips < 0:
            raise InvariantViolation(f"negative chip count {s.chips}")
        if s.bet < 0 or s.insurance_bet < 0:
            raise InvariantViolation("negative wager")
        if len(s.split_hands) > self.rules.max_split_hands:
            raise InvariantViolation(
                f"{len(s.split_hands)} split hands exceeds limit {self.rules.max_split_hands}"
            )
        if s.shoe is None:
            raise InvariantViolation("engine has no shoe")
