"""Tests for table snapshots and exported records."""

import pytest
from pydantic import ValidationError

from blackjack_core.game import ImmediateScheduler, Phase, RoundEngine, RoundRecord


class TestSnapshot:
    def test_hole_card_masked_until_revealed(self, make_engine):
        engine = make_engine("K", "9", "5", "6", "Q")
        engine.place_bet(50)
        engine.deal_cards()

        snap = engine.snapshot()
        assert snap.phase == "player_turn"
        assert snap.dealer_hand[0].rank == "9"
        assert snap.dealer_hand[1].face_up is False
        assert snap.dealer_hand[1].rank is None
        assert snap.dealer_hand[1].identity == 4
        assert snap.dealer_visible_score == 9
        assert snap.player_score == 15
        assert snap.can_hit and snap.can_stand
        assert not snap.can_split
        assert "6" not in snap.model_dump_json(include={"dealer_hand"})

        engine.stand()
        snap = engine.snapshot()
        assert snap.dealer_revealed
        assert all(card.face_up for card in snap.dealer_hand)
        assert snap.dealer_visible_score == 25
        assert snap.last_result == "win"
        assert snap.stats.wins == 1

    def test_snapshot_is_frozen(self, make_engine):
        snap = make_engine("K", "9", "5", "6").snapshot()
        with pytest.raises(ValidationError):
            snap.chips = 5

    def test_split_snapshot_shows_active_hand(self, make_engine):
        engine = make_engine("8", "10", "8", "7", "3", "K", "10")
        engine.place_bet(50)
        engine.deal_cards()
        engine.split_pairs()

        snap = engine.snapshot()
        assert snap.is_split
        assert snap.player_score == 11
        assert [hand.score for hand in snap.split_hands] == [11, 18]
        assert snap.active_hand_index == 0

    def test_finished_split_shows_last_hand(self, make_engine):
        engine = make_engine("8", "10", "8", "7", "3", "K", "10")
        engine.place_bet(50)
        engine.deal_cards()
        engine.split_pairs()
        engine.hit()
        engine.stand()

        snap = engine.snapshot()
        assert snap.phase == "game_over"
        assert snap.active_hand_index == 2
        # Last split hand (8-K), not the original 8-8 pair
        assert snap.player_score == 18
        assert [card.rank for card in snap.player_hand] == ["8", "K"]
        assert [hand.result for hand in snap.split_hands] == ["win", "win"]

    def test_insurance_flags(self, make_engine):
        engine = make_engine("10", "A", "7", "9")
        engine.place_bet(50)
        engine.deal_cards()
        snap = engine.snapshot()
        assert snap.can_insure
        assert snap.max_insurance_bet == 25
        assert snap.dealer_visible_score == 11


class TestRecord:
    def test_json_round_trip(self, make_engine):
        engine = make_engine("10", "A", "7", "9")
        engine.place_bet(50)
        engine.deal_cards()
        engine.accept_insurance(25)

        record = engine.export_state()
        restored = RoundRecord.model_validate_json(record.model_dump_json())
        assert restored == record
        # Records keep the hole card
        assert restored.dealer_hand[1].rank == 9

    def test_restore_resumes_player_turn(self, make_engine):
        engine = make_engine("K", "9", "5", "6", "Q")
        engine.place_bet(50)
        engine.deal_cards()

        clone = RoundEngine.restore(engine.export_state(), rules=engine.rules)
        assert clone.phase == Phase.PLAYER_TURN
        assert clone.state.chips == 950
        assert clone.state.player_hand.cards == engine.state.player_hand.cards

        engine.stand()
        clone.stand()
        assert clone.state.dealer_hand.cards == engine.state.dealer_hand.cards
        assert clone.state.chips == engine.state.chips == 1050
        assert clone.state.next_card_id == engine.state.next_card_id

    def test_restore_into_dealer_turn(self, make_engine, manual_scheduler):
        engine = make_engine("10", "6", "7", "5", "2", "K", scheduler=manual_scheduler)
        engine.place_bet(50)
        engine.deal_cards()
        engine.stand()
        manual_scheduler.run_next()
        record = engine.export_state()
        assert record.phase == "DEALER_TURN"

        clone = RoundEngine.restore(record, scheduler=ImmediateScheduler())
        assert clone.phase == Phase.GAME_OVER
        assert len(clone.state.dealer_hand) == 4
        assert clone.state.chips == 1050

    def test_record_rejects_negative_chips(self, make_engine):
        data = make_engine("K", "9", "5", "6").export_state().model_dump()
        data["chips"] = -5
        with pytest.raises(ValidationError):
            RoundRecord.model_validate(data)
