"""Tests for configuration classes."""

import os
from random import Random
from unittest.mock import patch

import pytest

from blackjack_core.exceptions import ConfigurationError
from blackjack_core.game import ImmediateScheduler, Phase
from config import AppConfig, PacingConfig, TableConfig, create_engine


class TestTableConfig:
    """Tests for TableConfig class."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            table = TableConfig()
            assert table.num_decks == 6
            assert table.blackjack_payout == 1.5
            assert not table.dealer_hits_soft_17
            assert table.surrender_allowed

    def test_reads_env(self):
        env = {
            "NUM_DECKS": "8",
            "DEALER_HITS_SOFT_17": "true",
            "BLACKJACK_PAYOUT": "1.2",
            "DOUBLE_AFTER_SPLIT": "TRUE",
        }
        with patch.dict(os.environ, env, clear=True):
            rules = TableConfig().house_rules()
            assert rules.num_decks == 8
            assert rules.dealer_hits_soft_17
            assert rules.blackjack_payout_ratio == 1.2
            assert rules.allow_double_after_split

    def test_unsupported_deck_count(self):
        with patch.dict(os.environ, {"NUM_DECKS": "5"}, clear=True):
            with pytest.raises(ConfigurationError):
                TableConfig().house_rules()

    def test_non_numeric_value(self):
        with patch.dict(os.environ, {"NUM_DECKS": "six"}, clear=True):
            with pytest.raises(ConfigurationError):
                TableConfig()


class TestAppConfig:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            app = AppConfig()
            assert app.starting_bankroll == 1000
            assert app.log_level == "INFO"
            assert not app.debug
            assert app.pacing == PacingConfig(dealer_initial_delay=0.4, dealer_draw_delay=0.6)

    def test_negative_bankroll(self):
        with patch.dict(os.environ, {"STARTING_BANKROLL": "-1"}, clear=True):
            with pytest.raises(ConfigurationError):
                AppConfig()

    def test_log_level_is_uppercased(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}, clear=True):
            assert AppConfig().log_level == "DEBUG"


class TestCreateEngine:
    def test_engine_uses_config(self):
        env = {"STARTING_BANKROLL": "500", "NUM_DECKS": "2"}
        with patch.dict(os.environ, env, clear=True):
            app = AppConfig()
        engine = create_engine(app, rng=Random(3), scheduler=ImmediateScheduler())
        assert engine.phase == Phase.IDLE
        assert engine.state.chips == 500
        assert engine.rules.num_decks == 2
        assert engine.state.shoe.original_size == 104

    def test_seeded_engines_deal_alike(self):
        with patch.dict(os.environ, {}, clear=True):
            app = AppConfig()
        first = create_engine(app, rng=Random(11))
        second = create_engine(app, rng=Random(11))
        for engine in (first, second):
            engine.place_bet(10)
            engine.deal_cards()
        assert first.state.player_hand.cards == second.state.player_hand.cards
        assert first.state.dealer_hand.cards == second.state.dealer_hand.cards
