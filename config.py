"""Configuration management with environment variable support."""

import logging
import os
from dataclasses import dataclass, field
from random import Random

from blackjack_core.exceptions import ConfigurationError
from blackjack_core.game import RoundEngine, Scheduler
from blackjack_core.rules import HouseRules


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class TableConfig:
    """House rules for the table."""

    num_decks: int = field(default_factory=lambda: _env_int("NUM_DECKS", "6"))
    dealer_hits_soft_17: bool = field(
        default_factory=lambda: _env_bool("DEALER_HITS_SOFT_17", "false")
    )
    blackjack_payout: float = field(
        default_factory=lambda: _env_float("BLACKJACK_PAYOUT", "1.5")
    )
    double_after_split: bool = field(
        default_factory=lambda: _env_bool("DOUBLE_AFTER_SPLIT", "false")
    )
    surrender_allowed: bool = field(
        default_factory=lambda: _env_bool("SURRENDER_ALLOWED", "true")
    )
    max_split_hands: int = field(default_factory=lambda: _env_int("MAX_SPLIT_HANDS", "3"))
    penetration: float = field(default_factory=lambda: _env_float("DECK_PENETRATION", "0.75"))
    stand_threshold: int = 17

    def house_rules(self) -> HouseRules:
        """Build validated house rules; raises ConfigurationError."""
        return HouseRules(
            num_decks=self.num_decks,
            deck_penetration=self.penetration,
            dealer_hits_soft_17=self.dealer_hits_soft_17,
            stand_threshold=self.stand_threshold,
            blackjack_payout_ratio=self.blackjack_payout,
            allow_double_after_split=self.double_after_split,
            allow_surrender=self.surrender_allowed,
            max_split_hands=self.max_split_hands,
        )


@dataclass(frozen=True)
class PacingConfig:
    """Cosmetic delays between the dealer's draws, in seconds."""

    dealer_initial_delay: float = field(
        default_factory=lambda: _env_float("DEALER_INITIAL_DELAY", "0.4")
    )
    dealer_draw_delay: float = field(
        default_factory=lambda: _env_float("DEALER_DRAW_DELAY", "0.6")
    )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", "false"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    starting_bankroll: int = field(
        default_factory=lambda: _env_int("STARTING_BANKROLL", "1000")
    )

    table: TableConfig = field(default_factory=TableConfig)
    pacing: PacingConfig = field(default_factory=PacingConfig)

    def __post_init__(self) -> None:
        if self.starting_bankroll < 0:
            raise ConfigurationError("STARTING_BANKROLL cannot be negative")


def configure_logging(app_config: AppConfig | None = None) -> None:
    """Apply the configured log level to the root logger."""
    app_config = app_config or config
    level = logging.DEBUG if app_config.debug else app_config.log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_engine(
    app_config: AppConfig | None = None,
    rng: Random | None = None,
    scheduler: Scheduler | None = None,
) -> RoundEngine:
    """Create a round engine from configuration."""
    app_config = app_config or config
    return RoundEngine(
        rules=app_config.table.house_rules(),
        starting_bankroll=app_config.starting_bankroll,
        rng=rng,
        scheduler=scheduler,
        dealer_initial_delay=app_config.pacing.dealer_initial_delay,
        dealer_draw_delay=app_config.pacing.dealer_draw_delay,
    )


# Global configuration instance
config = AppConfig()
