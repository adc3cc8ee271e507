"""Round engine and state management."""

from blackjack_core.game.dealer import DealerPolicy
from blackjack_core.game.engine import RoundEngine
from blackjack_core.game.events import EventType, GameEvent
from blackjack_core.game.scheduler import (
    AsyncioScheduler,
    ImmediateScheduler,
    ManualScheduler,
    Scheduler,
)
from blackjack_core.game.snapshot import RoundRecord, RoundSnapshot
from blackjack_core.game.splits import SplitCoordinator
from blackjack_core.game.state import Phase, RoundState
from blackjack_core.game.stats import SessionStats

__all__ = [
    "AsyncioScheduler",
    "DealerPolicy",
    "EventType",
    "GameEvent",
    "ImmediateScheduler",
    "ManualScheduler",
    "Phase",
    "RoundEngine",
    "RoundRecord",
    "RoundSnapshot",
    "RoundState",
    "Scheduler",
    "SessionStats",
    "SplitCoordinator",
]
