"""Per-session statistics accumulated at settlement."""

from dataclasses import dataclass, field

from blackjack_core.hand import HandResult

CHIP_HISTORY_LIMIT = 50


@dataclass
class SessionStats:
    """
    Running totals for one session.

    Updated once per settled hand; zeroed by a full reset.
    """

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
    chip_history: list[int] = field(default_factory=list)

    def record_result(self, result: HandResult) -> None:
        """Count one settled hand and update streaks."""
        self.hands_played += 1

        if result in (HandResult.WIN, HandResult.BLACKJACK):
            self.wins += 1
            if result == HandResult.BLACKJACK:
                self.blackjacks += 1
            self.current_win_streak += 1
            self.current_loss_streak = 0
            self.biggest_win_streak = max(self.biggest_win_streak, self.current_win_streak)
        elif result == HandResult.LOSE:
            self.losses += 1
            self.current_loss_streak += 1
            self.current_win_streak = 0
            self.biggest_loss_streak = max(self.biggest_loss_streak, self.current_loss_streak)
        else:
            self.pushes += 1

    def record_chips(self, chips: int) -> None:
        """Append the bankroll after a round, keeping the last 50 entries."""
        self.chip_history.append(chips)
        del self.chip_history[:-CHIP_HISTORY_LIMIT]

    @property
    def net(self) -> int:
        """Return the net chips won (negative when down)."""
        return self.total_returned - self.total_wagered

    @property
    def win_rate(self) -> float:
        if self.hands_played == 0:
            return 0.0
        return self.wins / self.hands_played
