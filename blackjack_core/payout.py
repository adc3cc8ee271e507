"""Payout arithmetic.

Every function returns the total amount handed back to the player, stake
included, so a losing hand returns 0.
"""

from decimal import ROUND_FLOOR, Decimal

# Fractional blackjack winnings are rounded down: bet 15 at 3:2 returns 37.
BLACKJACK_ROUNDING = ROUND_FLOOR

INSURANCE_MULTIPLIER = 3


def blackjack_payout(bet: int, ratio: float) -> int:
    """Return stake plus ``floor(bet * ratio)`` for a natural."""
    winnings = Decimal(bet) * Decimal(str(ratio))
    return bet + int(winnings.to_integral_value(rounding=BLACKJACK_ROUNDING))


def win_payout(bet: int) -> int:
    return bet * 2


def push_payout(bet: int) -> int:
    return bet


def insurance_payout(insurance_bet: int, dealer_has_blackjack: bool) -> int:
    """Insurance returns stake plus 2:1 only against a dealer blackjack."""
    if not dealer_has_blackjack:
        return 0
    return insurance_bet * INSURANCE_MULTIPLIER


def surrender_refund(bet: int) -> int:
    """Half the bet, rounded down, comes back on surrender."""
    return bet // 2
