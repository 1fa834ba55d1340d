"""
core.rules
End-of-turn rules: low-user streak, end conditions, profit delta message.
"""

from __future__ import annotations

from typing import Optional

from .profiles import RulesProfile
from .state import EndReason


LOW_USERS_WARNING = "The customer base is shrinking!"
PROFIT_EPSILON = 0.01


def next_low_user_streak(streak: int, users: float, threshold: float = 100.0) -> int:
    return int(streak) + 1 if users < threshold else 0


def check_end_condition(
    *,
    net_profit: float,
    balance: float,
    low_user_streak: int,
    turn: int,
    profile: RulesProfile,
) -> Optional[EndReason]:
    """First matching end condition, in fixed priority order.

    `turn` is the counter after it was advanced. Victory is only possible
    when it equals the profile's final turn.
    """
    if net_profit >= profile.win_threshold and turn == profile.final_turn:
        return EndReason.VICTORY
    if balance < 0:
        return EndReason.INSOLVENCY
    if low_user_streak >= profile.low_user_turn_limit:
        return EndReason.CHURN
    if turn > profile.final_turn:
        return EndReason.TIMEOUT
    return None


def profit_delta_message(old_net_profit: float, new_net_profit: float) -> str:
    delta = float(new_net_profit) - float(old_net_profit)
    if abs(delta) > PROFIT_EPSILON:
        direction = "rose" if delta > 0 else "fell"
        return f"Net profit {direction} by ${abs(delta):,.2f}"
    return "Net profit unchanged"
