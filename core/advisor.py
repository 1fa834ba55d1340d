"""
core.advisor
Unit-economics coaching hint shown after each turn.

Three unit levels:
- unit 1: gross profit per user (price - COGS)
- unit 2: net profit per user minus acquisition cost
- unit 3: monthly net profit
"""

from __future__ import annotations

from .metrics import MetricSet


DEFAULT_ADVICE = "Every decision moves the key business metrics. Read the results and adjust the strategy."


def advice_for(m: MetricSet, balance: float) -> str:
    unit1 = m.gross_profit_per_user
    unit2 = m.net_profit_per_user - m.cost_per_user
    unit3 = m.net_profit
    cogs = m.cost_of_goods
    c1 = m.first_conversion

    if unit2 < 0 and m.cost_per_user > 4:
        return "Unit 2 is negative: every user loses money. Lower CPUser with SEO content and ad optimization."
    if unit2 < 0:
        return "Get unit 2 out of the red. Keep lowering CPUser through SEO and ad optimization."
    if unit1 > 0 and unit2 > 0 and unit3 < 0 and -3 * unit3 > balance and m.fixed_costs > 2900:
        return "Cut fixed costs: the budget is at risk of running out."
    if unit1 > 0 and unit2 > 0 and c1 < 40 and -3 * unit3 < balance:
        return "Bring first-session conversion (onboarding) up to 40%."
    if unit1 > 0 and unit2 > 0 and unit3 > 0 and c1 > 40 and cogs > 5 and cogs / unit1 > 0.3:
        return "Bring product COGS down to $5."
    if unit1 > 0 and unit2 > 0 and unit3 > 0 and c1 > 40 and cogs <= 5 and unit1 >= 50:
        return "Scale the user base aggressively."
    if unit1 > 0 and unit2 > 0 and unit3 > 0 and c1 > 40 and cogs / unit1 < 0.3 and unit1 < 50:
        return "Grow the average price: add product value."
    return DEFAULT_ADVICE


def win_progress(net_profit: float, win_threshold: float) -> float:
    """0..1 progress of monthly net profit toward the win threshold."""
    if win_threshold <= 0:
        return 1.0
    return max(0.0, min(1.0, float(net_profit) / float(win_threshold)))
