"""
core.achievements
One-shot achievements: a small registry of pure predicates over
(metrics, previous metrics, turn).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Collection, List, Optional, Sequence

from .metrics import MetricSet


Predicate = Callable[[MetricSet, Optional[MetricSet], int], bool]


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    predicate: Predicate

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "description": self.description, "icon": self.icon}


def default_achievements(start_cost_of_goods: float = 15.0) -> List[Achievement]:
    """The standard registry; "cost cutter" is relative to the starting COGS."""
    cogs_target = float(start_cost_of_goods) * 0.7
    return [
        Achievement("first_profit", "First profit", "Reach a positive net profit", "💰",
                    lambda m, prev, turn: m.net_profit > 0),
        Achievement("users_1000", "Growing community", "Reach 1,000 users", "👥",
                    lambda m, prev, turn: m.users >= 1000),
        Achievement("users_5000", "Popular product", "Reach 5,000 users", "🌟",
                    lambda m, prev, turn: m.users >= 5000),
        Achievement("margin_50", "Efficient business", "Reach a 50% margin", "📈",
                    lambda m, prev, turn: m.margin >= 0.5),
        Achievement("profit_10k", "On the way", "Reach a net profit of $10,000", "💎",
                    lambda m, prev, turn: m.net_profit >= 10_000),
        Achievement("profit_25k", "Confident growth", "Reach a net profit of $25,000", "🚀",
                    lambda m, prev, turn: m.net_profit >= 25_000),
        Achievement("c1_40", "Conversion master", "Reach 40% first-session conversion", "🎯",
                    lambda m, prev, turn: m.first_conversion >= 40),
        Achievement("low_costs", "Cost cutter", "Cut COGS by 30% from the starting value", "✂️",
                    lambda m, prev, turn: m.cost_of_goods <= cogs_target),
        Achievement("quick_growth", "Quick start", "Reach 2,000 users within the first 5 turns", "⚡",
                    lambda m, prev, turn: m.users >= 2000 and turn <= 5),
        Achievement("perfect_balance", "Perfect balance", "Positive net profit, per-user profit and margin with conversion above 20%", "⚖️",
                    lambda m, prev, turn: m.net_profit > 0 and m.net_profit_per_user > 0 and m.margin > 0 and m.first_conversion > 20),
    ]


def evaluate_achievements(
    registry: Sequence[Achievement],
    unlocked: Collection[str],
    metrics: MetricSet,
    previous: Optional[MetricSet],
    turn: int,
) -> List[Achievement]:
    """Return achievements newly satisfied, in registry order; already unlocked ids are skipped."""
    done = set(unlocked)
    return [a for a in registry if a.id not in done and a.predicate(metrics, previous, int(turn))]
