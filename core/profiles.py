"""
core.profiles
Ruleset profiles (starting metrics, win threshold, turn cap, extended metrics).

Every rule variant of the game is a profile; one engine serves all of them.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from .metrics import BASE_FIELDS, MetricSet, round_half_up, recompute


CLASSIC_START: Dict[str, float] = {
    "avg_price": 20.0,
    "cost_of_goods": 15.0,
    "first_conversion": 10.0,
    "users": 200.0,
    "cost_per_user": 20.0,
    "fixed_costs": 3000.0,
}

# Harder economy of the early 10-turn build.
SPRINT_START: Dict[str, float] = {
    "avg_price": 40.0,
    "cost_of_goods": 30.0,
    "first_conversion": 10.0,
    "users": 200.0,
    "cost_per_user": 25.0,
    "fixed_costs": 3000.0,
}


@dataclass(frozen=True)
class RulesProfile:
    key: str
    desc: str
    start_metrics: Mapping[str, float]
    win_threshold: float
    final_turn: int
    start_balance: float = 30_000.0
    start_extras: Mapping[str, float] = field(default_factory=dict)
    low_user_threshold: float = 100.0
    low_user_turn_limit: int = 2
    chance_window: Tuple[float, float] = (0.2, 0.9)
    draw_count: int = 3
    start_jitter: float = 0.0  # +/- fraction applied to each starting base field

    @property
    def active_extras(self) -> Tuple[str, ...]:
        return tuple(sorted(self.start_extras.keys()))

    @property
    def start_cost_of_goods(self) -> float:
        return float(self.start_metrics["cost_of_goods"])


DEFAULT_PROFILES: Dict[str, RulesProfile] = {
    "classic": RulesProfile(
        key="classic",
        desc="15 turns. Reach a monthly net profit of $50,000 by the final turn.",
        start_metrics=dict(CLASSIC_START),
        win_threshold=50_000.0,
        final_turn=15,
    ),
    "sprint": RulesProfile(
        key="sprint",
        desc="10 turns, pricier product, $200,000 monthly net profit to win.",
        start_metrics=dict(SPRINT_START),
        win_threshold=200_000.0,
        final_turn=10,
    ),
    "extended": RulesProfile(
        key="extended",
        desc="Classic rules plus virality, NPS and OpEx tracking.",
        start_metrics=dict(CLASSIC_START),
        start_extras={"virality": 0.1, "nps": 20.0, "opex": 0.0},
        win_threshold=50_000.0,
        final_turn=15,
    ),
    "random_start": RulesProfile(
        key="random_start",
        desc="Classic rules with a randomized starting position (+/-20%).",
        start_metrics=dict(CLASSIC_START),
        win_threshold=50_000.0,
        final_turn=15,
        start_jitter=0.20,
    ),
}


def get_profile(key: str) -> RulesProfile:
    """Strict lookup; unknown keys are a configuration error."""
    try:
        return DEFAULT_PROFILES[key]
    except KeyError:
        raise ValueError(f"Unknown rules profile: {key!r}") from None


def starting_metrics(profile: RulesProfile, rng: Optional[random.Random] = None) -> MetricSet:
    """Initial MetricSet for a profile; jittered when the profile asks for it."""
    base = {k: float(profile.start_metrics[k]) for k in BASE_FIELDS}
    if profile.start_jitter > 0:
        if rng is None:
            raise ValueError("a random source is required for a jittered start")
        j = float(profile.start_jitter)
        for k in BASE_FIELDS:
            base[k] = round_half_up(base[k] * rng.uniform(1.0 - j, 1.0 + j))
        # keep the product sellable
        base["avg_price"] = max(base["avg_price"], base["cost_of_goods"] + 1.0)
    return recompute(base, dict(profile.start_extras))
