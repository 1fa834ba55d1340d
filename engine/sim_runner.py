"""engine.sim_runner

Headless runner for quick sanity checks and balancing.

Deterministic for a given seed; no UI and no network.
"""

from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

from core.catalog import DEPARTMENTS, DrawnInitiative, Initiative
from core.metrics import MetricSet
from core.resolver import Outcome, resolve_initiative
from core.rng import make_rng
from core.state import GameState

from .config import EngineConfig
from .session import GameSession


DepartmentPolicy = Callable[[GameState, random.Random], str]
ChoicePolicy = Callable[[Sequence[DrawnInitiative], random.Random], int]


def focus_department(state: GameState, rng: random.Random) -> str:
    """Fix the weakest unit level first (same order as the advisor)."""
    m = state.metrics
    if m.net_profit_per_user - m.cost_per_user < 0:
        return "acquisition" if m.cost_per_user > 4 else "product"
    if m.first_conversion < 40:
        return "onboarding"
    if m.net_profit < 0 and m.fixed_costs > 2900:
        return "admin"
    return "acquisition" if m.cost_of_goods <= 5 else "product"


def random_department(state: GameState, rng: random.Random) -> str:
    return rng.choice(DEPARTMENTS)


def safest_choice(offer: Sequence[DrawnInitiative], rng: random.Random) -> int:
    return max(range(len(offer)), key=lambda i: offer[i].chance)


def random_choice(offer: Sequence[DrawnInitiative], rng: random.Random) -> int:
    return rng.randrange(len(offer))


@dataclass
class HeadlessBot:
    pick_department: DepartmentPolicy = focus_department
    pick_initiative: ChoicePolicy = safest_choice


def run_headless_sim(
    profile_key: str = "classic",
    seed: int = 123,
    bot: HeadlessBot | None = None,
) -> Dict[str, Any]:
    """Play one full game and return a summary."""
    bot = bot or HeadlessBot()
    session = GameSession(EngineConfig(profile_key=profile_key, base_seed=seed))
    policy_rng = make_rng(seed, "policy")

    max_turns = session.config.profile.final_turn + 1
    for _ in range(max_turns):
        if session.game_over:
            break
        offer = session.draw_initiatives(bot.pick_department(session.state, policy_rng))
        session.resolve_initiative(bot.pick_initiative(offer, policy_rng))

    state = session.state
    return {
        "profile": profile_key,
        "seed": seed,
        "turns_played": len(session.turn_logs),
        "final": state,
        "end_reason": state.end_reason.value if state.end_reason is not None else None,
        "is_victory": state.is_victory,
        "unlocked": list(state.unlocked),
        "logs": list(session.turn_logs),
    }


def batch_end_reasons(profile_key: str = "classic", seeds: Sequence[int] = range(50), bot: HeadlessBot | None = None) -> Dict[str, int]:
    """How games end across many seeds (balancing aid)."""
    counts: Counter = Counter()
    for s in seeds:
        counts[str(run_headless_sim(profile_key, int(s), bot)["end_reason"])] += 1
    return dict(counts)


def estimate_outcome_rates(
    initiative: Initiative,
    chance: float,
    metrics: MetricSet,
    *,
    trials: int = 100_000,
    seed: int = 7,
) -> Dict[Outcome, float]:
    """Empirical outcome distribution of the resolver at a fixed chance."""
    rng = random.Random(seed)
    counts: Counter = Counter()
    for _ in range(int(trials)):
        counts[resolve_initiative(initiative, chance, metrics, rng).outcome] += 1
    return {o: counts[o] / float(trials) for o in Outcome}


def outcome_histogram(logs: List[Dict[str, Any]]) -> Dict[str, int]:
    return dict(Counter(str(x.get("outcome")) for x in logs))
