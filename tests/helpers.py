"""Shared fixtures-as-functions for the test suite."""

from __future__ import annotations

from typing import Iterable, List

from core.catalog import DrawnInitiative, Initiative
from core.metrics import recompute
from core.profiles import CLASSIC_START


class ScriptedRandom:
    """Stand-in for random.Random that replays fixed random() values."""

    def __init__(self, values: Iterable[float]) -> None:
        self.values: List[float] = list(values)
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.values.pop(0)


def classic_metrics(**overrides):
    base = dict(CLASSIC_START)
    base.update(overrides)
    return recompute(base)


def rich_metrics():
    # net profit 77,000
    return recompute({
        "avg_price": 100,
        "cost_of_goods": 10,
        "first_conversion": 50,
        "users": 2000,
        "cost_per_user": 5,
        "fixed_costs": 3000,
    })


NOOP = Initiative("Do nothing", "No change", lambda m: m, 0.5)


def sure_thing(initiative: Initiative = NOOP) -> DrawnInitiative:
    return DrawnInitiative(initiative, 1.0)


def dud(initiative: Initiative = NOOP) -> DrawnInitiative:
    # chance 0 always resolves to FAILURE
    return DrawnInitiative(initiative, 0.0)
