"""
core.resolver
Outcome resolution for a chosen initiative.

Two-stage gate:
- r1 < chance                      -> FULL_SUCCESS (then optional risk roll)
- else r3 < 1 - chance             -> FAILURE (metrics unchanged)
- else                             -> PARTIAL
So P(full) = c, P(failure) = (1-c)^2, P(partial) = c(1-c).
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum

from .catalog import Initiative
from .metrics import BASE_FIELDS, MetricSet, refresh, recompute


class Outcome(str, Enum):
    FULL_SUCCESS = "full_success"
    PARTIAL = "partial"
    FAILURE = "failure"


SUCCESS_SUFFIX = "(success, initiative delivered)"
PARTIAL_MESSAGE = "Initiative partially delivered."
FAILURE_MESSAGE = "Initiative did not work."


@dataclass(frozen=True)
class Resolution:
    outcome: Outcome
    metrics: MetricSet
    message: str
    risk_triggered: bool = False


def interpolate_partial(current: MetricSet, full: MetricSet, chance: float) -> MetricSet:
    """Move every base field (and extra) `chance` of the way toward `full`."""
    c = float(chance)
    base = {}
    for k in BASE_FIELDS:
        cur = float(getattr(current, k))
        base[k] = cur + (float(getattr(full, k)) - cur) * c
    extras = dict(current.extras)
    for k, target in full.extras.items():
        cur = float(current.extras.get(k, 0.0))
        extras[k] = cur + (float(target) - cur) * c
    return recompute(base, extras)


def _risk_applies(initiative: Initiative, before: MetricSet, after: MetricSet) -> bool:
    risk = initiative.risk
    if risk is None:
        return False
    if risk.condition is None:
        return True
    seen = before if risk.evaluate_on == "before" else after
    return bool(risk.condition(seen))


def resolve_initiative(
    initiative: Initiative,
    chance: float,
    metrics: MetricSet,
    rng: random.Random,
) -> Resolution:
    """Resolve one initiative against the current metrics (no state mutation)."""
    r1 = rng.random()
    if r1 < chance:
        new = refresh(initiative.apply(metrics))
        message = f"{initiative.description} {SUCCESS_SUFFIX}"
        if _risk_applies(initiative, metrics, new):
            r2 = rng.random()
            if r2 < float(initiative.risk.chance):
                new = refresh(initiative.risk.effect(new))
                return Resolution(Outcome.FULL_SUCCESS, new, initiative.risk.message, risk_triggered=True)
        return Resolution(Outcome.FULL_SUCCESS, new, message)

    r3 = rng.random()
    if r3 < (1 - chance):
        return Resolution(Outcome.FAILURE, metrics, FAILURE_MESSAGE)

    if initiative.partial_effect is not None:
        new = refresh(initiative.partial_effect(metrics))
    else:
        full = refresh(initiative.apply(metrics))
        new = interpolate_partial(metrics, full, chance)
    return Resolution(Outcome.PARTIAL, new, PARTIAL_MESSAGE)
