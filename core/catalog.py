"""
core.catalog
Initiative catalog (static data) and the per-turn draw.

- Initiative / Risk contracts
- department registry
- draw: uniform sample without replacement + per-draw effective chance
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .metrics import MetricSet, round_half_up


Transform = Callable[[MetricSet], MetricSet]
Condition = Callable[[MetricSet], bool]

DEPARTMENTS: Tuple[str, ...] = ("acquisition", "product", "onboarding", "admin")

DEPARTMENT_INFO: Dict[str, Dict[str, str]] = {
    "acquisition": {"label": "Acquisition", "icon": "📈", "desc": "CPUser down $4-$17, users up 100 to 8,000"},
    "product": {"label": "Product", "icon": "🛠️", "desc": "COGS down $3-$10, average price up $2-$30"},
    "onboarding": {"label": "Onboarding", "icon": "🎓", "desc": "First-session conversion up 15% to 120% (relative)"},
    "admin": {"label": "Admin", "icon": "🏢", "desc": "Fixed costs down $900 to $20,000"},
}

RISK_EVALUATION_POINTS = {"before", "after"}


@dataclass(frozen=True)
class Risk:
    """Secondary penalty that may fire after a full success.

    `evaluate_on` picks the metrics `condition` sees: "after" (post-apply,
    the default) or "before" (pre-apply).
    """

    chance: float
    effect: Transform
    message: str
    condition: Optional[Condition] = None
    evaluate_on: str = "after"


@dataclass(frozen=True)
class Initiative:
    title: str
    description: str
    apply: Transform
    base_success_chance: float
    partial_effect: Optional[Transform] = None
    risk: Optional[Risk] = None
    requires: Tuple[str, ...] = ()  # extended metrics that must be active


@dataclass(frozen=True)
class DrawnInitiative:
    """An initiative offered this turn with its effective success chance."""

    initiative: Initiative
    chance: float

    @property
    def title(self) -> str:
        return self.initiative.title


Catalog = Mapping[str, Sequence[Initiative]]


def normalize_department(department: str) -> str:
    d = str(department or "").strip().lower()
    if d not in DEPARTMENTS:
        raise ValueError(f"Unknown department: {department!r}")
    return d


def _conv(m: MetricSet, factor: float) -> float:
    """Relative conversion uplift, rounded and capped at 100%."""
    return min(round_half_up(m.first_conversion * factor), 100.0)


def _fix_floor(m: MetricSet, cut: float) -> float:
    return max(m.fixed_costs - cut, 1000.0)


# =========================
# Catalog content
# =========================


ACQUISITION: List[Initiative] = [
    Initiative(
        "Launch an AI SEO copy generator",
        "Users +100, CPUser -$10",
        lambda m: m.evolve(users=m.users + 100, cost_per_user=max(m.cost_per_user - 10, 0)),
        0.70,
        risk=Risk(0.25, lambda m: m.evolve(first_conversion=m.first_conversion - 5), "Over-optimization: conversion -5%"),
    ),
    Initiative(
        "Start a content blog",
        "Users +300, CPUser -$17, fixed costs +$2,500",
        lambda m: m.evolve(users=m.users + 300, cost_per_user=max(m.cost_per_user - 17, 0), fixed_costs=m.fixed_costs + 2500),
        0.70,
        risk=Risk(0.70, lambda m: m.evolve(first_conversion=m.first_conversion - 10), "Lots of untargeted traffic: conversion -10%"),
    ),
    Initiative(
        "Run a media (PR) campaign",
        "Users +3,000, fixed costs +$25,000",
        lambda m: m.evolve(users=m.users + 3000, fixed_costs=m.fixed_costs + 25000),
        0.55,
        risk=Risk(0.70, lambda m: m.evolve(first_conversion=m.first_conversion - 10), "Lots of untargeted traffic: conversion -10%"),
    ),
    Initiative(
        "Scale the campaigns that already work",
        "Users +500, CPUser +$2",
        lambda m: m.evolve(users=m.users + 500, cost_per_user=max(m.cost_per_user + 2, 0)),
        0.65,
    ),
    Initiative(
        "Buy more search-ad traffic",
        "Users +1,000, CPUser +$3",
        lambda m: m.evolve(users=m.users + 1000, cost_per_user=max(m.cost_per_user + 3, 0)),
        0.65,
    ),
    Initiative(
        "Buy more traffic on every channel",
        "Users +3,000, CPUser +$6",
        lambda m: m.evolve(users=m.users + 3000, cost_per_user=max(m.cost_per_user + 6, 0)),
        0.65,
    ),
    Initiative(
        "Move budget to the winning campaigns",
        "CPUser -$7",
        lambda m: m.evolve(cost_per_user=max(m.cost_per_user - 7, 0)),
        0.72,
        risk=Risk(0.30, lambda m: m.evolve(users=m.users - 100), "Optimization throttled the inflow: users -100"),
    ),
    Initiative(
        "Set up automated bidding strategies",
        "CPUser -$4, conversion +1%",
        lambda m: m.evolve(cost_per_user=max(m.cost_per_user - 4, 0), first_conversion=m.first_conversion + 1),
        0.75,
        risk=Risk(0.20, lambda m: m.evolve(cost_per_user=max(m.cost_per_user + 1, 0)), "Algorithms are still learning: CPUser +$1"),
    ),
    Initiative(
        "Audit the ad agency",
        "CPUser -$5",
        lambda m: m.evolve(cost_per_user=max(m.cost_per_user - 5, 0)),
        0.70,
    ),
    Initiative(
        "Book a million-follower influencer",
        "Users +8,000, fixed costs +$75,000",
        lambda m: m.evolve(users=m.users + 8000, fixed_costs=m.fixed_costs + 75000),
        0.40,
        risk=Risk(0.20, lambda m: m.evolve(first_conversion=m.first_conversion - 15), "Bot fraud: conversion -15%"),
    ),
    Initiative(
        "Sync the omnichannel funnel",
        "CPUser -$6, users +200",
        lambda m: m.evolve(cost_per_user=max(m.cost_per_user - 6, 0), users=m.users + 200),
        0.70,
    ),
    Initiative(
        "Launch a referral loop",
        "Virality +0.05, users +200",
        lambda m: m.evolve(virality=m.extra("virality") + 0.05, users=m.users + 200),
        0.60,
        risk=Risk(
            0.30,
            lambda m: m.evolve(users=m.users - 150),
            "Referral spam with unhappy users: users -150",
            condition=lambda m: m.extra("nps") < 10,
            evaluate_on="before",
        ),
        requires=("virality", "nps"),
    ),
]


PRODUCT: List[Initiative] = [
    Initiative(
        "Cache AI responses through a CDN",
        "COGS -$7",
        lambda m: m.evolve(cost_of_goods=max(m.cost_of_goods - 7, 1)),
        0.65,
    ),
    Initiative(
        "Merge API vendors and cut paid calls",
        "COGS -$10",
        lambda m: m.evolve(cost_of_goods=max(m.cost_of_goods - 10, 1)),
        0.80,
    ),
    Initiative(
        "Brotli-compress mail and attachments",
        "COGS -$4",
        lambda m: m.evolve(cost_of_goods=max(m.cost_of_goods - 4, 1)),
        0.75,
    ),
    Initiative(
        "Automate support requests",
        "COGS -$3",
        lambda m: m.evolve(cost_of_goods=max(m.cost_of_goods - 3, 1)),
        0.60,
    ),
    Initiative(
        "Move old mail to cold storage",
        "COGS -$5",
        lambda m: m.evolve(cost_of_goods=max(m.cost_of_goods - 5, 1)),
        0.60,
    ),
    Initiative(
        "Run plan-propensity models on non-buyers",
        "Average price +$5, conversion +18% (rel.)",
        lambda m: m.evolve(avg_price=m.avg_price + 5, first_conversion=_conv(m, 1.18)),
        0.67,
    ),
    Initiative(
        "Extend premium-plan features",
        "Conversion +8% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 1.08)),
        0.63,
    ),
    Initiative(
        "Tune pricing by segment and period",
        "Conversion +8% (rel.), average price +$5",
        lambda m: m.evolve(first_conversion=_conv(m, 1.08), avg_price=m.avg_price + 5),
        0.70,
    ),
    Initiative(
        "Fix the low-CSI features",
        "Average price +$2, conversion +2% (rel.)",
        lambda m: m.evolve(avg_price=m.avg_price + 2, first_conversion=_conv(m, 1.02)),
        0.67,
    ),
    Initiative(
        "Build mechanics around the brand archetype",
        "Average price +$10, conversion +15% (rel.)",
        lambda m: m.evolve(avg_price=m.avg_price + 10, first_conversion=_conv(m, 1.15)),
        0.67,
    ),
    Initiative(
        "🔥 Accept crypto payments by mail",
        "Average price +$30, users +1,500",
        lambda m: m.evolve(avg_price=m.avg_price + 30, users=m.users + 1500),
        0.75,
    ),
    Initiative(
        "Ship an in-app NPS survey loop",
        "NPS +10, tracked OpEx +$500 (no effect on profit)",
        lambda m: m.evolve(nps=m.extra("nps") + 10, opex=m.extra("opex") + 500),
        0.70,
        partial_effect=lambda m: m.evolve(nps=m.extra("nps") + 3, opex=m.extra("opex") + 500),
        requires=("nps", "opex"),
    ),
]


ONBOARDING: List[Initiative] = [
    Initiative(
        "Launch segment-specific demo flows",
        "Conversion +35% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 1.35)),
        0.62,
    ),
    Initiative(
        "🔥 Adaptive quiz onboarding",
        "Conversion +80% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 1.80)),
        0.68,
        risk=Risk(0.30, lambda m: m.evolve(users=m.users - 400), "The quiz is too long: users -400"),
    ),
    Initiative(
        "Streamline the signup form",
        "Conversion +25% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 1.25)),
        0.55,
    ),
    Initiative(
        "Trigger contextual tips",
        "Conversion +30% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 1.30)),
        0.65,
    ),
    Initiative(
        "Add social proof",
        "Conversion +60% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 1.60)),
        0.68,
    ),
    Initiative(
        "Add an onboarding progress bar",
        "Conversion +20% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 1.20)),
        0.90,
    ),
    Initiative(
        "Animate the aha moment",
        "Conversion +40% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 1.40)),
        0.55,
    ),
    Initiative(
        "Live feature tags",
        "Conversion +25% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 1.25)),
        0.70,
    ),
    Initiative(
        "FAQ chatbot",
        "Conversion +15% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 1.15)),
        0.72,
    ),
    Initiative(
        "🔥 Quick-start templates",
        "Conversion +120% (rel.)",
        lambda m: m.evolve(first_conversion=_conv(m, 2.20)),
        0.80,
    ),
    Initiative(
        "Shareable onboarding results",
        "Conversion +10% (rel.), virality +0.03",
        lambda m: m.evolve(first_conversion=_conv(m, 1.10), virality=m.extra("virality") + 0.03),
        0.70,
        risk=Risk(
            0.25,
            lambda m: m.evolve(nps=m.extra("nps") - 5),
            "Users feel spammed by share prompts: NPS -5",
            condition=lambda m: m.extra("virality") > 0.2,
        ),
        requires=("virality", "nps"),
    ),
]


ADMIN: List[Initiative] = [
    Initiative(
        "Outsource legal services",
        "Fixed costs -$20,000",
        lambda m: m.evolve(fixed_costs=_fix_floor(m, 20000)),
        0.30,
        risk=Risk(0.40, lambda m: m.evolve(cost_of_goods=m.cost_of_goods + 5000), "Legal mistakes: COGS +$5,000"),
    ),
    Initiative(
        "Renegotiate office rent",
        "Fixed costs -$15,000",
        lambda m: m.evolve(fixed_costs=_fix_floor(m, 15000)),
        0.55,
        risk=Risk(0.35, lambda m: m.evolve(users=m.users - 500), "Worse location: users -500"),
    ),
    Initiative(
        "Move teams to remote work",
        "Fixed costs -$11,000",
        lambda m: m.evolve(fixed_costs=_fix_floor(m, 11000)),
        0.65,
        risk=Risk(0.40, lambda m: m.evolve(first_conversion=round_half_up(m.first_conversion * 0.90)), "Loss of control: conversion -10% (rel.)"),
    ),
    Initiative(
        "Automate document flow",
        "Fixed costs -$7,500",
        lambda m: m.evolve(fixed_costs=_fix_floor(m, 7500)),
        0.75,
    ),
    Initiative(
        "Negotiate pay-as-you-go tariffs",
        "Fixed costs -$4,800",
        lambda m: m.evolve(fixed_costs=_fix_floor(m, 4800)),
        0.60,
    ),
    Initiative(
        "Cut corporate events",
        "Fixed costs -$3,200",
        lambda m: m.evolve(fixed_costs=_fix_floor(m, 3200)),
        0.70,
    ),
    Initiative(
        "Review billing contracts",
        "Fixed costs -$2,100",
        lambda m: m.evolve(fixed_costs=_fix_floor(m, 2100)),
        0.68,
    ),
    Initiative(
        "Trim software licenses",
        "Fixed costs -$900",
        lambda m: m.evolve(fixed_costs=_fix_floor(m, 900)),
        0.80,
    ),
    Initiative(
        "Consolidate operating vendors",
        "Fixed costs -$1,200, tracked OpEx -$1,500",
        lambda m: m.evolve(fixed_costs=_fix_floor(m, 1200), opex=max(m.extra("opex") - 1500, 0)),
        0.65,
        requires=("opex",),
    ),
]


DEFAULT_CATALOG: Dict[str, List[Initiative]] = {
    "acquisition": ACQUISITION,
    "product": PRODUCT,
    "onboarding": ONBOARDING,
    "admin": ADMIN,
}


def validate_catalog(catalog: Catalog, *, min_per_department: int = 3) -> None:
    for dep in catalog:
        if dep not in DEPARTMENTS:
            raise ValueError(f"catalog has unknown department: {dep!r}")
    for dep in DEPARTMENTS:
        items = list(catalog.get(dep) or [])
        if len(items) < min_per_department:
            raise ValueError(f"department {dep}: needs >= {min_per_department} initiatives")
        titles = [i.title for i in items]
        if len(set(titles)) != len(titles):
            raise ValueError(f"department {dep}: initiative titles must be unique")
        for ini in items:
            if not (0.0 < float(ini.base_success_chance) <= 1.0):
                raise ValueError(f"{ini.title}: base_success_chance must be in (0, 1]")
            if not callable(ini.apply):
                raise ValueError(f"{ini.title}: apply must be callable")
            if ini.partial_effect is not None and not callable(ini.partial_effect):
                raise ValueError(f"{ini.title}: partial_effect must be callable")
            if ini.risk is not None:
                if not (0.0 <= float(ini.risk.chance) <= 1.0):
                    raise ValueError(f"{ini.title}: risk chance must be in [0, 1]")
                if ini.risk.evaluate_on not in RISK_EVALUATION_POINTS:
                    raise ValueError(f"{ini.title}: risk evaluate_on must be 'before' or 'after'")


def available_initiatives(catalog: Catalog, department: str, active_extras: Sequence[str] = ()) -> List[Initiative]:
    """Initiatives of a department whose extended-metric requirements are active."""
    dep = normalize_department(department)
    active = set(active_extras)
    return [i for i in list(catalog.get(dep) or []) if set(i.requires) <= active]


def draw_initiatives(
    catalog: Catalog,
    department: str,
    rng: random.Random,
    *,
    count: int = 3,
    chance_window: Tuple[float, float] = (0.2, 0.9),
    reroll: bool = True,
    active_extras: Sequence[str] = (),
) -> List[DrawnInitiative]:
    """Sample `count` distinct initiatives and attach their effective chances.

    Each chance is an independent `lo + U(0,1) * (hi - lo)` draw. With
    `reroll=False` the catalog's base chance is used instead.
    """
    pool = available_initiatives(catalog, department, active_extras)
    if len(pool) < int(count):
        raise ValueError(f"department {department}: {len(pool)} initiatives available, {int(count)} needed")
    picked = rng.sample(pool, int(count))
    lo, hi = float(chance_window[0]), float(chance_window[1])
    out: List[DrawnInitiative] = []
    for ini in picked:
        chance = lo + rng.random() * (hi - lo) if reroll else float(ini.base_success_chance)
        out.append(DrawnInitiative(initiative=ini, chance=chance))
    return out
