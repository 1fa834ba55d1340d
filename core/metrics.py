"""
core.metrics
Unit-economics metric model (UI independent).

Base fields are set by initiatives; derived fields are always recomputed
from them by `recompute()`. Nothing else may set a derived field.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Tuple


BASE_FIELDS: Tuple[str, ...] = (
    "avg_price",
    "cost_of_goods",
    "first_conversion",
    "users",
    "cost_per_user",
    "fixed_costs",
)

DERIVED_FIELDS: Tuple[str, ...] = (
    "margin",
    "gross_profit_per_user",
    "net_profit_per_user",
    "gross_profit",
    "net_profit",
)

EXTENDED_METRICS: Tuple[str, ...] = ("virality", "nps", "opex")


def round_half_up(x: float) -> float:
    """Round half up: 2.5 -> 3, -0.5 -> 0."""
    return float(math.floor(x + 0.5))


@dataclass(frozen=True)
class MetricSet:
    """Business metrics for one turn.

    - avg_price: average subscription price
    - cost_of_goods: variable cost per user
    - first_conversion: first-session conversion, percent (0..100, some
      initiatives push it above 100)
    - users, cost_per_user, fixed_costs
    - derived: margin, gross/net profit per user, gross profit, net profit
    - extras: extended metrics (virality, nps, opex) of the extended ruleset;
      they never enter the formulas
    """

    avg_price: float
    cost_of_goods: float
    first_conversion: float
    users: float
    cost_per_user: float
    fixed_costs: float
    margin: float = 0.0
    gross_profit_per_user: float = 0.0
    net_profit_per_user: float = 0.0
    gross_profit: float = 0.0
    net_profit: float = 0.0
    extras: Mapping[str, float] = field(default_factory=dict)

    def evolve(self, **changes: float) -> "MetricSet":
        """Return a recomputed copy with some base fields or extras replaced."""
        base = base_fields(self)
        extras = dict(self.extras)
        for k, v in changes.items():
            if k in BASE_FIELDS:
                base[k] = float(v)
            elif k in DERIVED_FIELDS:
                raise ValueError(f"derived field {k!r} cannot be set directly")
            elif k in EXTENDED_METRICS:
                extras[k] = float(v)
            else:
                raise ValueError(f"unknown metric {k!r}")
        return recompute(base, extras)

    def extra(self, name: str, default: float = 0.0) -> float:
        return float(self.extras.get(name, default))


def recompute(base: Mapping[str, Any], extras: Mapping[str, float] | None = None) -> MetricSet:
    """Build a consistent MetricSet from the six base fields (pure).

    `avg_price == 0` gives margin 0.0 instead of dividing by zero.
    """
    avg_price = float(base["avg_price"])
    cost_of_goods = float(base["cost_of_goods"])
    first_conversion = float(base["first_conversion"])
    users = float(base["users"])
    cost_per_user = float(base["cost_per_user"])
    fixed_costs = float(base["fixed_costs"])

    gross_profit_per_user = avg_price - cost_of_goods
    margin = gross_profit_per_user / avg_price if avg_price != 0 else 0.0
    net_profit_per_user = gross_profit_per_user * (first_conversion / 100)
    gross_profit = (net_profit_per_user - cost_per_user) * users
    net_profit = gross_profit - fixed_costs

    return MetricSet(
        avg_price=avg_price,
        cost_of_goods=cost_of_goods,
        first_conversion=first_conversion,
        users=users,
        cost_per_user=cost_per_user,
        fixed_costs=fixed_costs,
        margin=margin,
        gross_profit_per_user=gross_profit_per_user,
        net_profit_per_user=net_profit_per_user,
        gross_profit=gross_profit,
        net_profit=net_profit,
        extras={str(k): float(v) for k, v in dict(extras or {}).items()},
    )


def refresh(m: MetricSet) -> MetricSet:
    """Recompute derived fields of an existing MetricSet."""
    return recompute(base_fields(m), m.extras)


def base_fields(m: MetricSet) -> Dict[str, float]:
    return {k: float(getattr(m, k)) for k in BASE_FIELDS}


def metrics_from_mapping(d: Mapping[str, Any], extras: Mapping[str, float] | None = None) -> MetricSet:
    """Bridge helper for dict-based metrics (run imports, UI forms)."""
    base = {k: float(d.get(k, 0.0)) for k in BASE_FIELDS}
    ex = dict(extras if extras is not None else (d.get("extras") or {}))
    return recompute(base, ex)


def metrics_to_dict(m: MetricSet) -> Dict[str, Any]:
    out: Dict[str, Any] = {f.name: float(getattr(m, f.name)) for f in fields(m) if f.name != "extras"}
    out["extras"] = {k: float(v) for k, v in dict(m.extras).items()}
    return out
