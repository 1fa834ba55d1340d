"""Outcome gate, risk rolls and partial interpolation."""

import random

import pytest

from core.catalog import DEFAULT_CATALOG, Initiative, Risk
from core.metrics import refresh
from core.profiles import get_profile, starting_metrics
from core.resolver import FAILURE_MESSAGE, PARTIAL_MESSAGE, Outcome, interpolate_partial, resolve_initiative
from engine.sim_runner import estimate_outcome_rates

from helpers import NOOP, ScriptedRandom, classic_metrics

SEO = DEFAULT_CATALOG["acquisition"][0]


def test_full_success_without_risk():
    res = resolve_initiative(SEO, 0.7, classic_metrics(), ScriptedRandom([0.1, 0.9]))
    assert res.outcome is Outcome.FULL_SUCCESS
    assert not res.risk_triggered
    assert res.metrics.users == 300 and res.metrics.cost_per_user == 10
    assert res.metrics.net_profit == pytest.approx(-5850)
    assert res.message.startswith(SEO.description)


def test_full_success_with_risk():
    res = resolve_initiative(SEO, 0.7, classic_metrics(), ScriptedRandom([0.1, 0.1]))
    assert res.outcome is Outcome.FULL_SUCCESS
    assert res.risk_triggered
    assert res.metrics.first_conversion == 5
    assert res.message == SEO.risk.message


def test_failure_leaves_metrics_untouched():
    m = classic_metrics()
    rng = ScriptedRandom([0.9, 0.0])
    res = resolve_initiative(SEO, 0.7, m, rng)
    assert res.outcome is Outcome.FAILURE
    assert res.metrics == m
    assert res.message == FAILURE_MESSAGE
    assert rng.calls == 2


def test_partial_moves_fraction_of_the_way():
    res = resolve_initiative(SEO, 0.7, classic_metrics(), ScriptedRandom([0.9, 0.5]))
    assert res.outcome is Outcome.PARTIAL
    assert res.message == PARTIAL_MESSAGE
    assert res.metrics.users == pytest.approx(270)
    assert res.metrics.cost_per_user == pytest.approx(13)


def test_explicit_partial_effect_wins():
    ini = Initiative("Half", "x", lambda m: m.evolve(users=1000), 0.5, partial_effect=lambda m: m.evolve(users=555))
    res = resolve_initiative(ini, 0.5, classic_metrics(), ScriptedRandom([0.9, 0.9]))
    assert res.metrics.users == 555


def test_interpolation_bounds():
    cur = classic_metrics().evolve(nps=10)
    full = cur.evolve(users=1200, avg_price=30, nps=30)
    assert interpolate_partial(cur, full, 0.0) == cur
    assert interpolate_partial(cur, full, 1.0) == full
    half = interpolate_partial(cur, full, 0.5)
    assert half.users == 700 and half.avg_price == 25 and half.extra("nps") == 20


def _nps_initiative(evaluate_on):
    return Initiative(
        "Survey",
        "NPS +40",
        lambda m: m.evolve(nps=m.extra("nps") + 40),
        0.5,
        risk=Risk(1.0, lambda m: m.evolve(users=0), "boom", condition=lambda m: m.extra("nps") < 10, evaluate_on=evaluate_on),
    )


def test_risk_condition_sees_metrics_before_apply():
    m = classic_metrics().evolve(nps=5)
    res = resolve_initiative(_nps_initiative("before"), 0.5, m, ScriptedRandom([0.0, 0.0]))
    assert res.risk_triggered and res.metrics.users == 0


def test_risk_condition_sees_metrics_after_apply():
    m = classic_metrics().evolve(nps=5)
    rng = ScriptedRandom([0.0])
    res = resolve_initiative(_nps_initiative("after"), 0.5, m, rng)
    assert not res.risk_triggered and res.metrics.extra("nps") == 45
    assert rng.calls == 1


def test_outcome_rates_match_gate():
    rates = estimate_outcome_rates(NOOP, 0.6, classic_metrics(), trials=100_000, seed=11)
    assert rates[Outcome.FULL_SUCCESS] == pytest.approx(0.6, abs=0.01)
    assert rates[Outcome.FAILURE] == pytest.approx(0.16, abs=0.01)
    assert rates[Outcome.PARTIAL] == pytest.approx(0.24, abs=0.01)


def test_every_resolution_keeps_derived_fields_consistent():
    start = starting_metrics(get_profile("extended")).evolve(nps=5)
    rng = random.Random(2024)
    seen = set()
    risks = 0
    for items in DEFAULT_CATALOG.values():
        for ini in items:
            for chance in (0.2, 0.55, 0.9):
                for _ in range(12):
                    res = resolve_initiative(ini, chance, start, rng)
                    m = res.metrics
                    assert refresh(m) == m
                    if m.avg_price != 0:
                        assert m.margin == pytest.approx((m.avg_price - m.cost_of_goods) / m.avg_price)
                    assert m.net_profit == pytest.approx(m.gross_profit - m.fixed_costs)
                    assert set(m.extras) == set(start.extras)
                    seen.add(res.outcome)
                    risks += res.risk_triggered
    assert seen == set(Outcome)
    assert risks > 0
