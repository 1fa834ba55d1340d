"""Turn flow: balance, streaks, end conditions and invalid actions."""

import random
from dataclasses import replace

import pytest

from core.catalog import Initiative
from core.errors import InvalidStateError
from core.profiles import get_profile
from core.resolver import Outcome
from core.rules import LOW_USERS_WARNING, check_end_condition, next_low_user_streak, profit_delta_message
from core.state import EndReason, initial_state
from engine.config import EngineConfig
from engine.pipeline import clear_selection, new_game, resolve_turn, select_department

from helpers import classic_metrics, dud, rich_metrics, sure_thing

CFG = EngineConfig(profile_key="classic", base_seed=1)


def _play(state, drawn, rng=None):
    state = state.with_selection("admin", (drawn,))
    return resolve_turn(state, 0, config=CFG, rng=rng or random.Random(0))


def test_new_game_starts_at_turn_one():
    state = new_game(CFG, random.Random(0))
    assert state.turn == 1
    assert state.balance == 30_000
    assert state.history == (pytest.approx(-6900),)
    assert not state.game_over


def test_failed_turn_charges_net_profit_to_balance():
    state, report = _play(initial_state(classic_metrics(), 30_000), dud())
    assert report.outcome is Outcome.FAILURE
    assert report.turn == 1
    assert state.turn == 2
    assert state.balance == pytest.approx(23_100)
    assert state.history == (pytest.approx(-6900), pytest.approx(-6900))
    assert state.department is None and state.offer == ()
    assert report.profit_delta_message == "Net profit unchanged"


def test_insolvency_ends_on_the_resolving_turn():
    state, report = _play(initial_state(classic_metrics(), 5_000), dud())
    assert state.game_over and report.game_over
    assert state.end_reason is EndReason.INSOLVENCY
    assert not state.is_victory


def test_two_low_user_turns_end_the_game():
    state = initial_state(classic_metrics(users=50), 30_000)
    state, report = _play(state, dud())
    assert state.low_user_streak == 1
    assert LOW_USERS_WARNING in report.outcome_message
    assert not state.game_over
    state, report = _play(state, dud())
    assert state.end_reason is EndReason.CHURN
    assert LOW_USERS_WARNING not in report.outcome_message


def test_recovering_users_resets_streak():
    state = initial_state(classic_metrics(users=50), 30_000)
    state, _ = _play(state, dud())
    grow = Initiative("Grow", "Users +500", lambda m: m.evolve(users=m.users + 500), 0.5)
    state, _ = _play(state, sure_thing(grow))
    assert state.low_user_streak == 0


def test_victory_only_on_final_turn():
    state = replace(initial_state(rich_metrics(), 30_000), turn=14)
    won, report = _play(state, dud())
    assert won.turn == 15
    assert won.is_victory and won.end_reason is EndReason.VICTORY
    assert report.is_victory

    state = replace(initial_state(rich_metrics(), 30_000), turn=13)
    mid, _ = _play(state, dud())
    assert not mid.game_over


def test_timeout_after_final_turn():
    state = replace(initial_state(rich_metrics(), 30_000), turn=15)
    done, _ = _play(state, dud())
    assert done.end_reason is EndReason.TIMEOUT
    assert not done.is_victory


def test_victory_takes_priority_over_defeat():
    reason = check_end_condition(
        net_profit=60_000, balance=-1, low_user_streak=5, turn=15, profile=get_profile("classic")
    )
    assert reason is EndReason.VICTORY


def test_end_condition_order():
    p = get_profile("classic")
    assert check_end_condition(net_profit=0, balance=-1, low_user_streak=2, turn=3, profile=p) is EndReason.INSOLVENCY
    assert check_end_condition(net_profit=0, balance=1, low_user_streak=2, turn=16, profile=p) is EndReason.CHURN
    assert check_end_condition(net_profit=0, balance=1, low_user_streak=0, turn=16, profile=p) is EndReason.TIMEOUT
    assert check_end_condition(net_profit=0, balance=1, low_user_streak=1, turn=15, profile=p) is None


def test_streak_and_delta_helpers():
    assert next_low_user_streak(0, 99) == 1
    assert next_low_user_streak(1, 100) == 0
    assert profit_delta_message(-6900, -5850) == "Net profit rose by $1,050.00"
    assert profit_delta_message(-5850, -6900) == "Net profit fell by $1,050.00"
    assert profit_delta_message(10, 10.005) == "Net profit unchanged"


def test_resolve_requires_selection():
    state = initial_state(classic_metrics(), 30_000)
    with pytest.raises(InvalidStateError):
        resolve_turn(state, 0, config=CFG, rng=random.Random(0))


def test_resolve_rejects_bad_index():
    state = initial_state(classic_metrics(), 30_000).with_selection("admin", (dud(),))
    with pytest.raises(InvalidStateError):
        resolve_turn(state, 3, config=CFG, rng=random.Random(0))


def test_no_actions_after_game_over():
    over, _ = _play(initial_state(classic_metrics(), 5_000), dud())
    rng = random.Random(0)
    with pytest.raises(InvalidStateError):
        select_department(over, "admin", config=CFG, rng=rng)
    with pytest.raises(InvalidStateError):
        resolve_turn(over.with_selection("admin", (dud(),)), 0, config=CFG, rng=rng)
    with pytest.raises(InvalidStateError):
        clear_selection(over)


def test_select_department_draws_offer():
    state = select_department(new_game(CFG, random.Random(0)), "Onboarding", config=CFG, rng=random.Random(5))
    assert state.department == "onboarding"
    assert len(state.offer) == 3
    assert clear_selection(state).offer == ()


def test_achievements_unlock_once():
    state = initial_state(classic_metrics(), 30_000)
    lift = Initiative("Lift", "x", lambda m: rich_metrics(), 0.5)
    state, report = _play(state, sure_thing(lift))
    ids = [a.id for a in report.new_achievements]
    assert "first_profit" in ids and "users_1000" in ids and "c1_40" in ids
    state, report = _play(state, dud())
    assert report.new_achievements == []
    assert len(set(state.unlocked)) == len(state.unlocked)


def test_insolvency_trips_on_the_first_negative_balance():
    state = initial_state(classic_metrics(fixed_costs=8100), 23_100)
    state, report = _play(state, dud())
    assert report.after.net_profit == pytest.approx(-12_000)
    assert state.balance == pytest.approx(11_100) and not state.game_over
    state, _ = _play(state, dud())
    assert state.balance == pytest.approx(-900)
    assert state.end_reason is EndReason.INSOLVENCY
