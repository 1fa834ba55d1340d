"""engine.pipeline

Core turn flow (headless).

Responsibilities:
- Start a game from a rules profile
- Department selection -> initiative offer (draw + effective chances)
- Resolve the chosen initiative, then update balance / streak / history,
  advance the turn, check end conditions and unlock achievements

This layer is UI-agnostic. Every function returns a new GameState; an
invalid action raises InvalidStateError and changes nothing.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.achievements import Achievement, default_achievements, evaluate_achievements
from core.catalog import DEFAULT_CATALOG, Catalog, draw_initiatives, normalize_department
from core.errors import InvalidStateError
from core.metrics import MetricSet, metrics_to_dict
from core.profiles import RulesProfile, starting_metrics
from core.resolver import Outcome, resolve_initiative
from core.rules import LOW_USERS_WARNING, check_end_condition, next_low_user_streak, profit_delta_message
from core.state import EndReason, GameState, initial_state

from .config import EngineConfig


@dataclass(frozen=True)
class TurnReport:
    """What one resolved turn did (UI + run log)."""

    turn: int
    department: str
    title: str
    chance: float
    outcome: Outcome
    risk_triggered: bool
    outcome_message: str
    profit_delta_message: str
    before: MetricSet
    after: MetricSet
    balance: float
    game_over: bool
    is_victory: bool
    end_reason: Optional[EndReason] = None
    new_achievements: List[Achievement] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": int(self.turn),
            "department": self.department,
            "title": self.title,
            "chance": float(self.chance),
            "outcome": self.outcome.value,
            "risk_triggered": bool(self.risk_triggered),
            "outcome_message": self.outcome_message,
            "profit_delta_message": self.profit_delta_message,
            "before": metrics_to_dict(self.before),
            "after": metrics_to_dict(self.after),
            "balance": float(self.balance),
            "game_over": bool(self.game_over),
            "is_victory": bool(self.is_victory),
            "end_reason": self.end_reason.value if self.end_reason is not None else None,
            "new_achievements": [a.id for a in self.new_achievements],
        }


def new_game(config: EngineConfig, rng: random.Random) -> GameState:
    profile = config.profile
    return initial_state(starting_metrics(profile, rng), profile.start_balance)


def select_department(
    state: GameState,
    department: str,
    *,
    config: EngineConfig,
    rng: random.Random,
    catalog: Catalog = DEFAULT_CATALOG,
) -> GameState:
    """Pick a department and draw this turn's offer."""
    if state.game_over:
        raise InvalidStateError("game is over; restart to play again")
    dep = normalize_department(department)
    profile = config.profile
    offer = draw_initiatives(
        catalog,
        dep,
        rng,
        count=profile.draw_count,
        chance_window=profile.chance_window,
        reroll=config.reroll_chances,
        active_extras=profile.active_extras,
    )
    return state.with_selection(dep, tuple(offer))


def clear_selection(state: GameState) -> GameState:
    if state.game_over:
        raise InvalidStateError("game is over; restart to play again")
    return state.with_selection(None, ())


def resolve_turn(
    state: GameState,
    index: int,
    *,
    config: EngineConfig,
    rng: random.Random,
    achievements: Optional[Sequence[Achievement]] = None,
) -> Tuple[GameState, TurnReport]:
    """Resolve the offered initiative at `index` and advance one turn.

    Returns (new_state, report).
    """
    if state.game_over:
        raise InvalidStateError("game is over; restart to play again")
    if state.department is None or not state.offer:
        raise InvalidStateError("select a department before choosing an initiative")
    if not (0 <= int(index) < len(state.offer)):
        raise InvalidStateError(f"initiative index out of range: {index}")

    profile: RulesProfile = config.profile
    registry = list(achievements) if achievements is not None else default_achievements(profile.start_cost_of_goods)

    drawn = state.offer[int(index)]
    before = state.metrics

    # 1) outcome
    res = resolve_initiative(drawn.initiative, drawn.chance, before, rng)
    after = res.metrics

    # 2) money + streak + history
    delta_msg = profit_delta_message(before.net_profit, after.net_profit)
    balance = float(state.balance) + float(after.net_profit)
    streak = next_low_user_streak(state.low_user_streak, after.users, profile.low_user_threshold)
    message = res.message
    if streak == 1:
        message = f"{message} {LOW_USERS_WARNING}"
    turn = int(state.turn) + 1

    # 3) end conditions (fixed priority)
    reason = check_end_condition(
        net_profit=after.net_profit,
        balance=balance,
        low_user_streak=streak,
        turn=turn,
        profile=profile,
    )

    # 4) achievements
    fresh = evaluate_achievements(registry, state.unlocked, after, before, turn)

    new_state = GameState(
        turn=turn,
        metrics=after,
        previous_metrics=before,
        balance=balance,
        low_user_streak=streak,
        history=(*state.history, float(after.net_profit)),
        unlocked=(*state.unlocked, *[a.id for a in fresh]),
        game_over=reason is not None,
        is_victory=reason is EndReason.VICTORY,
        end_reason=reason,
        department=None,
        offer=(),
    )

    report = TurnReport(
        turn=int(state.turn),
        department=str(state.department),
        title=drawn.title,
        chance=float(drawn.chance),
        outcome=res.outcome,
        risk_triggered=res.risk_triggered,
        outcome_message=message,
        profit_delta_message=delta_msg,
        before=before,
        after=after,
        balance=balance,
        game_over=new_state.game_over,
        is_victory=new_state.is_victory,
        end_reason=reason,
        new_achievements=list(fresh),
    )
    return new_state, report
