"""
core.state
Game state model (UI independent).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .catalog import DrawnInitiative
from .metrics import MetricSet, metrics_to_dict


class EndReason(str, Enum):
    VICTORY = "victory"
    INSOLVENCY = "insolvency"
    CHURN = "churn"
    TIMEOUT = "timeout"


END_MESSAGES: Dict[EndReason, str] = {
    EndReason.VICTORY: "Victory! Net profit reached the target on the final turn.",
    EndReason.INSOLVENCY: "Defeat! The company balance went negative.",
    EndReason.CHURN: "Defeat! The user base stayed below the minimum two turns in a row.",
    EndReason.TIMEOUT: "Game over. The victory conditions were not met.",
}


@dataclass(frozen=True)
class GameState:
    """One playthrough snapshot.

    A completed turn produces a new GameState; nothing mutates one in place.
    `department` / `offer` hold the current selection and are cleared when
    the turn resolves.
    """

    turn: int
    metrics: MetricSet
    balance: float
    history: Tuple[float, ...]
    previous_metrics: Optional[MetricSet] = None
    low_user_streak: int = 0
    unlocked: Tuple[str, ...] = ()
    game_over: bool = False
    is_victory: bool = False
    end_reason: Optional[EndReason] = None
    department: Optional[str] = None
    offer: Tuple[DrawnInitiative, ...] = field(default_factory=tuple)

    def with_selection(self, department: Optional[str], offer: Tuple[DrawnInitiative, ...]) -> "GameState":
        return replace(self, department=department, offer=tuple(offer))

    @property
    def end_message(self) -> str:
        return END_MESSAGES[self.end_reason] if self.end_reason is not None else ""


def state_to_dict(s: GameState) -> Dict[str, Any]:
    """JSON-friendly snapshot (offer is reduced to titles + chances)."""
    return {
        "turn": int(s.turn),
        "metrics": metrics_to_dict(s.metrics),
        "previous_metrics": metrics_to_dict(s.previous_metrics) if s.previous_metrics is not None else None,
        "balance": float(s.balance),
        "low_user_streak": int(s.low_user_streak),
        "history": [float(x) for x in s.history],
        "unlocked": list(s.unlocked),
        "game_over": bool(s.game_over),
        "is_victory": bool(s.is_victory),
        "end_reason": s.end_reason.value if s.end_reason is not None else None,
        "department": s.department,
        "offer": [{"title": d.title, "chance": float(d.chance)} for d in s.offer],
    }


def initial_state(metrics: MetricSet, start_balance: float) -> GameState:
    return GameState(
        turn=1,
        metrics=metrics,
        balance=float(start_balance),
        history=(float(metrics.net_profit),),
    )
