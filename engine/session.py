"""engine.session

UI-facing facade for one playthrough.

Holds the config, the single injected random source, the current GameState
and the run log. The UI only talks to this object.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from core.achievements import Achievement, default_achievements
from core.advisor import advice_for, win_progress
from core.catalog import DEFAULT_CATALOG, DEPARTMENTS, Catalog, DrawnInitiative, available_initiatives, validate_catalog
from core.rng import make_rng
from core.state import GameState, state_to_dict
from leaderboard.ranking import qualifies_for_leaderboard
from leaderboard.schemas import LeaderboardEntry

from .config import EngineConfig
from .logging import dumps_run_export, make_run_export
from .pipeline import TurnReport, clear_selection, new_game, resolve_turn, select_department

logger = logging.getLogger(__name__)


class GameSession:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        rng: Optional[random.Random] = None,
        catalog: Catalog = DEFAULT_CATALOG,
    ) -> None:
        self.config = config or EngineConfig()
        validate_catalog(catalog, min_per_department=self.config.profile.draw_count)
        profile = self.config.profile
        for dep in DEPARTMENTS:
            if len(available_initiatives(catalog, dep, profile.active_extras)) < profile.draw_count:
                raise ValueError(f"department {dep}: too few initiatives for profile {profile.key!r}")
        self.catalog = catalog
        self._injected_rng = rng
        self.restart()

    # --- lifecycle ---

    def restart(self) -> GameState:
        """Discard the playthrough and build a fresh one from scratch."""
        self.rng = self._injected_rng if self._injected_rng is not None else make_rng(self.config.base_seed, "session")
        self.achievements: List[Achievement] = default_achievements(self.config.profile.start_cost_of_goods)
        self.state = new_game(self.config, self.rng)
        self.initial_state = self.state
        self.turn_logs: List[Dict[str, Any]] = []
        self.last_report: Optional[TurnReport] = None
        logger.info("new game: profile=%s seed=%s", self.config.profile_key, self.config.base_seed)
        return self.state

    # --- turn actions ---

    def draw_initiatives(self, department: str) -> List[DrawnInitiative]:
        self.state = select_department(self.state, department, config=self.config, rng=self.rng, catalog=self.catalog)
        return list(self.state.offer)

    def cancel_department(self) -> None:
        self.state = clear_selection(self.state)

    def resolve_initiative(self, index: int) -> TurnReport:
        """Resolve the offered initiative at `index`.

        After game over this is a no-op returning the terminal report.
        """
        if self.state.game_over and self.last_report is not None:
            logger.debug("resolve ignored: game already over (%s)", self.state.end_reason)
            return self.last_report
        new_state, report = resolve_turn(
            self.state,
            index,
            config=self.config,
            rng=self.rng,
            achievements=self.achievements,
        )
        self.state = new_state
        self.last_report = report
        self.turn_logs.append(report.to_dict())
        logger.info(
            "turn %d: %s -> %s (net profit %.2f, balance %.2f)",
            report.turn, report.title, report.outcome.value, report.after.net_profit, report.balance,
        )
        if new_state.game_over:
            logger.info("game over: %s", new_state.end_reason.value)
        return report

    # --- read-only views ---

    @property
    def game_over(self) -> bool:
        return bool(self.state.game_over)

    def snapshot(self) -> Dict[str, Any]:
        snap = state_to_dict(self.state)
        profile = self.config.profile
        snap["final_turn"] = int(profile.final_turn)
        snap["win_threshold"] = float(profile.win_threshold)
        snap["win_progress"] = win_progress(self.state.metrics.net_profit, profile.win_threshold)
        snap["advice"] = advice_for(self.state.metrics, self.state.balance)
        snap["end_message"] = self.state.end_message
        return snap

    def achievement_board(self) -> List[Dict[str, Any]]:
        done = set(self.state.unlocked)
        return [{**a.to_dict(), "achieved": a.id in done} for a in self.achievements]

    def should_offer_leaderboard(self, entries: Sequence[LeaderboardEntry]) -> bool:
        """Only a finished game whose final net profit would make the top N."""
        if not self.state.game_over:
            return False
        return qualifies_for_leaderboard(self.state.metrics.net_profit, entries, self.config.leaderboard_size)

    def export_run(self) -> str:
        payload = make_run_export(
            seed=self.config.base_seed,
            config={
                "profile_key": self.config.profile_key,
                "reroll_chances": self.config.reroll_chances,
                "leaderboard_size": self.config.leaderboard_size,
            },
            initial_state=self.initial_state,
            turn_logs=self.turn_logs,
            final_state=self.state,
        )
        return dumps_run_export(payload)
