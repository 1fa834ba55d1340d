"""engine.logging

Small helpers for storing run logs.

A run log is JSON-serializable so it can be exported/imported later.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from core.state import GameState, state_to_dict


RUN_EXPORT_VERSION = 1


def make_run_export(
    *,
    seed: Optional[int],
    config: Dict[str, Any],
    initial_state: GameState,
    turn_logs: List[Dict[str, Any]],
    final_state: Optional[GameState] = None,
) -> Dict[str, Any]:
    return {
        "version": RUN_EXPORT_VERSION,
        "seed": None if seed is None else int(seed),
        "config": dict(config),
        "initial_state": state_to_dict(initial_state),
        "turn_logs": list(turn_logs),
        "final_state": state_to_dict(final_state) if final_state is not None else None,
    }


def dumps_run_export(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2, sort_keys=True)
