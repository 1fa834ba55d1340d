"""engine.config

Engine configuration passed from the UI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.profiles import RulesProfile, get_profile


@dataclass(frozen=True)
class EngineConfig:
    profile_key: str = "classic"
    base_seed: Optional[int] = None  # None = unseeded play
    reroll_chances: bool = True  # False = use each initiative's catalog chance
    leaderboard_size: int = 10

    @property
    def profile(self) -> RulesProfile:
        return get_profile(self.profile_key)
