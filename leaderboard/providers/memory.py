"""leaderboard.providers.memory

In-process leaderboard for offline play and tests.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from ..ranking import rank_entries
from ..schemas import LeaderboardEntry, normalize_nickname, validate_nickname
from .base import GatewayStatus


@dataclass
class InMemoryLeaderboard:
    entries: List[LeaderboardEntry] = field(default_factory=list)
    _ids: "itertools.count[int]" = field(default_factory=lambda: itertools.count(1))

    def status(self) -> GatewayStatus:
        return GatewayStatus(True, "memory", note="scores live only in this process")

    def fetch_top(self, n: int = 10) -> List[LeaderboardEntry]:
        return rank_entries(self.entries, n)

    def submit(self, nickname: str, net_profit: float) -> Optional[LeaderboardEntry]:
        validate_nickname(nickname)
        entry = LeaderboardEntry(
            id=f"mem{next(self._ids)}",
            nickname=normalize_nickname(nickname),
            net_profit=float(net_profit),
            timestamp=datetime.now(timezone.utc).isoformat(),
            is_current_player=True,
        )
        self.entries.append(entry)
        return entry
