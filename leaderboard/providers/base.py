"""leaderboard.providers.base

Gateway interface.

A gateway reads the top-N entries and appends one entry. Backend failures
(network, status, payload) come back as [] / None and are visible in
status(). Invalid input such as a too-short nickname raises ValueError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol

from ..schemas import LeaderboardEntry


@dataclass(frozen=True)
class GatewayStatus:
    ok: bool
    backend: str
    note: str = ""
    error: str = ""


class LeaderboardGateway(Protocol):
    def status(self) -> GatewayStatus: ...

    def fetch_top(self, n: int = 10) -> List[LeaderboardEntry]:
        """Top `n` entries sorted by net profit, descending. [] on failure."""
        ...

    def submit(self, nickname: str, net_profit: float) -> Optional[LeaderboardEntry]:
        """Append an entry; None on failure."""
        ...
