"""leaderboard.ranking

Decide whether a final score is worth offering for submission.
"""

from __future__ import annotations

from typing import List, Sequence

from .schemas import LeaderboardEntry


def rank_entries(entries: Sequence[LeaderboardEntry], size: int) -> List[LeaderboardEntry]:
    """Top `size` entries, highest net profit first (stable for ties)."""
    return sorted(entries, key=lambda e: -float(e.net_profit))[: max(0, int(size))]


def qualifies_for_leaderboard(net_profit: float, entries: Sequence[LeaderboardEntry], size: int = 10) -> bool:
    """True if `net_profit` would land in the top `size` of `entries`."""
    if int(size) <= 0:
        return False
    top = rank_entries(entries, size)
    if len(top) < int(size):
        return True
    return float(net_profit) > float(top[-1].net_profit)
