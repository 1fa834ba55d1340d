"""leaderboard.schemas

Leaderboard entry contract + normalization of raw backend records.

Backend records (Airtable) look like:
    {"id": "rec...", "createdTime": "...", "fields": {"nickname": ..., "profitNet": ..., "date": ...}}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

NICKNAME_MAX = 24


def _as_float(x: Any, default: float = 0.0) -> float:
    try:
        return float(x)
    except (TypeError, ValueError):
        return float(default)


def normalize_nickname(nickname: Any) -> str:
    s = " ".join(str(nickname or "").split())
    return s[:NICKNAME_MAX]


def validate_nickname(nickname: str) -> None:
    if len(normalize_nickname(nickname)) < 2:
        raise ValueError("nickname too short (>=2 chars)")


@dataclass(frozen=True)
class LeaderboardEntry:
    id: str
    nickname: str
    net_profit: float
    timestamp: str
    is_current_player: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "nickname": str(self.nickname),
            "net_profit": float(self.net_profit),
            "timestamp": str(self.timestamp),
            "is_current_player": bool(self.is_current_player),
        }


def entry_from_record(record: Mapping[str, Any], *, is_current_player: bool = False) -> Optional[LeaderboardEntry]:
    """Parse one backend record; None when it is unusable."""
    if not isinstance(record, Mapping):
        return None
    rid = str(record.get("id") or "").strip()
    fields = record.get("fields")
    if not rid or not isinstance(fields, Mapping):
        return None
    nickname = normalize_nickname(fields.get("nickname"))
    if not nickname or fields.get("profitNet") is None:
        return None
    return LeaderboardEntry(
        id=rid,
        nickname=nickname,
        net_profit=_as_float(fields.get("profitNet")),
        timestamp=str(fields.get("date") or record.get("createdTime") or ""),
        is_current_player=is_current_player,
    )


def record_fields(nickname: str, net_profit: float, timestamp: str) -> Dict[str, Any]:
    return {"nickname": normalize_nickname(nickname), "profitNet": float(net_profit), "date": str(timestamp)}
