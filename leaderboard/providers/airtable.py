"""leaderboard.providers.airtable

Airtable-backed leaderboard (REST API over requests).

- GET  /v0/{base_id}/{table}?maxRecords=N&sort[0][field]=profitNet&sort[0][direction]=desc
- POST /v0/{base_id}/{table}  {"fields": {"nickname", "profitNet", "date"}}

Network errors, bad statuses and malformed payloads are logged and absorbed
here; the game never sees an exception from this module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from ..ranking import rank_entries
from ..schemas import LeaderboardEntry, entry_from_record, record_fields, validate_nickname
from .base import GatewayStatus

logger = logging.getLogger(__name__)

API_URL = "https://api.airtable.com/v0"
DEFAULT_TABLE = "Leaderboard"


@dataclass
class AirtableLeaderboard:
    token: str
    base_id: str
    table: str = DEFAULT_TABLE
    timeout: float = 8.0
    api_url: str = API_URL

    # runtime
    last_error: str = ""
    session: Any = None  # requests.Session-compatible

    def __post_init__(self) -> None:
        self.token = str(self.token or "").strip()
        self.base_id = str(self.base_id or "").strip()
        self.table = str(self.table or DEFAULT_TABLE).strip()
        if self.session is None:
            self.session = requests.Session()

    @staticmethod
    def from_settings(settings: Dict[str, Any]) -> "AirtableLeaderboard":
        return AirtableLeaderboard(
            token=str(settings.get("AIRTABLE_TOKEN") or ""),
            base_id=str(settings.get("AIRTABLE_BASE_ID") or ""),
            table=str(settings.get("AIRTABLE_TABLE") or DEFAULT_TABLE),
        )

    @property
    def url(self) -> str:
        return f"{self.api_url}/{self.base_id}/{quote(self.table)}"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}", "Content-Type": "application/json"}

    def status(self) -> GatewayStatus:
        if not self.token or not self.base_id:
            return GatewayStatus(False, "airtable", error="Airtable token or base id missing.")
        if self.last_error:
            return GatewayStatus(True, "airtable", note="last call failed", error=self.last_error)
        return GatewayStatus(True, "airtable")

    def _fail(self, what: str, err: Exception | str) -> None:
        self.last_error = f"{what}: {err}"
        logger.warning("leaderboard %s failed: %s", what, err)

    def fetch_top(self, n: int = 10) -> List[LeaderboardEntry]:
        if not self.status().ok:
            self._fail("fetch", "not configured")
            return []
        params = {
            "maxRecords": int(n),
            "sort[0][field]": "profitNet",
            "sort[0][direction]": "desc",
        }
        try:
            resp = self.session.get(self.url, headers=self._headers(), params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            self._fail("fetch", e)
            return []

        records = data.get("records") if isinstance(data, dict) else None
        if not isinstance(records, list):
            self._fail("fetch", "response has no records list")
            return []

        entries: List[LeaderboardEntry] = []
        for rec in records:
            entry = entry_from_record(rec)
            if entry is None:
                logger.debug("skipping malformed leaderboard record: %r", rec)
                continue
            entries.append(entry)
        self.last_error = ""
        return rank_entries(entries, n)

    def submit(self, nickname: str, net_profit: float) -> Optional[LeaderboardEntry]:
        validate_nickname(nickname)
        if not self.status().ok:
            self._fail("submit", "not configured")
            return None
        stamp = datetime.now(timezone.utc).isoformat()
        body = {"fields": record_fields(nickname, net_profit, stamp)}
        try:
            resp = self.session.post(self.url, headers=self._headers(), json=body, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            self._fail("submit", e)
            return None

        entry = entry_from_record(data, is_current_player=True)
        if entry is None:
            self._fail("submit", "malformed record in response")
            return None
        self.last_error = ""
        return entry
