"""Leaderboard gateways, record parsing and ranking."""

import pytest
import requests

from leaderboard.providers.airtable import AirtableLeaderboard
from leaderboard.providers.memory import InMemoryLeaderboard
from leaderboard.ranking import qualifies_for_leaderboard, rank_entries
from leaderboard.schemas import LeaderboardEntry, entry_from_record, normalize_nickname


class FakeResponse:
    def __init__(self, payload=None, status=200, bad_json=False):
        self.payload = payload
        self.status = status
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if self.bad_json:
            raise ValueError("not json")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def _call(self, method, url, **kw):
        self.calls.append((method, url, kw))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kw):
        return self._call("GET", url, **kw)

    def post(self, url, **kw):
        return self._call("POST", url, **kw)


def _record(rid, nick, profit):
    return {"id": rid, "createdTime": "2024-05-01T00:00:00.000Z", "fields": {"nickname": nick, "profitNet": profit}}


def _board(session):
    return AirtableLeaderboard(token="tok", base_id="app123", table="Leader board", session=session)


def test_fetch_top_parses_and_sorts():
    payload = {"records": [_record("r1", "ann", 100), _record("r2", "bob", 900), {"id": "r3"}]}
    session = FakeSession(FakeResponse(payload))
    entries = _board(session).fetch_top(10)
    assert [e.nickname for e in entries] == ["bob", "ann"]
    method, url, kw = session.calls[0]
    assert url.endswith("/app123/Leader%20board")
    assert kw["params"]["maxRecords"] == 10
    assert kw["headers"]["Authorization"] == "Bearer tok"


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.ConnectionError("offline")),
        FakeSession(FakeResponse(status=500)),
        FakeSession(FakeResponse(bad_json=True)),
        FakeSession(FakeResponse({"oops": 1})),
    ],
)
def test_fetch_failures_are_absorbed(session):
    board = _board(session)
    assert board.fetch_top(10) == []
    assert board.status().error


def test_submit_posts_fields_and_marks_player():
    session = FakeSession(FakeResponse(_record("recX", "neo", 1234.5)))
    entry = _board(session).submit("  neo  ", 1234.5)
    assert entry is not None and entry.is_current_player
    method, _, kw = session.calls[0]
    assert method == "POST"
    assert kw["json"]["fields"]["nickname"] == "neo"
    assert kw["json"]["fields"]["profitNet"] == 1234.5


def test_submit_failure_returns_none():
    board = _board(FakeSession(error=requests.Timeout("slow")))
    assert board.submit("neo", 1.0) is None
    assert "submit" in board.last_error


def test_unconfigured_board_does_no_io():
    session = FakeSession(FakeResponse({"records": []}))
    board = AirtableLeaderboard(token="", base_id="", session=session)
    assert not board.status().ok
    assert board.fetch_top(5) == []
    assert session.calls == []


def test_short_nickname_is_rejected():
    with pytest.raises(ValueError):
        InMemoryLeaderboard().submit(" a ", 10)


def test_memory_board_round_trip():
    board = InMemoryLeaderboard()
    board.submit("low", 10)
    board.submit("high", 99)
    top = board.fetch_top(1)
    assert [e.nickname for e in top] == ["high"]
    assert top[0].id == "mem2"


def test_record_parsing_edges():
    assert entry_from_record({"id": "x", "fields": {"nickname": "ok"}}) is None
    assert entry_from_record("junk") is None
    e = entry_from_record({"id": "x", "fields": {"nickname": "ok", "profitNet": "12.5", "date": "2024-01-01"}})
    assert e.net_profit == 12.5 and e.timestamp == "2024-01-01"
    assert normalize_nickname("a" * 40) == "a" * 24


def test_qualification_rules():
    entries = [LeaderboardEntry(str(i), "p", float(i * 100), "") for i in range(1, 11)]
    assert qualifies_for_leaderboard(150, entries[:5], 10)
    assert qualifies_for_leaderboard(101, entries, 10)
    assert not qualifies_for_leaderboard(100, entries, 10)
    assert not qualifies_for_leaderboard(1e9, entries, 0)
    assert [e.net_profit for e in rank_entries(entries, 3)] == [1000, 900, 800]
