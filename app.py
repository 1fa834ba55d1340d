"""Unit Economics Survivor (Streamlit)

UI only renders + triggers.
- Turn engine lives in core/ + engine/ (pure Python, no Streamlit).
- Leaderboard is an external gateway; if it fails the game goes on.

Entry point for Streamlit Cloud: app.py
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any, Dict, List

import streamlit as st

import core
from core.catalog import DEPARTMENT_INFO, DEPARTMENTS
from core.errors import InvalidStateError
from core.profiles import DEFAULT_PROFILES
from engine.config import EngineConfig
from engine.session import GameSession
from leaderboard.providers.airtable import AirtableLeaderboard
from leaderboard.providers.base import LeaderboardGateway
from leaderboard.providers.memory import InMemoryLeaderboard


APP_TITLE = "Unit Economics Survivor"
APP_SUBTITLE = "Run InboxMind for a fixed number of turns: pick a department, pick an initiative, watch the unit economics."
APP_VERSION = "1.0.0"
EXPECTED_CORE = "core-v1-unit-economics"

st.set_page_config(page_title=APP_TITLE, page_icon="📬", layout="wide", initial_sidebar_state="expanded")

CSS = """
<style>
.block-container {padding-top: 3.2rem; padding-bottom: 2rem;}
.card {
  border: 1px solid rgba(255,255,255,0.08);
  border-radius: 16px;
  padding: 14px 16px;
  background: rgba(255,255,255,0.03);
}
.pill {
  display: inline-block;
  padding: 2px 10px;
  border-radius: 999px;
  border: 1px solid rgba(255,255,255,0.12);
  font-size: 12px;
  opacity: .85;
}
.pill.ok {border-color: rgba(120,255,160,0.25);}
.pill.warn {border-color: rgba(255,190,90,0.35);}
.pill.bad {border-color: rgba(255,120,120,0.25);}
hr.soft {border: none; border-top: 1px solid rgba(255,255,255,0.08); margin: 1rem 0;}
.small {font-size: 13px; opacity:.75;}
</style>
"""

st.markdown(CSS, unsafe_allow_html=True)


# =========================
# Helpers
# =========================


def _setting(name: str) -> str:
    # Streamlit Cloud: st.secrets
    try:
        if name in st.secrets:
            return str(st.secrets[name])
    except FileNotFoundError:
        pass
    # Local
    return os.getenv(name) or ""


def _gateway() -> LeaderboardGateway:
    ss = st.session_state
    if "gateway" not in ss:
        settings = {k: _setting(k) for k in ("AIRTABLE_TOKEN", "AIRTABLE_BASE_ID", "AIRTABLE_TABLE")}
        if settings["AIRTABLE_TOKEN"] and settings["AIRTABLE_BASE_ID"]:
            ss.gateway = AirtableLeaderboard.from_settings(settings)
        else:
            ss.gateway = InMemoryLeaderboard()
    return ss.gateway


def _money(v: float) -> str:
    return f"${v:,.0f}" if v >= 0 else f"-${-v:,.0f}"


def _chance_pill(chance: float) -> str:
    if chance >= 0.7:
        return "ok"
    if chance >= 0.45:
        return "warn"
    return "bad"


# =========================
# Session State
# =========================


def _ensure_state() -> None:
    ss = st.session_state
    if "profile_key" not in ss:
        ss.profile_key = "classic"
    if "base_seed" not in ss:
        ss.base_seed = 0  # 0 = unseeded
    if "nickname" not in ss:
        ss.nickname = ""
    if "game" not in ss:
        ss.game = None
    if "last_report" not in ss:
        ss.last_report = None
    if "submitted" not in ss:
        ss.submitted = False
    if "toasted_turn" not in ss:
        ss.toasted_turn = 0
    if "show_hints" not in ss:
        ss.show_hints = True


def _start_run() -> None:
    ss = st.session_state
    seed = int(ss.base_seed) or None
    ss.game = GameSession(EngineConfig(profile_key=str(ss.profile_key), base_seed=seed))
    ss.last_report = None
    ss.submitted = False
    ss.toasted_turn = 0


# =========================
# UI Pages
# =========================


def page_setup() -> None:
    st.title(APP_TITLE)
    st.caption(APP_SUBTITLE)
    st.markdown("""
    ### How to play
    - Each turn pick a **department**, then one of three **initiatives**.
    - Every initiative shows its success chance; it can succeed, half-work or fail, and some carry a risk.
    - Your balance absorbs the monthly net profit. Below zero and you are out.
    - Fewer than 100 users two turns in a row also ends the game.
    - Win by hitting the net profit target on the final turn.
    """)


def _render_metrics(game: GameSession) -> None:
    snap = game.snapshot()
    m = snap["metrics"]
    a, b, c, d, e = st.columns([1.0, 1.2, 1.2, 1.0, 1.6])
    a.metric("Turn", f"{min(snap['turn'], snap['final_turn'])}/{snap['final_turn']}")
    b.metric("Balance", _money(snap["balance"]))
    c.metric("Net profit", _money(m["net_profit"]))
    d.metric("Users", f"{m['users']:,.0f}")
    e.progress(snap["win_progress"], text=f"Target {_money(snap['win_threshold'])}")

    with st.expander("📊 Unit economics"):
        r = st.columns(6)
        r[0].metric("Avg price", f"${m['avg_price']:,.2f}")
        r[1].metric("COGS", f"${m['cost_of_goods']:,.2f}")
        r[2].metric("C1", f"{m['first_conversion']:.1f}%")
        r[3].metric("CPUser", f"${m['cost_per_user']:,.2f}")
        r[4].metric("Fixed costs", _money(m["fixed_costs"]))
        r[5].metric("Margin", f"{m['margin']*100:.1f}%")
        if m["extras"]:
            cols = st.columns(len(m["extras"]))
            for col, (k, v) in zip(cols, sorted(m["extras"].items())):
                col.metric(k.upper(), f"{v:,.2f}")

    if len(snap["history"]) > 1:
        st.line_chart({"net profit": snap["history"]})


def _render_last_report() -> None:
    ss = st.session_state
    rep = ss.last_report
    if rep is None:
        return
    st.markdown("<div class='card'>", unsafe_allow_html=True)
    st.markdown(f"#### {rep.title}")
    st.markdown(rep.outcome_message)
    st.markdown(f"**{rep.profit_delta_message}**")
    if ss.show_hints and not ss.game.game_over:
        st.markdown(f"<div class='small'>💡 {ss.game.snapshot()['advice']}</div>", unsafe_allow_html=True)
    st.markdown("</div>", unsafe_allow_html=True)
    if ss.toasted_turn != rep.turn:
        for ach in rep.new_achievements:
            st.toast(f"{ach.icon} {ach.title}: {ach.description}")
        ss.toasted_turn = rep.turn


def _render_game_over(game: GameSession) -> None:
    ss = st.session_state
    state = game.state
    if state.is_victory:
        st.balloons()
        st.success(f"🏆 {state.end_message}")
    else:
        st.error(f"💀 {state.end_message}")

    gw = _gateway()
    top = gw.fetch_top(game.config.leaderboard_size)
    if not ss.submitted and game.should_offer_leaderboard(top):
        st.markdown("### You made the leaderboard!")
        nick = st.text_input("Nickname", value=str(ss.nickname), max_chars=24)
        if st.button("Submit score"):
            try:
                entry = gw.submit(nick, state.metrics.net_profit)
            except ValueError as e:
                st.warning(str(e))
                return
            if entry is None:
                st.warning("Could not reach the leaderboard. Your game is safe; try again later.")
            else:
                ss.nickname = nick
                ss.submitted = True
                st.rerun()
    _render_leaderboard(top)


def _render_leaderboard(entries: List[Any]) -> None:
    if not entries:
        st.info("Leaderboard is empty or unavailable.")
        return
    rows: List[Dict[str, Any]] = [
        {"#": i + 1, "Nickname": e.nickname, "Net profit": _money(e.net_profit), "Date": e.timestamp[:10]}
        for i, e in enumerate(entries)
    ]
    st.table(rows)


def page_run() -> None:
    ss = st.session_state
    game: GameSession = ss.game

    st.title(APP_TITLE)
    st.caption(game.config.profile.desc)

    _render_metrics(game)
    st.markdown("<hr class='soft'/>", unsafe_allow_html=True)
    _render_last_report()

    if game.game_over:
        _render_game_over(game)
        return

    state = game.state

    def _on_department(dep: str) -> None:
        game.draw_initiatives(dep)

    def _on_choose(ix: int) -> None:
        try:
            ss.last_report = game.resolve_initiative(ix)
        except InvalidStateError as e:
            st.warning(str(e))
            return
        st.rerun()

    if state.department is None:
        st.markdown(f"### Turn {state.turn}: pick a department")
        cols = st.columns(len(DEPARTMENTS))
        for col, dep in zip(cols, DEPARTMENTS):
            info = DEPARTMENT_INFO[dep]
            with col:
                if st.button(f"{info['icon']} {info['label']}", key=f"dep_{state.turn}_{dep}", use_container_width=True):
                    _on_department(dep)
                    st.rerun()
                st.caption(info["desc"])
        return

    info = DEPARTMENT_INFO[state.department]
    st.markdown(f"### Turn {state.turn}: {info['icon']} {info['label']}")
    cols = st.columns(len(state.offer))
    for i, (col, drawn) in enumerate(zip(cols, state.offer)):
        with col:
            st.markdown("<div class='card'>", unsafe_allow_html=True)
            st.markdown(f"#### {drawn.title}")
            st.markdown(
                f"<span class='pill {_chance_pill(drawn.chance)}'>Success {drawn.chance*100:.0f}%</span>",
                unsafe_allow_html=True,
            )
            st.markdown(drawn.initiative.description)
            if st.button("Launch", key=f"ini_{state.turn}_{i}", use_container_width=True):
                _on_choose(i)
            st.markdown("</div>", unsafe_allow_html=True)
    if st.button("← Back to departments", key=f"back_{state.turn}"):
        game.cancel_department()
        st.rerun()


def page_achievements() -> None:
    ss = st.session_state
    st.title("Achievements")
    board = ss.game.achievement_board()
    st.caption(f"{sum(1 for a in board if a['achieved'])}/{len(board)} unlocked")
    for a in board:
        mark = "✅" if a["achieved"] else "⬜"
        st.markdown(f"{mark} {a['icon']} **{a['title']}** · {a['description']}")


def page_leaderboard() -> None:
    st.title("Leaderboard")
    gw = _gateway()
    stt = gw.status()
    if not stt.ok or stt.error:
        st.caption(stt.error or stt.note)
    _render_leaderboard(gw.fetch_top(10))


def page_debug() -> None:
    ss = st.session_state
    st.title("Debug")
    st.subheader("Gateway")
    st.json(vars(_gateway().status()))
    st.subheader("GameState")
    st.json(ss.game.snapshot())
    st.subheader("Turn log")
    st.json(ss.game.turn_logs)


# =========================
# Sidebar
# =========================


def sidebar() -> str:
    ss = st.session_state
    started = ss.game is not None

    st.sidebar.markdown(f"**{APP_TITLE}**  ")
    st.sidebar.markdown(f"v{APP_VERSION} · {core.API_VERSION}")
    st.sidebar.markdown("---")

    keys = list(DEFAULT_PROFILES.keys())
    ix = keys.index(ss.profile_key) if ss.profile_key in keys else 0
    ss.profile_key = st.sidebar.selectbox("Ruleset", keys, index=ix, disabled=started)
    st.sidebar.caption(DEFAULT_PROFILES[ss.profile_key].desc)
    ss.base_seed = st.sidebar.number_input("Seed (0 = random)", value=int(ss.base_seed), step=1, disabled=started)
    ss.show_hints = st.sidebar.toggle("Show hints", value=bool(ss.show_hints))

    cols = st.sidebar.columns(2)
    with cols[0]:
        if st.button("Start", disabled=started, use_container_width=True):
            _start_run()
            st.rerun()
    with cols[1]:
        if st.button("Restart", disabled=not started, use_container_width=True):
            _start_run()
            st.rerun()

    if started:
        st.sidebar.download_button(
            "Download run log",
            data=ss.game.export_run().encode("utf-8"),
            file_name=f"unit_economics_run_{datetime.now(timezone.utc):%Y%m%d%H%M%S}.json",
            mime="application/json",
        )

    st.sidebar.markdown("---")
    return st.sidebar.radio("Page", ["Play", "Achievements", "Leaderboard", "Debug"], index=0)


# =========================
# Main
# =========================


def _check_core_version() -> None:
    api_ver = getattr(core, "API_VERSION", None)
    if api_ver != EXPECTED_CORE:
        st.error(
            "Core and app versions do not match (partial deploy?).\n\n"
            f"Expected core: {EXPECTED_CORE}, found: {api_ver!r}"
        )
        st.stop()


def main() -> None:
    _check_core_version()
    _ensure_state()
    page = sidebar()
    ss = st.session_state

    if page == "Leaderboard":
        page_leaderboard()
        return
    if ss.game is None:
        page_setup()
        return

    if page == "Play":
        page_run()
    elif page == "Achievements":
        page_achievements()
    else:
        page_debug()


if __name__ == "__main__":
    main()
