"""
Watch mode: two-tier movement tracking over stored bookmaker prices.

Tier 1 snapshots the fair probability of every upcoming event and escalates
sharp movers to 'active'. Tier 2 re-prices active events against Polymarket
and settles each one as confirmed, dropped or signal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog

from edgescan.ingestion.odds_api import book_prices
from edgescan.matching.matcher import match_poly_market
from edgescan.models.cache import CacheRecord
from edgescan.models.event import Event
from edgescan.models.watch import WatchState, WatchStatus
from edgescan.pipeline.schedule import load_book_index
from edgescan.pipeline.signals import build_signal, quote_edge
from edgescan.pricing.odds import fair_probabilities
from edgescan.sports import league_for_odds_key, team_map_for
from edgescan.storage.cache import list_cache
from edgescan.storage.db import utcnow
from edgescan.storage.events import get_event, list_book_markets, list_events
from edgescan.storage.mappings import load_user_mappings
from edgescan.storage.signals import upsert_signal
from edgescan.storage.watch import (
    add_probability_snapshot,
    cleanup_snapshots,
    count_state,
    get_watch,
    list_watch,
    probability_history,
    save_watch,
)

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from edgescan.config import Settings

log = structlog.get_logger(__name__)

MIN_VELOCITY_PCT_PER_MIN = 0.4
LOOKBACK_MINUTES = 15
ACTIVE_WINDOW_MINUTES = 20
SNAPSHOT_RETENTION_HOURS = 24

HOLD_WINDOW_MINUTES = 3
SAMPLES_REQUIRED = 2
CONFIRM_EDGE_PCT = 2.0
REVERSION_EDGE_PCT = 0.5
MIN_ACTIVE_VOLUME = 10_000

# States that a fresh movement must not overwrite
_SETTLED = {WatchStatus.ACTIVE, WatchStatus.CONFIRMED, WatchStatus.DROPPED, WatchStatus.SIGNAL}


def event_key(home: str, away: str, commence_time: datetime) -> str:
    """'bostonceltics_vs_newyorkknicks_2026-01-15'."""
    def norm(s: str) -> str:
        return re.sub(r"[^a-z0-9]", "", s.lower())

    return f"{norm(home)}_vs_{norm(away)}_{commence_time.date().isoformat()}"


@dataclass
class Movement:
    initial_probability: float
    peak_probability: float
    current_probability: float
    movement_pct: float
    velocity: float

    def qualifies(self, threshold_pct: float, min_velocity: float = MIN_VELOCITY_PCT_PER_MIN) -> bool:
        return abs(self.movement_pct) >= threshold_pct and self.velocity >= min_velocity


def evaluate_movement(history: list[tuple[datetime, float]]) -> Movement | None:
    """First vs last snapshot in percentage points, velocity in points per minute. Needs 2 samples."""
    if len(history) < 2:
        return None
    (t0, p0), (t1, p1) = history[0], history[-1]
    movement = (p1 - p0) * 100
    minutes = (t1 - t0).total_seconds() / 60
    return Movement(
        initial_probability=p0,
        peak_probability=max(p for _, p in history),
        current_probability=p1,
        movement_pct=round(movement, 4),
        velocity=round(abs(movement) / minutes, 4) if minutes > 0 else 0.0,
    )


def advance_active(state: WatchState, live_edge: float | None, now: datetime) -> WatchState:
    """
    One active-mode step. Returns an updated copy.

    Window expired or edge reverted -> dropped; no Polymarket/bookmaker pair
    -> signal; held long enough over enough samples at the confirm edge
    -> confirmed; otherwise stays active with one more sample.
    """
    if state.active_until is not None and state.active_until < now:
        return state.model_copy(update={"state": WatchStatus.DROPPED})
    if live_edge is None:
        return state.model_copy(update={"state": WatchStatus.SIGNAL})
    if live_edge < REVERSION_EDGE_PCT:
        return state.model_copy(update={"state": WatchStatus.DROPPED, "movement_pct": live_edge})

    samples = state.samples_since_hold + 1
    hold_start = state.hold_start_at or now
    held_minutes = (now - hold_start).total_seconds() / 60
    confirmed = held_minutes >= HOLD_WINDOW_MINUTES and samples >= SAMPLES_REQUIRED and live_edge >= CONFIRM_EDGE_PCT
    return state.model_copy(
        update={
            "state": WatchStatus.CONFIRMED if confirmed else WatchStatus.ACTIVE,
            "samples_since_hold": samples,
            "movement_pct": live_edge,
            "hold_start_at": hold_start,
        }
    )


def confirmed_confidence(edge_percent: float) -> int:
    return min(95, 65 + round(edge_percent * 5))


def snapshot_probabilities(
    conn: DuckDBPyConnection, events: list[Event], now: datetime
) -> dict[str, tuple[Event, str]]:
    """Store fair probabilities of each two-way h2h event. event_key -> (event, primary outcome)."""
    tracked: dict[str, tuple[Event, str]] = {}
    for event in events:
        fair = fair_probabilities(book_prices(list_book_markets(conn, event.event_id, "h2h")))
        if len(fair) != 2:
            continue
        key = event_key(event.home_team, event.away_team, event.start_time)
        for outcome, probability in fair.items():
            add_probability_snapshot(conn, key, outcome, probability, now)
        # outcomes come back sorted, so the primary one is stable across polls
        tracked[key] = (event, next(iter(fair)))
    return tracked


def _poly_for_events(conn: DuckDBPyConnection, league: str, now: datetime) -> dict[str, CacheRecord]:
    """bookmaker event_id -> matched active h2h cache row for one league."""
    index, user_mappings = load_book_index(conn, league, now)
    out: dict[str, CacheRecord] = {}
    for record in list_cache(conn, sport=league, market_type="h2h", limit=10_000):
        match = match_poly_market(
            index, league, record.team_home or "", record.team_away or "",
            record.event_date, record.is_placeholder_time, user_mappings=user_mappings,
        )
        if match.matched and match.event.event_id not in out:
            out[match.event.event_id] = record
    return out


def poll_movement(conn: DuckDBPyConnection, settings: Settings, now: datetime | None = None) -> dict[str, Any]:
    """Tier 1: snapshot, measure movement over the lookback window, escalate the biggest movers."""
    now = now or utcnow()
    leagues = [league_for_odds_key(k) or k for k in settings.enabled_sports]
    events: list[Event] = []
    for league in leagues:
        events.extend(list_events(conn, league=league, start_after=now))
    tracked = snapshot_probabilities(conn, events, now)

    since = now - timedelta(minutes=LOOKBACK_MINUTES)
    candidates: list[tuple[Movement, Event, str, str]] = []
    for key, (event, outcome) in tracked.items():
        movement = evaluate_movement(probability_history(conn, key, outcome, since))
        if movement is None or not movement.qualifies(settings.movement_threshold_pct):
            continue
        existing = get_watch(conn, key)
        if existing is not None and existing.state in _SETTLED:
            continue
        log.info("watch_movement_candidate", event_name=event.name, movement=movement.movement_pct, velocity=movement.velocity)
        candidates.append((movement, event, outcome, key))

    slots = max(0, settings.max_simultaneous_active - count_state(conn, WatchStatus.ACTIVE))
    candidates.sort(key=lambda c: abs(c[0].movement_pct), reverse=True)
    escalated = 0
    for i, (movement, event, outcome, key) in enumerate(candidates):
        escalate = i < slots
        state = WatchState(
            event_key=key,
            event_name=event.name,
            league=event.league,
            outcome=outcome,
            state=WatchStatus.ACTIVE if escalate else WatchStatus.WATCHING,
            commence_time=event.start_time,
            initial_probability=movement.initial_probability,
            peak_probability=movement.peak_probability,
            current_probability=movement.current_probability,
            movement_pct=movement.movement_pct,
            velocity=movement.velocity,
            samples_since_hold=0,
            hold_start_at=now if escalate else None,
            active_until=now + timedelta(minutes=ACTIVE_WINDOW_MINUTES) if escalate else None,
            bookmaker_event_id=event.event_id,
        )
        save_watch(conn, state)
        if escalate:
            escalated += 1
            log.info("watch_escalated", event_name=event.name, active_until=state.active_until.isoformat())

    cleaned = cleanup_snapshots(conn, now - timedelta(hours=SNAPSHOT_RETENTION_HOURS))
    return {
        "snapshots_stored": len(tracked) * 2,
        "events_analyzed": len(tracked),
        "candidates": len(candidates),
        "escalated": escalated,
        "active_slots": slots,
        "snapshots_cleaned": cleaned,
    }


def poll_active(conn: DuckDBPyConnection, settings: Settings, now: datetime | None = None) -> dict[str, Any]:
    """Tier 2: re-price each active event against its Polymarket market and settle it."""
    now = now or utcnow()
    results = {"processed": 0, "confirmed": 0, "dropped": 0, "signal": 0, "continued": 0, "low_volume": 0}
    poly_by_league: dict[str, dict[str, CacheRecord]] = {}

    for state in list_watch(conn, [WatchStatus.ACTIVE]):
        results["processed"] += 1
        league = state.league or ""
        event = get_event(conn, state.bookmaker_event_id) if state.bookmaker_event_id else None
        record: CacheRecord | None = None
        if event is not None and team_map_for(league):
            if league not in poly_by_league:
                poly_by_league[league] = _poly_for_events(conn, league, now)
            record = poly_by_league[league].get(event.event_id)

        expired = state.active_until is not None and state.active_until < now
        if not expired and record is not None and record.volume < MIN_ACTIVE_VOLUME and record.source != "firecrawl":
            results["low_volume"] += 1
            log.debug("watch_active_low_volume", event_name=state.event_name, volume=record.volume)
            continue

        quote = None
        if event is not None and record is not None:
            quote = quote_edge(
                record, list_book_markets(conn, event.event_id, "h2h"), league,
                settings.sharp_books, settings.sharp_book_weight, load_user_mappings(conn, league),
            )
        updated = advance_active(state, quote.edge_percent if quote else None, now)
        if quote is not None:
            updated = updated.model_copy(
                update={
                    "current_probability": quote.fair_probability,
                    "peak_probability": max(state.peak_probability or 0.0, quote.fair_probability),
                    "polymarket_condition_id": record.condition_id,
                    "polymarket_question": record.question,
                    "polymarket_price": quote.polymarket_price,
                    "polymarket_volume": record.volume,
                    "polymarket_matched": True,
                }
            )
        save_watch(conn, updated)

        if updated.state == WatchStatus.CONFIRMED:
            signal = build_signal(
                record, event, quote, settings, now,
                confidence=confirmed_confidence(quote.edge_percent),
                factors={"edge_type": "persistence_confirmed", "samples_captured": updated.samples_since_hold},
            )
            upsert_signal(conn, signal)
            results["confirmed"] += 1
            log.info("watch_confirmed", event_name=state.event_name, edge=quote.edge_percent, signal_id=signal.signal_id)
        elif updated.state == WatchStatus.DROPPED:
            results["dropped"] += 1
            log.info("watch_dropped", event_name=state.event_name, edge=updated.movement_pct)
        elif updated.state == WatchStatus.SIGNAL:
            results["signal"] += 1
            log.info("watch_unmatched_signal", event_name=state.event_name)
        else:
            results["continued"] += 1
    return results


def poll_watch(conn: DuckDBPyConnection, settings: Settings, now: datetime | None = None) -> dict[str, Any]:
    """Both tiers. Active runs first so events escalated in this poll take their first sample on the next."""
    now = now or utcnow()
    active = poll_active(conn, settings, now)
    movement = poll_movement(conn, settings, now)
    log.info("watch_poll_complete", escalated=movement["escalated"], confirmed=active["confirmed"], dropped=active["dropped"])
    return {"movement": movement, "active": active}
