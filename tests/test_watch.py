"""Watch mode: movement detection, escalation and active-mode settlement."""

from datetime import timedelta

import pytest

from edgescan.models.watch import WatchState, WatchStatus
from edgescan.pipeline.watch import (
    advance_active,
    confirmed_confidence,
    evaluate_movement,
    event_key,
    poll_active,
    poll_movement,
    poll_watch,
)
from edgescan.storage.cache import upsert_cache_record
from edgescan.storage.signals import get_signal
from edgescan.storage.watch import add_probability_snapshot, get_watch, save_watch

from conftest import NOW, celtics_record, seed_celtics_knicks

KEY = "bostonceltics_vs_newyorkknicks_2026-01-14"


def test_event_key():
    assert event_key("Boston Celtics", "New York Knicks", NOW + timedelta(hours=5)) == KEY


def test_evaluate_movement():
    assert evaluate_movement([(NOW, 0.5)]) is None
    movement = evaluate_movement([
        (NOW - timedelta(minutes=10), 0.45),
        (NOW - timedelta(minutes=5), 0.56),
        (NOW, 0.53),
    ])
    assert movement.movement_pct == pytest.approx(8.0)
    assert movement.velocity == pytest.approx(0.8)
    assert movement.peak_probability == 0.56
    assert movement.qualifies(6.0)
    assert not movement.qualifies(10.0)
    assert not movement.qualifies(6.0, min_velocity=1.0)


def _active(**kw) -> WatchState:
    data = dict(
        event_key=KEY,
        state=WatchStatus.ACTIVE,
        hold_start_at=NOW,
        active_until=NOW + timedelta(minutes=20),
        samples_since_hold=0,
    )
    data.update(kw)
    return WatchState(**data)


def test_advance_active_transitions():
    state = _active()
    first = advance_active(state, 3.0, NOW + timedelta(minutes=1))
    assert first.state == WatchStatus.ACTIVE and first.samples_since_hold == 1

    confirmed = advance_active(first, 3.0, NOW + timedelta(minutes=3))
    assert confirmed.state == WatchStatus.CONFIRMED

    # held long enough but edge under the confirm bar
    weak = advance_active(first, 1.5, NOW + timedelta(minutes=4))
    assert weak.state == WatchStatus.ACTIVE

    assert advance_active(state, 0.4, NOW).state == WatchStatus.DROPPED
    assert advance_active(state, None, NOW).state == WatchStatus.SIGNAL
    assert advance_active(state, 5.0, NOW + timedelta(minutes=21)).state == WatchStatus.DROPPED


def test_confirmed_confidence():
    assert confirmed_confidence(2.0) == 75
    assert confirmed_confidence(8.85) == 95


@pytest.fixture
def moving_market(temp_db):
    """Celtics fair probability moved from 0.45 to ~0.538 within ten minutes."""
    seed_celtics_knicks(temp_db, prices={"pinnacle": (1.80, 2.10)})
    add_probability_snapshot(temp_db, KEY, "Boston Celtics", 0.45, NOW - timedelta(minutes=10))
    return temp_db


def test_poll_movement_escalates(moving_market, settings):
    result = poll_movement(moving_market, settings, NOW)
    assert result["events_analyzed"] == 1
    assert result["snapshots_stored"] == 2
    assert result["candidates"] == 1
    assert result["escalated"] == 1
    assert result["active_slots"] == 5

    state = get_watch(moving_market, KEY)
    assert state.state == WatchStatus.ACTIVE
    assert state.outcome == "Boston Celtics"
    assert state.movement_pct == pytest.approx(8.85, abs=0.01)
    assert state.active_until == NOW + timedelta(minutes=20)
    assert state.bookmaker_event_id == "ev1"


def test_poll_movement_without_free_slots(moving_market, settings):
    result = poll_movement(moving_market, settings.with_overrides({"max_simultaneous_active": 0}), NOW)
    assert result["escalated"] == 0
    assert get_watch(moving_market, KEY).state == WatchStatus.WATCHING


def test_poll_movement_leaves_settled_rows(moving_market, settings):
    save_watch(moving_market, _active(state=WatchStatus.CONFIRMED))
    assert poll_movement(moving_market, settings, NOW)["candidates"] == 0
    assert get_watch(moving_market, KEY).state == WatchStatus.CONFIRMED


def test_poll_active_confirms_and_signals(moving_market, settings):
    upsert_cache_record(moving_market, celtics_record())
    poll_movement(moving_market, settings, NOW)

    first = poll_active(moving_market, settings, NOW + timedelta(minutes=1))
    assert first["processed"] == 1 and first["continued"] == 1
    state = get_watch(moving_market, KEY)
    assert state.polymarket_condition_id == "0xabc"
    assert state.polymarket_matched

    second = poll_active(moving_market, settings, NOW + timedelta(minutes=4))
    assert second["confirmed"] == 1
    assert get_watch(moving_market, KEY).state == WatchStatus.CONFIRMED

    signal = get_signal(moving_market, "0xabc:boston_celtics")
    assert signal.confidence_score == 95
    assert signal.factors["edge_type"] == "persistence_confirmed"
    assert signal.factors["samples_captured"] == 2


def test_poll_active_low_volume_waits(moving_market, settings):
    upsert_cache_record(moving_market, celtics_record(volume=5_000))
    poll_movement(moving_market, settings, NOW)
    result = poll_active(moving_market, settings, NOW + timedelta(minutes=1))
    assert result["low_volume"] == 1
    assert get_watch(moving_market, KEY).samples_since_hold == 0


def test_poll_active_unmatched_and_expired(temp_db, settings):
    seed_celtics_knicks(temp_db)
    save_watch(temp_db, _active(league="NBA", bookmaker_event_id="ev1"))
    save_watch(temp_db, _active(event_key="old", league="NBA", active_until=NOW - timedelta(minutes=1)))

    result = poll_active(temp_db, settings, NOW)
    assert result["signal"] == 1
    assert result["dropped"] == 1
    assert get_watch(temp_db, KEY).state == WatchStatus.SIGNAL
    assert get_watch(temp_db, "old").state == WatchStatus.DROPPED


def test_poll_watch_runs_both_tiers(moving_market, settings):
    result = poll_watch(moving_market, settings, NOW)
    assert result["movement"]["escalated"] == 1
    # escalated in this poll, sampled on the next one
    assert result["active"]["processed"] == 0
