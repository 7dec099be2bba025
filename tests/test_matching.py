"""Canonical matching of Polymarket teams to indexed bookmaker events."""

from datetime import datetime, timedelta, timezone

import pytest

from edgescan.matching.index import index_book_events, lookup_key
from edgescan.matching.matcher import FailureReason, match_poly_market
from edgescan.models.event import Event

T = datetime(2026, 1, 15, 0, 30, tzinfo=timezone.utc)


def _event(event_id: str, home: str, away: str, start: datetime) -> Event:
    return Event(event_id=event_id, sport="basketball_nba", league="NBA", home_team=home, away_team=away, start_time=start)


@pytest.fixture
def index():
    return index_book_events(
        [
            _event("ev1", "Boston Celtics", "New York Knicks", T),
            _event("ev2", "New York Knicks", "Boston Celtics", T + timedelta(days=3)),
            _event("ev3", "Gotham Rogues", "Miami Heat", T),
        ],
        "NBA",
    )


def test_index_is_order_independent(index):
    key = lookup_key("NBA", "New York Knicks", "Boston Celtics")
    assert key == "NBA|boston_celtics|new_york_knicks"
    assert [e.event_id for e in index[key]] == ["ev1", "ev2"]
    # unresolvable teams are left out
    assert sum(len(v) for v in index.values()) == 2


def test_exact_match(index):
    result = match_poly_market(index, "NBA", "Celtics", "Knicks", T + timedelta(hours=1))
    assert result.matched
    assert result.event.event_id == "ev1"
    assert result.method == "canonical_exact"
    assert result.time_diff_hours == 1.0
    assert result.candidates == 2


def test_time_window_match(index):
    result = match_poly_market(index, "NBA", "Knicks", "Celtics", T + timedelta(days=2))
    assert result.event.event_id == "ev2"
    assert result.method == "canonical_time"
    assert result.time_diff_hours == 24.0


def test_start_time_mismatch(index):
    result = match_poly_market(index, "NBA", "Celtics", "Knicks", T + timedelta(days=10))
    assert not result.matched
    assert result.failure_reason == FailureReason.START_TIME_MISMATCH


def test_placeholder_time_gets_wider_window(index):
    poly_date = T - timedelta(hours=40)
    assert not match_poly_market(index, "NBA", "Celtics", "Knicks", poly_date).matched
    assert match_poly_market(index, "NBA", "Celtics", "Knicks", poly_date, is_placeholder_time=True).matched


def test_failure_reasons(index):
    missing = match_poly_market(index, "NBA", "Celtics", "Gotham Rogues", T)
    assert missing.failure_reason == FailureReason.TEAM_ALIAS_MISSING
    assert missing.resolved_teams == ("Boston Celtics", None)

    no_game = match_poly_market(index, "NBA", "Lakers", "Heat", T)
    assert no_game.failure_reason == FailureReason.NO_BOOK_GAME_FOUND
    assert no_game.lookup_key == "NBA|los_angeles_lakers|miami_heat"


def test_no_date_takes_first_candidate(index):
    result = match_poly_market(index, "NBA", "Celtics", "Knicks", None)
    assert result.event.event_id == "ev1"


def test_user_mapping_resolves_alias():
    events = [_event("ev9", "Boston Celtics", "New York Knicks", T)]
    mappings = {"cs": "Boston Celtics"}
    index = index_book_events(events, "NBA", user_mappings=mappings)
    assert match_poly_market(index, "NBA", "C's", "Knicks", T, user_mappings=mappings).matched
    assert not match_poly_market(index, "NBA", "C's", "Knicks", T).matched
