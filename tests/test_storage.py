"""DuckDB persistence: bet log, cache, match failures, scan config, watch rows."""

from datetime import timedelta

import pytest

from edgescan.config import Settings, get_settings
from edgescan.models.bet import BetStatus
from edgescan.models.watch import WatchState, WatchStatus
from edgescan.pipeline.runtime import effective_settings
from edgescan.storage.bets import bet_summary, create_bet, delete_bet, get_bet, list_bets, settle_bet
from edgescan.storage.cache import cache_stats, expire_cache, get_cache_record, list_cache, update_prices, upsert_cache_record
from edgescan.storage.events import count_odds_snapshots, get_event, list_book_markets, list_events
from edgescan.storage.mappings import (
    add_team_mapping,
    clear_match_failure,
    get_scan_config,
    list_match_failures,
    load_user_mappings,
    record_match_failure,
    set_scan_config,
)
from edgescan.storage.watch import (
    add_probability_snapshot,
    cleanup_snapshots,
    expire_started,
    get_watch,
    mark_matched,
    probability_history,
    save_watch,
    upsert_monitored,
)

from conftest import NOW, celtics_record, seed_celtics_knicks


def test_bet_lifecycle(temp_db):
    bet = create_bet(temp_db, "Celtics ML", "Boston Celtics", 2.5, 100, signal_id="0xabc:boston_celtics")
    assert get_bet(temp_db, bet.bet_id).status == BetStatus.PENDING

    won = settle_bet(temp_db, bet.bet_id, BetStatus.WON)
    assert won.profit_loss == 150.0
    assert won.settled_at is not None

    void = settle_bet(temp_db, bet.bet_id, BetStatus.VOID)
    assert void.profit_loss == 0.0

    assert settle_bet(temp_db, "missing", BetStatus.WON) is None
    assert delete_bet(temp_db, bet.bet_id)
    assert not delete_bet(temp_db, bet.bet_id)


def test_bet_validation(temp_db):
    with pytest.raises(ValueError):
        create_bet(temp_db, "bad", "x", 1.0, 100)
    with pytest.raises(ValueError):
        create_bet(temp_db, "bad", "x", 2.0, 0)
    assert list_bets(temp_db) == []


def test_bet_summary(temp_db):
    a = create_bet(temp_db, "a", "A", 2.0, 100)
    b = create_bet(temp_db, "b", "B", 3.0, 50)
    create_bet(temp_db, "c", "C", 1.5, 200)
    settle_bet(temp_db, a.bet_id, BetStatus.WON)
    settle_bet(temp_db, b.bet_id, BetStatus.LOST)

    summary = bet_summary(temp_db)
    assert summary["count"] == 3
    assert summary["pending"] == 1
    assert summary["total_staked"] == 350.0
    assert summary["total_profit"] == 50.0
    assert summary["roi_percent"] == pytest.approx(33.33)
    assert summary["win_rate_percent"] == 50.0
    assert len(list_bets(temp_db, BetStatus.PENDING)) == 1


def test_cache_upsert_and_filters(temp_db):
    upsert_cache_record(temp_db, celtics_record())
    upsert_cache_record(temp_db, celtics_record(condition_id="0xdef", token_id_yes=None, market_type="total"))
    upsert_cache_record(temp_db, celtics_record(yes_price=0.47))

    record = get_cache_record(temp_db, "0xabc")
    assert record.yes_price == 0.47
    assert record.event_date == NOW + timedelta(hours=5)
    assert len(list_cache(temp_db)) == 2
    assert [r.condition_id for r in list_cache(temp_db, with_tokens=True)] == ["0xabc"]
    assert [r.condition_id for r in list_cache(temp_db, market_type="total")] == ["0xdef"]
    assert list_cache(temp_db, sport="nba", limit=1)[0].sport == "NBA"

    update_prices(temp_db, "0xabc", 0.52, 0.48, at=NOW + timedelta(minutes=1))
    record = get_cache_record(temp_db, "0xabc")
    assert (record.yes_price, record.no_price) == (0.52, 0.48)
    assert record.last_price_update == NOW + timedelta(minutes=1)


def test_expire_cache(temp_db):
    upsert_cache_record(temp_db, celtics_record())
    upsert_cache_record(temp_db, celtics_record(condition_id="0xold", event_date=NOW - timedelta(hours=1)))
    assert expire_cache(temp_db, NOW) == 1
    assert cache_stats(temp_db) == {
        "active": {"count": 1, "with_tokens": 1},
        "expired": {"count": 1, "with_tokens": 1},
    }


def test_match_failures_count_occurrences(temp_db):
    for _ in range(3):
        record_match_failure(temp_db, "0xabc", "Lakers vs. Heat", "NBA", "Lakers", "Heat", "NO_BOOK_GAME_FOUND")
    failures = list_match_failures(temp_db)
    assert failures[0]["occurrences"] == 3
    clear_match_failure(temp_db, "0xabc")
    assert list_match_failures(temp_db) == []


def test_team_mappings_are_normalized(temp_db):
    add_team_mapping(temp_db, "C's", "NBA", "Boston Celtics")
    add_team_mapping(temp_db, "Knickerbockers", "nba", "New York Knicks")
    assert load_user_mappings(temp_db, "nba") == {"cs": "Boston Celtics", "knickerbockers": "New York Knicks"}
    assert load_user_mappings(temp_db, "NHL") == {}


def test_scan_config_overrides(temp_db, settings):
    set_scan_config(temp_db, "min_edge_pct", 3.5)
    set_scan_config(temp_db, "total_bankroll", 2500)
    set_scan_config(temp_db, "unknown_key", [1, 2])
    assert get_scan_config(temp_db) == {"min_edge_pct": 3.5, "total_bankroll": 2500, "unknown_key": [1, 2]}

    effective = effective_settings(temp_db, settings)
    assert effective.min_edge_pct == 3.5
    assert effective.total_bankroll == 2500
    assert effective.sharp_books == ["pinnacle"]
    assert settings.min_edge_pct == 2.0


def test_settings_profile_overlay(tmp_path):
    (tmp_path / "default.toml").write_text('[scan]\nmin_edge_pct = 2.0\nwindow_hours = 24\n[bankroll]\ntotal = 5000\n')
    (tmp_path / "live.toml").write_text("[scan]\nmin_edge_pct = 4.0\n")
    s = get_settings("live", tmp_path)
    assert s.min_edge_pct == 4.0
    assert s.window_hours == 24
    assert s.total_bankroll == 5000
    assert Settings().max_simultaneous_active == 5


def test_config_api_key_beats_environment(monkeypatch):
    monkeypatch.setenv("ODDS_API_KEY", "from-env")
    assert Settings(odds_api={"api_key": "from-config"}).odds_api_key == "from-config"
    assert Settings().odds_api_key == "from-env"


def test_events_and_markets(temp_db):
    seed_celtics_knicks(temp_db)
    event = get_event(temp_db, "ev1")
    assert event.name == "Boston Celtics vs New York Knicks"
    assert event.start_time == NOW + timedelta(hours=5)
    assert [e.event_id for e in list_events(temp_db, league="NBA", start_after=NOW)] == ["ev1"]
    assert list_events(temp_db, league="NBA", start_after=NOW + timedelta(hours=6)) == []
    assert len(list_book_markets(temp_db, "ev1", "h2h")) == 4
    assert count_odds_snapshots(temp_db) == 0


def test_monitored_row_keeps_later_state(temp_db):
    upsert_monitored(temp_db, "poly_0xabc", "Celtics vs. Knicks", NOW + timedelta(hours=5), "0xabc", "q", 0.45, 1000, "NBA")
    row = get_watch(temp_db, "poly_0xabc")
    assert row.state == WatchStatus.MONITORED

    save_watch(temp_db, row.model_copy(update={"state": WatchStatus.ACTIVE}))
    upsert_monitored(temp_db, "poly_0xabc", "Celtics vs. Knicks", NOW + timedelta(hours=5), "0xabc", "q", 0.47, 1200, "NBA")
    row = get_watch(temp_db, "poly_0xabc")
    assert row.state == WatchStatus.ACTIVE
    assert row.polymarket_price == 0.47

    mark_matched(temp_db, "poly_0xabc", "ev1")
    row = get_watch(temp_db, "poly_0xabc")
    assert row.polymarket_matched and row.bookmaker_event_id == "ev1"


def test_expire_started_only_touches_waiting_rows(temp_db):
    past = NOW - timedelta(hours=1)
    save_watch(temp_db, WatchState(event_key="a", state=WatchStatus.MONITORED, commence_time=past))
    save_watch(temp_db, WatchState(event_key="b", state=WatchStatus.WATCHING, commence_time=past))
    save_watch(temp_db, WatchState(event_key="c", state=WatchStatus.CONFIRMED, commence_time=past))
    save_watch(temp_db, WatchState(event_key="d", state=WatchStatus.MONITORED, commence_time=NOW + timedelta(hours=1)))
    assert expire_started(temp_db, NOW) == 2
    assert get_watch(temp_db, "c").state == WatchStatus.CONFIRMED
    assert get_watch(temp_db, "d").state == WatchStatus.MONITORED


def test_probability_snapshots(temp_db):
    add_probability_snapshot(temp_db, "k", "Boston Celtics", 0.50, NOW - timedelta(hours=30))
    add_probability_snapshot(temp_db, "k", "Boston Celtics", 0.52, NOW - timedelta(minutes=5))
    add_probability_snapshot(temp_db, "k", "Boston Celtics", 0.55, NOW)
    history = probability_history(temp_db, "k", "Boston Celtics", since=NOW - timedelta(minutes=15))
    assert [p for _, p in history] == [0.52, 0.55]
    assert history[-1][0] == NOW
    assert cleanup_snapshots(temp_db, NOW - timedelta(hours=24)) == 1
