"""Pipeline steps end to end against a temp DuckDB and mocked HTTP."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from edgescan.config import Settings
from edgescan.models.signal import Urgency
from edgescan.models.watch import WatchStatus
from edgescan.pipeline.odds import ingest_odds
from edgescan.pipeline.refresh import refresh_prices, relative_deviation
from edgescan.pipeline.scrape import scrape_polymarket
from edgescan.pipeline.signals import build_signal_report, detect_signals, quote_edge
from edgescan.pipeline.sync import sync_polymarket
from edgescan.storage.cache import get_cache_record, list_cache, upsert_cache_record
from edgescan.storage.events import count_odds_snapshots, list_book_markets
from edgescan.storage.mappings import list_match_failures
from edgescan.storage.signals import list_signals
from edgescan.storage.watch import get_watch

from conftest import NOW, celtics_record, seed_celtics_knicks


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


GAMMA_EVENTS = [
    {
        "id": "e1",
        "title": "Celtics vs. Knicks",
        "slug": "nba-bos-nyk-2026-01-15",
        "markets": [{
            "conditionId": "0xabc",
            "question": "Celtics vs. Knicks",
            "outcomePrices": '["0.45", "0.55"]',
            "clobTokenIds": '["111", "222"]',
            "volume": "150000",
            "sportsMarketType": "moneyline",
            "gameStartTime": "2026-01-15T00:30:00Z",
        }],
    },
    {
        "id": "e2",
        "title": "NBA Champion 2026",
        "markets": [{"conditionId": "0xfut", "question": "Will the Celtics win the championship?"}],
    },
    {"id": "e3", "title": "Celtics vs. Nets", "markets": []},
    {
        "id": "e4",
        "title": "Lakers vs. Heat",
        "slug": "nba-lal-mia-2026-03-01",
        "markets": [{"conditionId": "0xlal", "question": "Lakers vs. Heat", "sportsMarketType": "moneyline"}],
    },
    {
        "id": "e5",
        "title": "Blackhawks vs. Blues",
        "markets": [{
            "conditionId": "0xnhl",
            "question": "Blackhawks vs. Blues",
            "outcomePrices": ["0.40", "0.60"],
            "sportsMarketType": "moneyline",
            "gameStartTime": "2026-01-14T20:00:00Z",
        }],
    },
]


def _gamma_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/events":
        return httpx.Response(200, json=GAMMA_EVENTS)
    if request.url.path == "/markets/0xnhl":
        return httpx.Response(200, json={"tokens": [
            {"outcome": "Yes", "token_id": "y1"},
            {"outcome": "No", "token_id": "n1"},
        ]})
    return httpx.Response(404)


def test_sync_polymarket(temp_db, settings):
    summary = sync_polymarket(temp_db, settings, client=_client(_gamma_handler), now=NOW, window_hours=48)
    assert summary["total_fetched"] == 5
    assert summary["qualifying_events"] == 2
    assert summary["upserted_to_cache"] == 2
    assert summary["now_monitored"] == 2
    assert summary["filter_stats"] == {"blocked": 1, "no_markets": 1, "outside_window": 1}

    record = get_cache_record(temp_db, "0xabc")
    assert (record.team_home, record.team_away) == ("Celtics", "Knicks")
    assert record.sport == "NBA"
    assert record.date_source == "slug"
    assert record.event_date == datetime(2026, 1, 15, 0, 30, tzinfo=timezone.utc)
    assert not record.is_placeholder_time
    assert (record.yes_price, record.volume, record.token_id_yes) == (0.45, 150000.0, "111")

    # CLOB fallback fills tokens Gamma left out
    nhl = get_cache_record(temp_db, "0xnhl")
    assert nhl.sport == "NHL"
    assert (nhl.token_id_yes, nhl.token_id_no) == ("y1", "n1")

    watch = get_watch(temp_db, "poly_0xabc")
    assert watch.state == WatchStatus.MONITORED
    assert watch.league == "NBA"


def test_sync_allowlist_filters_sports(temp_db, settings):
    summary = sync_polymarket(
        temp_db, settings, client=_client(_gamma_handler), now=NOW, window_hours=48, sports=["NHL"]
    )
    assert summary["qualifying_events"] == 1
    assert summary["filter_stats"]["sport_not_allowed"] == 2


def test_sync_expires_started_rows(temp_db, settings):
    sync_polymarket(temp_db, settings, client=_client(_gamma_handler), now=NOW, window_hours=48)
    later = NOW + timedelta(hours=10)
    summary = sync_polymarket(temp_db, settings, client=_client(lambda r: httpx.Response(200, json=[])), now=later)
    assert summary["total_fetched"] == 0
    assert summary["expired"] == 1
    assert summary["expired_cache"] == 1
    assert get_watch(temp_db, "poly_0xnhl").state == WatchStatus.EXPIRED


def test_refresh_prices(temp_db, settings):
    upsert_cache_record(temp_db, celtics_record())
    upsert_cache_record(temp_db, celtics_record(condition_id="0xdef", token_id_yes="333", yes_price=0.5))
    upsert_cache_record(temp_db, celtics_record(condition_id="0xghi", token_id_yes="444"))
    upsert_cache_record(temp_db, celtics_record(condition_id="0xnotok", token_id_yes=None))

    def handler(request):
        assert {b["token_id"] for b in json.loads(request.content)} == {"111", "333", "444"}
        return httpx.Response(200, json={"111": {"BUY": "0.52"}, "333": {"BUY": "0.99"}})

    later = NOW + timedelta(minutes=2)
    summary = refresh_prices(temp_db, settings, client=_client(handler), now=later)
    assert summary == {"checked": 3, "updated": 1, "rejected": 1, "missing": 1, "deviations": 1}

    record = get_cache_record(temp_db, "0xabc")
    assert (record.yes_price, record.no_price) == (0.52, 0.48)
    assert record.last_price_update == later
    assert get_cache_record(temp_db, "0xdef").yes_price == 0.5


def test_relative_deviation():
    assert relative_deviation(0.5, 0.55) == pytest.approx(0.1)
    assert relative_deviation(0.0, 0.4) == 0.0


def _odds_payload():
    return [{
        "id": "ev1",
        "sport_key": "basketball_nba",
        "commence_time": "2026-01-14T17:00:00Z",
        "home_team": "Boston Celtics",
        "away_team": "New York Knicks",
        "bookmakers": [
            {"key": book, "markets": [{"key": "h2h", "outcomes": [
                {"name": "Boston Celtics", "price": home},
                {"name": "New York Knicks", "price": away},
            ]}]}
            for book, home, away in (("pinnacle", 1.8, 2.1), ("draftkings", 1.85, 2.0))
        ],
    }]


def test_ingest_odds_skips_failed_sport(temp_db, settings):
    def handler(request):
        if "basketball_nba" in request.url.path:
            return httpx.Response(200, json=_odds_payload())
        return httpx.Response(500)

    summary = ingest_odds(
        temp_db, settings, sports=["basketball_nba", "icehockey_nhl"], client=_client(handler), now=NOW
    )
    assert summary == {"sports": 1, "events": 1, "markets": 4, "snapshots": 4, "failed_sports": ["icehockey_nhl"]}
    assert len(list_book_markets(temp_db, "ev1", "h2h")) == 4
    assert count_odds_snapshots(temp_db, "ev1") == 4


def test_ingest_odds_requires_key(temp_db, monkeypatch):
    monkeypatch.delenv("ODDS_API_KEY", raising=False)
    with pytest.raises(ValueError):
        ingest_odds(temp_db, Settings())


def test_scrape_polymarket(temp_db, settings):
    def handler(request):
        url = json.loads(request.content)["url"]
        if url.endswith("/nba/games"):
            return httpx.Response(200, json={"data": {"markdown": "Lakers lal48¢ Celtics bos53¢"}})
        return httpx.Response(500)

    summary = scrape_polymarket(temp_db, settings, leagues=["NBA", "NHL"], client=_client(handler), now=NOW)
    assert summary == {"leagues": {"NBA": 1}, "upserted": 1, "failed_leagues": ["NHL"]}

    record = get_cache_record(temp_db, "firecrawl_nba_lal_bos")
    assert record.source == "firecrawl"
    assert (record.team_home, record.yes_price, record.no_price) == ("Los Angeles Lakers", 0.48, 0.53)


def test_quote_edge_picks_best_side(temp_db, settings):
    seed_celtics_knicks(temp_db)
    quote = quote_edge(
        celtics_record(), list_book_markets(temp_db, "ev1", "h2h"), "NBA", settings.sharp_books, settings.sharp_book_weight
    )
    assert quote.selection == "Boston Celtics"
    assert quote.fair_probability == pytest.approx(0.5321, abs=1e-4)
    assert quote.edge_percent == pytest.approx(8.21, abs=0.01)
    assert (quote.confirming_books, quote.total_books) == (2, 2)

    # flipped prices favour the Knicks side
    flipped = quote_edge(
        celtics_record(yes_price=0.60, no_price=0.40), list_book_markets(temp_db, "ev1", "h2h"), "NBA",
        settings.sharp_books, settings.sharp_book_weight,
    )
    assert flipped.selection == "New York Knicks"
    assert flipped.polymarket_price == 0.40


def test_detect_signals(temp_db, settings):
    seed_celtics_knicks(temp_db)
    upsert_cache_record(temp_db, celtics_record())
    upsert_cache_record(temp_db, celtics_record(condition_id="0xlal", team_home="Lakers", team_away="Heat",
                                                event_title="Lakers vs. Heat"))
    upsert_cache_record(temp_db, celtics_record(condition_id="0xold", last_price_update=NOW - timedelta(hours=1)))
    upsert_cache_record(temp_db, celtics_record(condition_id="0xgolf", sport="Golf"))

    stats = detect_signals(temp_db, settings, now=NOW)
    assert stats["checked"] == 4
    assert stats["matched"] == 1
    assert stats["unmatched"] == 1
    assert stats["dead_price"] == 1
    assert stats["unsupported_league"] == 1
    assert stats["signals"] == 1

    [signal] = list_signals(temp_db)
    assert signal.signal_id == "0xabc:boston_celtics"
    assert signal.selection == "Boston Celtics"
    assert signal.edge_percent == pytest.approx(8.21, abs=0.01)
    assert signal.confirming_books == 2
    assert signal.confidence_score == 72
    assert signal.urgency == Urgency.NORMAL
    assert signal.factors["match_method"] == "canonical_exact"
    assert signal.kelly is not None and signal.execution is not None

    [failure] = list_match_failures(temp_db)
    assert failure["condition_id"] == "0xlal"
    assert failure["failure_reason"] == "NO_BOOK_GAME_FOUND"


def test_detect_signals_min_edge(temp_db, settings):
    seed_celtics_knicks(temp_db)
    upsert_cache_record(temp_db, celtics_record())
    stats = detect_signals(temp_db, settings, now=NOW, min_edge=10)
    assert stats["below_min_edge"] == 1
    assert list_signals(temp_db) == []


def test_signal_report(temp_db, settings):
    assert build_signal_report([]) == "No active signals."
    seed_celtics_knicks(temp_db)
    upsert_cache_record(temp_db, celtics_record())
    detect_signals(temp_db, settings, now=NOW)
    report = build_signal_report(list_signals(temp_db))
    assert report.startswith("1 active signal(s)")
    assert "1. Boston Celtics vs New York Knicks [NBA]" in report
    assert "Back Boston Celtics: Polymarket 0.45" in report
    assert "Kelly: stake $" in report


def test_cache_listing_after_sync(temp_db, settings):
    sync_polymarket(temp_db, settings, client=_client(_gamma_handler), now=NOW, window_hours=48)
    assert [r.condition_id for r in list_cache(temp_db)] == ["0xnhl", "0xabc"]
