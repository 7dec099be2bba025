"""Shared fixtures: throwaway DuckDB, settings, seeded bookmaker events."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from edgescan.config import Settings
from edgescan.models.cache import CacheRecord
from edgescan.models.event import BookMarket, Event
from edgescan.storage.db import get_connection, init_schema
from edgescan.storage.events import upsert_book_market, upsert_event

NOW = datetime(2026, 1, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_db():
    tmp = tempfile.mkdtemp()
    path = Path(tmp) / "test.duckdb"
    conn = get_connection(path)
    init_schema(conn)
    yield conn
    conn.close()
    path.unlink(missing_ok=True)
    Path(tmp).rmdir()


@pytest.fixture
def settings():
    return Settings(
        odds_api={"api_key": "test-key", "sharp_books": ["pinnacle"], "sharp_book_weight": 2.0},
        polymarket={"batch_delay_sec": 0, "page_size": 100},
        firecrawl={"api_key": "fc-test"},
        scan={"enabled_sports": ["basketball_nba"], "min_edge_pct": 2.0},
        logging={"level": "WARNING"},
    )


def book_market(event_id: str, book: str, selection: str, odds: float) -> BookMarket:
    return BookMarket(
        market_id=BookMarket.make_id(event_id, book, "h2h", selection),
        event_id=event_id,
        bookmaker=book,
        market_type="h2h",
        selection=selection,
        odds_decimal=odds,
        last_updated=NOW,
    )


def seed_celtics_knicks(conn, start: datetime | None = None, prices=None) -> Event:
    """Celtics vs Knicks, 5h after NOW, priced by pinnacle and draftkings."""
    event = Event(
        event_id="ev1",
        sport="basketball_nba",
        league="NBA",
        home_team="Boston Celtics",
        away_team="New York Knicks",
        start_time=start or NOW + timedelta(hours=5),
    )
    upsert_event(conn, event)
    prices = prices or {"pinnacle": (1.80, 2.10), "draftkings": (1.85, 2.00)}
    for book, (home, away) in prices.items():
        upsert_book_market(conn, book_market(event.event_id, book, event.home_team, home))
        upsert_book_market(conn, book_market(event.event_id, book, event.away_team, away))
    return event


def celtics_record(**overrides) -> CacheRecord:
    data = dict(
        condition_id="0xabc",
        event_title="Celtics vs. Knicks",
        question="Celtics vs. Knicks",
        team_home="Celtics",
        team_away="Knicks",
        token_id_yes="111",
        token_id_no="222",
        yes_price=0.45,
        no_price=0.55,
        volume=150_000,
        sport="NBA",
        market_type="h2h",
        event_date=NOW + timedelta(hours=5),
        date_source="start_date",
        last_price_update=NOW,
    )
    data.update(overrides)
    return CacheRecord(**data)
