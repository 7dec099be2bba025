"""Odds ingestion: fetch per enabled sport, upsert events and prices, append snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from edgescan.ingestion.http import http_client
from edgescan.ingestion.odds_api import fetch_odds, parse_odds_event
from edgescan.sports import league_for_odds_key
from edgescan.storage.db import utcnow
from edgescan.storage.events import append_odds_snapshot, upsert_book_market, upsert_event

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from edgescan.config import Settings

log = structlog.get_logger(__name__)


def ingest_odds(
    conn: DuckDBPyConnection,
    settings: Settings,
    sports: list[str] | None = None,
    client: httpx.Client | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Fetch odds for each sport key and store them.

    A sport whose request fails is logged and skipped. A missing API key is a
    configuration error and raises ValueError.
    """
    api_key = settings.odds_api_key
    if not api_key:
        raise ValueError("ODDS_API_KEY is not configured")
    now = now or utcnow()
    sport_keys = sports or settings.enabled_sports
    summary: dict[str, Any] = {"sports": 0, "events": 0, "markets": 0, "snapshots": 0, "failed_sports": []}

    with http_client(client, settings.http_timeout_sec) as c:
        for sport_key in sport_keys:
            league = league_for_odds_key(sport_key) or sport_key
            try:
                raw_events = fetch_odds(
                    sport_key,
                    api_key,
                    base_url=settings.odds_api_base,
                    regions=settings.odds_regions,
                    markets=settings.odds_markets,
                    client=c,
                )
            except (httpx.HTTPError, ValueError) as e:
                log.warning("odds_fetch_failed", sport=sport_key, error=str(e))
                summary["failed_sports"].append(sport_key)
                continue

            summary["sports"] += 1
            for raw in raw_events:
                parsed = parse_odds_event(raw, league, now)
                if parsed is None:
                    continue
                event, markets = parsed
                upsert_event(conn, event)
                summary["events"] += 1
                for market in markets:
                    upsert_book_market(conn, market)
                    append_odds_snapshot(conn, market, now)
                summary["markets"] += len(markets)
                summary["snapshots"] += len(markets)
            log.info("odds_sport_ingested", sport=sport_key, league=league, events=len(raw_events))

    log.info("odds_ingest_complete", **{k: v for k, v in summary.items() if k != "failed_sports"})
    return summary
