"""Firecrawl fallback: scraped Polymarket game prices into the cache."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from edgescan.ingestion.firecrawl import ScrapedGame, scrape_sport_games
from edgescan.ingestion.http import http_client
from edgescan.models.cache import CacheRecord
from edgescan.parsing.teams import normalize_team_name
from edgescan.storage.cache import upsert_cache_record
from edgescan.storage.db import utcnow

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from edgescan.config import Settings

log = structlog.get_logger(__name__)

DEFAULT_LEAGUES = ["NBA", "NFL", "NHL", "NCAA"]


def scraped_record(game: ScrapedGame, now: datetime) -> CacheRecord:
    """Team 1 is the yes side. Scraped rows carry no tokens and no date."""
    return CacheRecord(
        condition_id=game.condition_id,
        event_title=f"{game.team1_name} vs {game.team2_name}",
        question=f"Will {game.team1_name} beat {game.team2_name}?",
        team_home=game.team1_name,
        team_away=game.team2_name,
        team_home_normalized=normalize_team_name(game.team1_name),
        team_away_normalized=normalize_team_name(game.team2_name),
        yes_price=game.team1_price,
        no_price=game.team2_price,
        sport=game.sport,
        market_type="h2h",
        source="firecrawl",
        status="active",
        last_price_update=now,
    )


def scrape_polymarket(
    conn: DuckDBPyConnection,
    settings: Settings,
    leagues: list[str] | None = None,
    client: httpx.Client | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    api_key = settings.firecrawl_api_key
    if not api_key:
        raise ValueError("FIRECRAWL_API_KEY is not configured")
    now = now or utcnow()
    summary: dict[str, Any] = {"leagues": {}, "upserted": 0, "failed_leagues": []}
    with http_client(client, 60.0) as c:
        for league in leagues or DEFAULT_LEAGUES:
            try:
                games = scrape_sport_games(league, api_key, settings.firecrawl_api_base, client=c)
            except (httpx.HTTPError, ValueError) as e:
                log.warning("firecrawl_scrape_failed", league=league, error=str(e))
                summary["failed_leagues"].append(league)
                continue
            for game in games:
                upsert_cache_record(conn, scraped_record(game, now))
            summary["leagues"][league] = len(games)
            summary["upserted"] += len(games)
    log.info("firecrawl_scrape_complete", upserted=summary["upserted"], failed=len(summary["failed_leagues"]))
    return summary
