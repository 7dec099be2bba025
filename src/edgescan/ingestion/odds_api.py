"""The Odds API client - events and decimal h2h prices per sport."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from edgescan.ingestion.http import http_client
from edgescan.models.event import BookMarket, Event

log = structlog.get_logger(__name__)

ODDS_API_BASE = "https://api.the-odds-api.com/v4"


def _parse_ts(value: Any) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def fetch_odds(
    sport_key: str,
    api_key: str,
    base_url: str = ODDS_API_BASE,
    regions: str = "us,uk,eu",
    markets: str = "h2h",
    client: httpx.Client | None = None,
    timeout: float = 30.0,
) -> list[dict[str, Any]]:
    """GET /v4/sports/{sport}/odds in decimal format. Raises on HTTP errors."""
    url = f"{base_url.rstrip('/')}/sports/{sport_key}/odds/"
    params = {"apiKey": api_key, "regions": regions, "markets": markets, "oddsFormat": "decimal"}
    with http_client(client, timeout) as c:
        resp = c.get(url, params=params)
        resp.raise_for_status()
        remaining = resp.headers.get("x-requests-remaining")
        data = resp.json()
    if remaining is not None:
        log.debug("odds_api_quota", sport=sport_key, remaining=remaining)
    return data if isinstance(data, list) else []


def parse_odds_event(
    raw: dict[str, Any], league: str, now: datetime | None = None
) -> tuple[Event, list[BookMarket]] | None:
    """One Odds API event -> (Event, bookmaker markets). None if unusable."""
    start = _parse_ts(raw.get("commence_time"))
    event_id = raw.get("id")
    home, away = raw.get("home_team"), raw.get("away_team")
    if not event_id or not start or not home or not away:
        return None
    now = now or datetime.now(timezone.utc)
    event = Event(
        event_id=str(event_id),
        sport=str(raw.get("sport_key") or ""),
        league=league,
        home_team=home,
        away_team=away,
        start_time=start,
        status="live" if start <= now else "upcoming",
    )
    markets: list[BookMarket] = []
    for book in raw.get("bookmakers") or []:
        book_key = book.get("key") or book.get("title")
        if not book_key:
            continue
        for mkt in book.get("markets") or []:
            market_key = mkt.get("key") or "h2h"
            updated = _parse_ts(mkt.get("last_update") or book.get("last_update"))
            for outcome in mkt.get("outcomes") or []:
                name, price = outcome.get("name"), outcome.get("price")
                try:
                    odds = float(price)
                except (TypeError, ValueError):
                    continue
                if not name or odds <= 1:
                    continue
                markets.append(
                    BookMarket(
                        market_id=BookMarket.make_id(event.event_id, book_key, market_key, name),
                        event_id=event.event_id,
                        bookmaker=book_key,
                        market_type=market_key,
                        selection=name,
                        line=outcome.get("point"),
                        odds_decimal=odds,
                        last_updated=updated,
                    )
                )
    return event, markets


def book_prices(markets: list[BookMarket], market_type: str = "h2h") -> dict[str, dict[str, float]]:
    """bookmaker -> {selection: odds} for one market type."""
    out: dict[str, dict[str, float]] = {}
    for m in markets:
        if m.market_type != market_type:
            continue
        out.setdefault(m.bookmaker, {})[m.selection] = m.odds_decimal
    return out
