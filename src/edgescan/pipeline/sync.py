"""Polymarket sync: Gamma sports events -> cache rows + monitored watch rows."""

from __future__ import annotations

import time
from collections import Counter
from datetime import datetime
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from edgescan.ingestion.http import http_client
from edgescan.ingestion.polymarket.clob import get_market_tokens
from edgescan.ingestion.polymarket.gamma import fetch_sports_events
from edgescan.models.cache import CacheRecord
from edgescan.parsing.dates import ScheduleLookup, resolve_event_date, within_window
from edgescan.parsing.markets import (
    detect_market_type,
    extract_threshold,
    extract_token_ids,
    is_blocked,
    parse_outcome_prices,
    select_h2h_market,
)
from edgescan.parsing.teams import extract_team_names, normalize_team_name
from edgescan.pipeline.schedule import build_schedule_lookup
from edgescan.sports import GENERIC_SPORT, detect_sport
from edgescan.storage.cache import expire_cache, upsert_cache_record
from edgescan.storage.db import utcnow
from edgescan.storage.watch import expire_started, upsert_monitored

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from edgescan.config import Settings

log = structlog.get_logger(__name__)


def _float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


class _Skip(Exception):
    """Event filtered out; the argument is the filter_stats bucket."""


def build_cache_record(
    event: dict[str, Any],
    allowlist: list[str],
    window_hours: float,
    now: datetime,
    schedule_lookups: dict[str, ScheduleLookup | None],
    conn: DuckDBPyConnection | None = None,
) -> CacheRecord:
    """
    Turn one Gamma event into a cache record, or raise _Skip naming the filter
    that rejected it. Token ids are left unset when Gamma omits them.
    """
    markets = event.get("markets") or []
    if not markets:
        raise _Skip("no_markets")
    market = select_h2h_market(markets)
    if market is None:
        raise _Skip("no_h2h_market")

    title = str(event.get("title") or "")
    question = str(market.get("question") or event.get("question") or "")
    if is_blocked(f"{title} {question}"):
        raise _Skip("blocked")

    sport = detect_sport(title, question) or GENERIC_SPORT
    if allowlist and sport.upper() not in {s.upper() for s in allowlist}:
        raise _Skip("sport_not_allowed")

    team_home, team_away = extract_team_names(title, question)

    if sport not in schedule_lookups:
        schedule_lookups[sport] = build_schedule_lookup(conn, sport, now) if conn is not None else None
    resolved = resolve_event_date(event, market, (team_home, team_away), schedule_lookups[sport], now)
    if resolved is None:
        raise _Skip("no_date")
    if not within_window(resolved.value, window_hours, now):
        raise _Skip("outside_window")

    yes_price, no_price = parse_outcome_prices(market)
    token_yes, token_no = extract_token_ids(market)
    return CacheRecord(
        condition_id=str(market.get("conditionId") or market.get("id") or event.get("id")),
        event_title=title,
        question=question,
        slug=event.get("slug"),
        team_home=team_home,
        team_away=team_away,
        team_home_normalized=normalize_team_name(team_home) if team_home else None,
        team_away_normalized=normalize_team_name(team_away) if team_away else None,
        token_id_yes=token_yes,
        token_id_no=token_no,
        yes_price=yes_price,
        no_price=no_price,
        volume=_float(market.get("volume") or event.get("volume")),
        liquidity=_float(market.get("liquidity") or event.get("liquidity")),
        sport=sport,
        market_type=detect_market_type(question, market.get("sportsMarketType")),
        threshold=extract_threshold(question),
        event_date=resolved.value,
        date_source=resolved.source,
        is_placeholder_time=resolved.is_placeholder,
        source="gamma",
        status="active",
        last_price_update=now,
    )


def sync_polymarket(
    conn: DuckDBPyConnection,
    settings: Settings,
    client: httpx.Client | None = None,
    now: datetime | None = None,
    window_hours: float | None = None,
    sports: list[str] | None = None,
) -> dict[str, Any]:
    """
    Pull active sports events from Gamma, keep those that pass the filters,
    upsert them into the cache and create monitored watch rows. Rows whose
    start time has passed are expired afterwards.
    """
    started = time.monotonic()
    now = now or utcnow()
    window = window_hours if window_hours is not None else settings.window_hours
    allowlist = sports if sports is not None else settings.sport_allowlist

    with http_client(client, settings.http_timeout_sec) as c:
        events = fetch_sports_events(
            settings.gamma_api_base,
            page_size=settings.page_size,
            max_events=settings.max_events,
            client=c,
        )

        filter_stats: Counter[str] = Counter()
        schedule_lookups: dict[str, ScheduleLookup | None] = {}
        qualifying = upserted = monitored = 0
        for event in events:
            try:
                record = build_cache_record(event, allowlist, window, now, schedule_lookups, conn)
            except _Skip as skip:
                filter_stats[str(skip.args[0])] += 1
                continue
            qualifying += 1
            try:
                if not record.token_id_yes:
                    token_yes, token_no = get_market_tokens(record.condition_id, settings.clob_api_base, client=c)
                    record = record.model_copy(update={"token_id_yes": token_yes, "token_id_no": token_no})
                upsert_cache_record(conn, record)
                upserted += 1
                upsert_monitored(
                    conn,
                    event_key=f"poly_{record.condition_id}",
                    event_name=record.event_title or record.question[:100],
                    commence_time=record.event_date,
                    condition_id=record.condition_id,
                    question=record.question,
                    yes_price=record.yes_price,
                    volume=record.volume,
                    league=record.sport,
                )
                monitored += 1
            except Exception as e:
                log.warning("poly_sync_event_failed", condition_id=record.condition_id, error=str(e))

    expired = expire_started(conn, now)
    expired_cache = expire_cache(conn, now)
    summary = {
        "total_fetched": len(events),
        "qualifying_events": qualifying,
        "upserted_to_cache": upserted,
        "now_monitored": monitored,
        "expired": expired,
        "expired_cache": expired_cache,
        "filter_stats": dict(filter_stats),
        "duration_ms": int((time.monotonic() - started) * 1000),
    }
    log.info("poly_sync_complete", **{k: v for k, v in summary.items() if k != "filter_stats"})
    return summary
