"""CLOB price refresh for cached markets."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from edgescan.ingestion.polymarket.clob import fetch_prices, validate_price
from edgescan.storage.cache import list_cache, update_prices
from edgescan.storage.db import utcnow

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from edgescan.config import Settings

log = structlog.get_logger(__name__)

DEVIATION_LOG_THRESHOLD = 0.10


def relative_deviation(old: float, new: float) -> float:
    if old <= 0:
        return 0.0
    return abs(new - old) / old


def refresh_prices(
    conn: DuckDBPyConnection,
    settings: Settings,
    client: httpx.Client | None = None,
    now: datetime | None = None,
    sport: str | None = None,
) -> dict[str, Any]:
    """
    Re-price every active cached market that has a yes token.

    A price outside [0.05, 0.95] keeps the cached value. Accepted prices
    overwrite yes and set no to 1 - yes. Large moves are only logged.
    """
    now = now or utcnow()
    records = list_cache(conn, sport=sport, with_tokens=True, limit=10_000)
    prices = fetch_prices(
        [r.token_id_yes for r in records if r.token_id_yes],
        settings.clob_api_base,
        batch_size=settings.price_batch_size,
        batch_delay_sec=settings.batch_delay_sec,
        client=client,
        timeout=settings.http_timeout_sec,
    )

    summary = {"checked": len(records), "updated": 0, "rejected": 0, "missing": 0, "deviations": 0}
    for record in records:
        raw = prices.get(record.token_id_yes or "")
        if raw is None:
            summary["missing"] += 1
            continue
        price = validate_price(raw)
        if price is None:
            summary["rejected"] += 1
            log.debug("clob_price_rejected", condition_id=record.condition_id, price=raw)
            continue
        if relative_deviation(record.yes_price, price) > DEVIATION_LOG_THRESHOLD:
            summary["deviations"] += 1
            log.info(
                "clob_price_deviation",
                condition_id=record.condition_id,
                cached=record.yes_price,
                live=price,
            )
        update_prices(conn, record.condition_id, price, round(1 - price, 4), now)
        summary["updated"] += 1

    log.info("price_refresh_complete", **summary)
    return summary
