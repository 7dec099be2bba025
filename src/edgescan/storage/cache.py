"""Polymarket cache persistence."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from edgescan.models.cache import CacheRecord
from edgescan.storage.db import from_db, rows_as_dicts, to_db, utcnow

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_COLUMNS = [
    "condition_id", "event_title", "question", "slug", "team_home", "team_away",
    "team_home_normalized", "team_away_normalized", "token_id_yes", "token_id_no",
    "yes_price", "no_price", "volume", "liquidity", "sport", "market_type", "threshold",
    "event_date", "date_source", "is_placeholder_time", "source", "status", "last_price_update",
]
_TIME_COLUMNS = {"event_date", "last_price_update"}


def upsert_cache_record(conn: DuckDBPyConnection, record: CacheRecord) -> None:
    """Insert or overwrite one cache row (last write wins)."""
    data = record.model_dump()
    values = [to_db(data[c]) if c in _TIME_COLUMNS else data[c] for c in _COLUMNS]
    placeholders = ", ".join("?" for _ in range(len(_COLUMNS) + 1))
    updates = ",\n            ".join(f"{c} = excluded.{c}" for c in _COLUMNS[1:] + ["updated_at"])
    conn.execute(
        f"""
        INSERT INTO polymarket_cache ({", ".join(_COLUMNS)}, updated_at)
        VALUES ({placeholders})
        ON CONFLICT (condition_id) DO UPDATE SET
            {updates}
        """,
        values + [to_db(utcnow())],
    )


def _record(row: dict[str, Any]) -> CacheRecord:
    data = {c: row.get(c) for c in _COLUMNS}
    for c in _TIME_COLUMNS:
        data[c] = from_db(data[c])
    data["yes_price"] = data["yes_price"] if data["yes_price"] is not None else 0.5
    data["no_price"] = data["no_price"] if data["no_price"] is not None else 0.5
    data["volume"] = data["volume"] or 0.0
    data["liquidity"] = data["liquidity"] or 0.0
    data["is_placeholder_time"] = bool(data["is_placeholder_time"])
    return CacheRecord(**data)


def get_cache_record(conn: DuckDBPyConnection, condition_id: str) -> CacheRecord | None:
    rows = rows_as_dicts(conn, "SELECT * FROM polymarket_cache WHERE condition_id = ?", [condition_id])
    return _record(rows[0]) if rows else None


def list_cache(
    conn: DuckDBPyConnection,
    *,
    status: str | None = "active",
    sport: str | None = None,
    market_type: str | None = None,
    with_tokens: bool = False,
    limit: int = 500,
) -> list[CacheRecord]:
    conditions = ["1=1"]
    params: list[Any] = []
    if status:
        conditions.append("status = ?")
        params.append(status)
    if sport:
        conditions.append("UPPER(sport) = UPPER(?)")
        params.append(sport)
    if market_type:
        conditions.append("market_type = ?")
        params.append(market_type)
    if with_tokens:
        conditions.append("token_id_yes IS NOT NULL")
    params.append(limit)
    rows = rows_as_dicts(
        conn,
        f"""
        SELECT * FROM polymarket_cache
        WHERE {" AND ".join(conditions)}
        ORDER BY event_date NULLS LAST, volume DESC
        LIMIT ?
        """,
        params,
    )
    return [_record(r) for r in rows]


def update_prices(
    conn: DuckDBPyConnection, condition_id: str, yes_price: float, no_price: float, at: datetime | None = None
) -> None:
    now = to_db(at or utcnow())
    conn.execute(
        """
        UPDATE polymarket_cache
        SET yes_price = ?, no_price = ?, last_price_update = ?, updated_at = ?
        WHERE condition_id = ?
        """,
        [yes_price, no_price, now, now, condition_id],
    )


def expire_cache(conn: DuckDBPyConnection, now: datetime | None = None) -> int:
    """Mark active rows whose event date has passed as expired. Returns count."""
    cutoff = to_db(now or utcnow())
    row = conn.execute(
        "SELECT COUNT(*) FROM polymarket_cache WHERE status = 'active' AND event_date < ?", [cutoff]
    ).fetchone()
    count = int(row[0]) if row else 0
    if count:
        conn.execute(
            "UPDATE polymarket_cache SET status = 'expired', updated_at = ? WHERE status = 'active' AND event_date < ?",
            [cutoff, cutoff],
        )
    return count


def cache_stats(conn: DuckDBPyConnection) -> dict[str, Any]:
    rows = rows_as_dicts(
        conn,
        """
        SELECT status, COUNT(*) AS n, COUNT(token_id_yes) AS with_tokens
        FROM polymarket_cache GROUP BY status
        """,
    )
    return {r["status"]: {"count": r["n"], "with_tokens": r["with_tokens"]} for r in rows}
