"""Signal persistence."""

from __future__ import annotations

import json
from datetime import datetime
from typing import TYPE_CHECKING, Any

from edgescan.models.signal import ExecutionAnalysis, KellyResult, Signal
from edgescan.storage.db import from_db, rows_as_dicts, to_db, utcnow

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def upsert_signal(conn: DuckDBPyConnection, signal: Signal) -> None:
    now = utcnow()
    conn.execute(
        """
        INSERT INTO signals (
            signal_id, event_name, sport, market_type, selection, condition_id, polymarket_price,
            bookmaker_probability, edge_percent, confidence_score, urgency, confirming_books, volume,
            commence_time, execution, kelly, factors, status, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (signal_id) DO UPDATE SET
            polymarket_price = excluded.polymarket_price,
            bookmaker_probability = excluded.bookmaker_probability,
            edge_percent = excluded.edge_percent,
            confidence_score = excluded.confidence_score,
            urgency = excluded.urgency,
            confirming_books = excluded.confirming_books,
            volume = excluded.volume,
            commence_time = excluded.commence_time,
            execution = excluded.execution,
            kelly = excluded.kelly,
            factors = excluded.factors,
            status = excluded.status,
            updated_at = excluded.updated_at
        """,
        [
            signal.signal_id,
            signal.event_name,
            signal.sport,
            signal.market_type,
            signal.selection,
            signal.condition_id,
            signal.polymarket_price,
            signal.bookmaker_probability,
            signal.edge_percent,
            signal.confidence_score,
            signal.urgency.value,
            signal.confirming_books,
            signal.volume,
            to_db(signal.commence_time),
            signal.execution.model_dump_json() if signal.execution else None,
            signal.kelly.model_dump_json() if signal.kelly else None,
            json.dumps(signal.factors, default=str),
            signal.status,
            to_db(signal.created_at or now),
            to_db(now),
        ],
    )


def _loads(value: Any) -> Any:
    if value is None:
        return None
    return json.loads(value) if isinstance(value, str) else value


def _signal(row: dict[str, Any]) -> Signal:
    execution = _loads(row["execution"])
    kelly = _loads(row["kelly"])
    return Signal(
        signal_id=row["signal_id"],
        event_name=row["event_name"],
        sport=row["sport"],
        market_type=row["market_type"] or "h2h",
        selection=row["selection"],
        condition_id=row["condition_id"],
        polymarket_price=row["polymarket_price"] or 0.0,
        bookmaker_probability=row["bookmaker_probability"] or 0.0,
        edge_percent=row["edge_percent"] or 0.0,
        confidence_score=row["confidence_score"] or 0,
        urgency=row["urgency"] or "normal",
        confirming_books=row["confirming_books"] or 0,
        volume=row["volume"] or 0.0,
        commence_time=from_db(row["commence_time"]),
        execution=ExecutionAnalysis(**execution) if execution else None,
        kelly=KellyResult(**kelly) if kelly else None,
        status=row["status"],
        factors=_loads(row["factors"]) or {},
        created_at=from_db(row["created_at"]),
    )


def list_signals(conn: DuckDBPyConnection, status: str | None = "active", limit: int = 100) -> list[Signal]:
    if status:
        rows = rows_as_dicts(
            conn,
            "SELECT * FROM signals WHERE status = ? ORDER BY edge_percent DESC LIMIT ?",
            [status, limit],
        )
    else:
        rows = rows_as_dicts(conn, "SELECT * FROM signals ORDER BY created_at DESC LIMIT ?", [limit])
    return [_signal(r) for r in rows]


def get_signal(conn: DuckDBPyConnection, signal_id: str) -> Signal | None:
    rows = rows_as_dicts(conn, "SELECT * FROM signals WHERE signal_id = ?", [signal_id])
    return _signal(rows[0]) if rows else None


def set_signal_status(conn: DuckDBPyConnection, signal_id: str, status: str) -> bool:
    if get_signal(conn, signal_id) is None:
        return False
    conn.execute(
        "UPDATE signals SET status = ?, updated_at = ? WHERE signal_id = ?",
        [status, to_db(utcnow()), signal_id],
    )
    return True


def expire_signals(conn: DuckDBPyConnection, now: datetime | None = None) -> int:
    """Active signals whose event has started become expired."""
    cutoff = to_db(now or utcnow())
    where = "status = 'active' AND commence_time < ?"
    row = conn.execute(f"SELECT COUNT(*) FROM signals WHERE {where}", [cutoff]).fetchone()
    count = int(row[0]) if row else 0
    if count:
        conn.execute(f"UPDATE signals SET status = 'expired', updated_at = ? WHERE {where}", [cutoff, cutoff])
    return count
