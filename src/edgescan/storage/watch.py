"""Watch-state rows and fair-probability snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from edgescan.models.watch import WatchState, WatchStatus
from edgescan.storage.db import from_db, rows_as_dicts, to_db, utcnow

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_COLUMNS = list(WatchState.model_fields)
_TIME_COLUMNS = {"commence_time", "hold_start_at", "active_until"}


def save_watch(conn: DuckDBPyConnection, state: WatchState) -> None:
    """Insert or fully overwrite a watch row."""
    data = state.model_dump(mode="python")
    data["state"] = state.state.value
    values = [to_db(data[c]) if c in _TIME_COLUMNS else data[c] for c in _COLUMNS]
    updates = ", ".join(f"{c} = excluded.{c}" for c in _COLUMNS[1:] + ["updated_at"])
    conn.execute(
        f"""
        INSERT INTO watch_state ({", ".join(_COLUMNS)}, updated_at)
        VALUES ({", ".join("?" for _ in range(len(_COLUMNS) + 1))})
        ON CONFLICT (event_key) DO UPDATE SET {updates}
        """,
        values + [to_db(utcnow())],
    )


def upsert_monitored(
    conn: DuckDBPyConnection,
    event_key: str,
    event_name: str,
    commence_time: datetime | None,
    condition_id: str,
    question: str,
    yes_price: float,
    volume: float,
    league: str | None = None,
) -> None:
    """Create or refresh a 'monitored' row for a synced Polymarket market.

    Rows already past 'monitored' keep their state; only the Polymarket side is refreshed.
    """
    now = to_db(utcnow())
    conn.execute(
        """
        INSERT INTO watch_state (
            event_key, event_name, league, state, commence_time, polymarket_condition_id,
            polymarket_question, polymarket_price, polymarket_volume, polymarket_matched,
            samples_since_hold, updated_at
        ) VALUES (?, ?, ?, 'monitored', ?, ?, ?, ?, ?, FALSE, 0, ?)
        ON CONFLICT (event_key) DO UPDATE SET
            event_name = excluded.event_name,
            league = excluded.league,
            commence_time = excluded.commence_time,
            polymarket_question = excluded.polymarket_question,
            polymarket_price = excluded.polymarket_price,
            polymarket_volume = excluded.polymarket_volume,
            updated_at = excluded.updated_at
        """,
        [event_key, event_name, league, to_db(commence_time), condition_id, question, yes_price, volume, now],
    )


def _state(row: dict[str, Any]) -> WatchState:
    data = {c: row.get(c) for c in _COLUMNS}
    for c in _TIME_COLUMNS:
        data[c] = from_db(data[c])
    data["samples_since_hold"] = data["samples_since_hold"] or 0
    data["polymarket_matched"] = bool(data["polymarket_matched"])
    return WatchState(**data)


def get_watch(conn: DuckDBPyConnection, event_key: str) -> WatchState | None:
    rows = rows_as_dicts(conn, "SELECT * FROM watch_state WHERE event_key = ?", [event_key])
    return _state(rows[0]) if rows else None


def list_watch(conn: DuckDBPyConnection, states: list[WatchStatus] | None = None) -> list[WatchState]:
    if states:
        marks = ", ".join("?" for _ in states)
        rows = rows_as_dicts(
            conn,
            f"SELECT * FROM watch_state WHERE state IN ({marks}) ORDER BY commence_time NULLS LAST",
            [s.value for s in states],
        )
    else:
        rows = rows_as_dicts(conn, "SELECT * FROM watch_state ORDER BY commence_time NULLS LAST")
    return [_state(r) for r in rows]


def count_state(conn: DuckDBPyConnection, state: WatchStatus) -> int:
    row = conn.execute("SELECT COUNT(*) FROM watch_state WHERE state = ?", [state.value]).fetchone()
    return int(row[0]) if row else 0


def expire_started(conn: DuckDBPyConnection, now: datetime | None = None) -> int:
    """Expire monitored/watching rows whose start time has passed."""
    cutoff = to_db(now or utcnow())
    where = "state IN ('monitored', 'watching') AND commence_time < ?"
    row = conn.execute(f"SELECT COUNT(*) FROM watch_state WHERE {where}", [cutoff]).fetchone()
    count = int(row[0]) if row else 0
    if count:
        conn.execute(f"UPDATE watch_state SET state = 'expired', updated_at = ? WHERE {where}", [cutoff, cutoff])
    return count


def add_probability_snapshot(
    conn: DuckDBPyConnection, event_key: str, outcome: str, probability: float, at: datetime | None = None
) -> None:
    conn.execute(
        "INSERT INTO probability_snapshots (event_key, outcome, fair_probability, captured_at) VALUES (?, ?, ?, ?)",
        [event_key, outcome, probability, to_db(at or utcnow())],
    )


def probability_history(
    conn: DuckDBPyConnection, event_key: str, outcome: str, since: datetime | None = None
) -> list[tuple[datetime, float]]:
    """(captured_at, probability) oldest first."""
    sql = "SELECT captured_at, fair_probability FROM probability_snapshots WHERE event_key = ? AND outcome = ?"
    params: list[Any] = [event_key, outcome]
    if since is not None:
        sql += " AND captured_at >= ?"
        params.append(to_db(since))
    rows = conn.execute(sql + " ORDER BY captured_at", params).fetchall()
    return [(from_db(r[0]), float(r[1])) for r in rows]


def cleanup_snapshots(conn: DuckDBPyConnection, before: datetime) -> int:
    cutoff = to_db(before)
    row = conn.execute("SELECT COUNT(*) FROM probability_snapshots WHERE captured_at < ?", [cutoff]).fetchone()
    count = int(row[0]) if row else 0
    if count:
        conn.execute("DELETE FROM probability_snapshots WHERE captured_at < ?", [cutoff])
    return count


def mark_matched(conn: DuckDBPyConnection, event_key: str, bookmaker_event_id: str) -> None:
    conn.execute(
        "UPDATE watch_state SET polymarket_matched = TRUE, bookmaker_event_id = ?, updated_at = ? WHERE event_key = ?",
        [bookmaker_event_id, to_db(utcnow()), event_key],
    )
