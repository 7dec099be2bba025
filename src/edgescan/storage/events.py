"""Sportsbook events, latest bookmaker prices and odds history."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from edgescan.models.event import BookMarket, Event
from edgescan.storage.db import from_db, rows_as_dicts, to_db, utcnow

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def upsert_event(conn: DuckDBPyConnection, event: Event) -> None:
    conn.execute(
        """
        INSERT INTO events (event_id, sport, league, home_team, away_team, start_time, status, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (event_id) DO UPDATE SET
            sport = excluded.sport,
            league = excluded.league,
            home_team = excluded.home_team,
            away_team = excluded.away_team,
            start_time = excluded.start_time,
            status = excluded.status,
            updated_at = excluded.updated_at
        """,
        [
            event.event_id,
            event.sport,
            event.league,
            event.home_team,
            event.away_team,
            to_db(event.start_time),
            event.status.value,
            to_db(utcnow()),
        ],
    )


def upsert_book_market(conn: DuckDBPyConnection, market: BookMarket) -> None:
    conn.execute(
        """
        INSERT INTO book_markets (market_id, event_id, bookmaker, market_type, selection, line, odds_decimal, last_updated)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (market_id) DO UPDATE SET
            line = excluded.line,
            odds_decimal = excluded.odds_decimal,
            last_updated = excluded.last_updated
        """,
        [
            market.market_id,
            market.event_id,
            market.bookmaker,
            market.market_type,
            market.selection,
            market.line,
            market.odds_decimal,
            to_db(market.last_updated or utcnow()),
        ],
    )


def append_odds_snapshot(conn: DuckDBPyConnection, market: BookMarket, captured_at: datetime | None = None) -> None:
    conn.execute(
        "INSERT INTO odds_snapshots (event_id, market_id, bookmaker, odds_decimal, captured_at) VALUES (?, ?, ?, ?, ?)",
        [market.event_id, market.market_id, market.bookmaker, market.odds_decimal, to_db(captured_at or utcnow())],
    )


def _event(row: dict[str, Any]) -> Event:
    return Event(
        event_id=row["event_id"],
        sport=row["sport"],
        league=row["league"] or "",
        home_team=row["home_team"],
        away_team=row["away_team"],
        start_time=from_db(row["start_time"]),
        status=row["status"],
    )


def list_events(
    conn: DuckDBPyConnection,
    *,
    league: str | None = None,
    start_after: datetime | None = None,
    start_before: datetime | None = None,
) -> list[Event]:
    conditions = ["1=1"]
    params: list[Any] = []
    if league:
        conditions.append("UPPER(league) = UPPER(?)")
        params.append(league)
    if start_after:
        conditions.append("start_time >= ?")
        params.append(to_db(start_after))
    if start_before:
        conditions.append("start_time <= ?")
        params.append(to_db(start_before))
    rows = rows_as_dicts(
        conn,
        f"SELECT * FROM events WHERE {' AND '.join(conditions)} ORDER BY start_time",
        params,
    )
    return [_event(r) for r in rows]


def get_event(conn: DuckDBPyConnection, event_id: str) -> Event | None:
    rows = rows_as_dicts(conn, "SELECT * FROM events WHERE event_id = ?", [event_id])
    return _event(rows[0]) if rows else None


def list_book_markets(
    conn: DuckDBPyConnection, event_id: str, market_type: str | None = None
) -> list[BookMarket]:
    sql = "SELECT * FROM book_markets WHERE event_id = ?"
    params: list[Any] = [event_id]
    if market_type:
        sql += " AND market_type = ?"
        params.append(market_type)
    rows = rows_as_dicts(conn, sql + " ORDER BY bookmaker, selection", params)
    return [
        BookMarket(
            market_id=r["market_id"],
            event_id=r["event_id"],
            bookmaker=r["bookmaker"],
            market_type=r["market_type"],
            selection=r["selection"],
            line=r["line"],
            odds_decimal=r["odds_decimal"],
            last_updated=from_db(r["last_updated"]),
        )
        for r in rows
    ]


def count_odds_snapshots(conn: DuckDBPyConnection, event_id: str | None = None) -> int:
    if event_id:
        row = conn.execute("SELECT COUNT(*) FROM odds_snapshots WHERE event_id = ?", [event_id]).fetchone()
    else:
        row = conn.execute("SELECT COUNT(*) FROM odds_snapshots").fetchone()
    return int(row[0]) if row else 0
