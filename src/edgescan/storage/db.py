"""DuckDB connection and schema init."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
CREATE SEQUENCE IF NOT EXISTS odds_snap_seq START 1;
CREATE SEQUENCE IF NOT EXISTS prob_snap_seq START 1;

-- Sportsbook events (The Odds API)
CREATE TABLE IF NOT EXISTS events (
    event_id        VARCHAR PRIMARY KEY,
    sport           VARCHAR NOT NULL,
    league          VARCHAR,
    home_team       VARCHAR NOT NULL,
    away_team       VARCHAR NOT NULL,
    start_time      TIMESTAMP NOT NULL,
    status          VARCHAR NOT NULL,
    updated_at      TIMESTAMP NOT NULL
);

-- Latest price per bookmaker selection, keyed event:book:market:selection
CREATE TABLE IF NOT EXISTS book_markets (
    market_id       VARCHAR PRIMARY KEY,
    event_id        VARCHAR NOT NULL,
    bookmaker       VARCHAR NOT NULL,
    market_type     VARCHAR NOT NULL,
    selection       VARCHAR NOT NULL,
    line            DOUBLE,
    odds_decimal    DOUBLE NOT NULL,
    last_updated    TIMESTAMP
);

-- Append-only price history
CREATE TABLE IF NOT EXISTS odds_snapshots (
    id              BIGINT PRIMARY KEY DEFAULT nextval('odds_snap_seq'),
    event_id        VARCHAR NOT NULL,
    market_id       VARCHAR NOT NULL,
    bookmaker       VARCHAR NOT NULL,
    odds_decimal    DOUBLE NOT NULL,
    captured_at     TIMESTAMP NOT NULL
);

-- Polymarket market cache
CREATE TABLE IF NOT EXISTS polymarket_cache (
    condition_id            VARCHAR PRIMARY KEY,
    event_title             VARCHAR,
    question                VARCHAR,
    slug                    VARCHAR,
    team_home               VARCHAR,
    team_away               VARCHAR,
    team_home_normalized    VARCHAR,
    team_away_normalized    VARCHAR,
    token_id_yes            VARCHAR,
    token_id_no             VARCHAR,
    yes_price               DOUBLE,
    no_price                DOUBLE,
    volume                  DOUBLE,
    liquidity               DOUBLE,
    sport                   VARCHAR,
    market_type             VARCHAR,
    threshold               DOUBLE,
    event_date              TIMESTAMP,
    date_source             VARCHAR,
    is_placeholder_time     BOOLEAN DEFAULT FALSE,
    source                  VARCHAR,
    status                  VARCHAR NOT NULL,
    last_price_update       TIMESTAMP,
    updated_at              TIMESTAMP NOT NULL
);

-- Tracked-event lifecycle (monitored / watching / active / confirmed / dropped / signal / expired)
CREATE TABLE IF NOT EXISTS watch_state (
    event_key               VARCHAR PRIMARY KEY,
    event_name              VARCHAR,
    league                  VARCHAR,
    outcome                 VARCHAR,
    state                   VARCHAR NOT NULL,
    commence_time           TIMESTAMP,
    initial_probability     DOUBLE,
    peak_probability        DOUBLE,
    current_probability     DOUBLE,
    movement_pct            DOUBLE,
    velocity                DOUBLE,
    samples_since_hold      INTEGER DEFAULT 0,
    hold_start_at           TIMESTAMP,
    active_until            TIMESTAMP,
    polymarket_condition_id VARCHAR,
    polymarket_question     VARCHAR,
    polymarket_price        DOUBLE,
    polymarket_volume       DOUBLE,
    polymarket_matched      BOOLEAN DEFAULT FALSE,
    bookmaker_event_id      VARCHAR,
    updated_at              TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS probability_snapshots (
    id                  BIGINT PRIMARY KEY DEFAULT nextval('prob_snap_seq'),
    event_key           VARCHAR NOT NULL,
    outcome             VARCHAR NOT NULL,
    fair_probability    DOUBLE NOT NULL,
    captured_at         TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS signals (
    signal_id               VARCHAR PRIMARY KEY,
    event_name              VARCHAR NOT NULL,
    sport                   VARCHAR,
    market_type             VARCHAR,
    selection               VARCHAR NOT NULL,
    condition_id            VARCHAR,
    polymarket_price        DOUBLE,
    bookmaker_probability   DOUBLE,
    edge_percent            DOUBLE,
    confidence_score        INTEGER,
    urgency                 VARCHAR,
    confirming_books        INTEGER,
    volume                  DOUBLE,
    commence_time           TIMESTAMP,
    execution               JSON,
    kelly                   JSON,
    factors                 JSON,
    status                  VARCHAR NOT NULL,
    created_at              TIMESTAMP NOT NULL,
    updated_at              TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS bet_log (
    bet_id          VARCHAR PRIMARY KEY,
    description     VARCHAR NOT NULL,
    selection       VARCHAR NOT NULL,
    odds            DOUBLE NOT NULL,
    stake           DOUBLE NOT NULL,
    status          VARCHAR NOT NULL,
    profit_loss     DOUBLE,
    signal_id       VARCHAR,
    placed_at       TIMESTAMP NOT NULL,
    settled_at      TIMESTAMP
);

-- Manual team-name corrections, consulted before built-in team maps
CREATE TABLE IF NOT EXISTS team_mappings (
    source_name     VARCHAR NOT NULL,
    sport_code      VARCHAR NOT NULL,
    canonical_name  VARCHAR NOT NULL,
    created_at      TIMESTAMP NOT NULL,
    PRIMARY KEY (source_name, sport_code)
);

CREATE TABLE IF NOT EXISTS match_failures (
    condition_id    VARCHAR PRIMARY KEY,
    event_title     VARCHAR,
    league          VARCHAR,
    team_a          VARCHAR,
    team_b          VARCHAR,
    failure_reason  VARCHAR NOT NULL,
    occurrences     INTEGER NOT NULL,
    first_seen      TIMESTAMP NOT NULL,
    last_seen       TIMESTAMP NOT NULL
);

-- Runtime overrides of [scan] / [bankroll] settings
CREATE TABLE IF NOT EXISTS scan_config (
    key             VARCHAR PRIMARY KEY,
    value           JSON NOT NULL,
    updated_at      TIMESTAMP NOT NULL
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close it.
    Pass ":memory:" for a throwaway in-process database."""
    if str(db_path) == ":memory:":
        return duckdb.connect(":memory:")
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables and sequences if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db(dt: datetime | None) -> datetime | None:
    """Aware -> naive UTC for TIMESTAMP columns."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def from_db(dt: Any) -> datetime | None:
    """Naive UTC from TIMESTAMP columns -> aware UTC."""
    if dt is None or not isinstance(dt, datetime):
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def rows_as_dicts(conn: DuckDBPyConnection, sql: str, params: list[Any] | None = None) -> list[dict[str, Any]]:
    """Run a query and return rows as dicts keyed by column name."""
    result = conn.execute(sql, params or [])
    cols = [d[0] for d in result.description]
    return [dict(zip(cols, r)) for r in result.fetchall()]
