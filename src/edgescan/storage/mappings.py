"""Team-name overrides, match-failure log and runtime scan config."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from edgescan.parsing.teams import normalize_raw
from edgescan.storage.db import rows_as_dicts, to_db, utcnow

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def add_team_mapping(conn: DuckDBPyConnection, source_name: str, sport_code: str, canonical_name: str) -> None:
    conn.execute(
        """
        INSERT INTO team_mappings (source_name, sport_code, canonical_name, created_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT (source_name, sport_code) DO UPDATE SET canonical_name = excluded.canonical_name
        """,
        [normalize_raw(source_name), sport_code.lower(), canonical_name, to_db(utcnow())],
    )


def load_user_mappings(conn: DuckDBPyConnection, sport_code: str) -> dict[str, str]:
    """normalized source name -> canonical name for one sport."""
    rows = conn.execute(
        "SELECT source_name, canonical_name FROM team_mappings WHERE sport_code = ?", [sport_code.lower()]
    ).fetchall()
    return {r[0]: r[1] for r in rows}


def list_team_mappings(conn: DuckDBPyConnection) -> list[dict[str, Any]]:
    return rows_as_dicts(conn, "SELECT * FROM team_mappings ORDER BY sport_code, source_name")


def record_match_failure(
    conn: DuckDBPyConnection,
    condition_id: str,
    event_title: str,
    league: str | None,
    team_a: str | None,
    team_b: str | None,
    reason: str,
) -> None:
    """Insert or bump the occurrence count of an unmatched market."""
    now = to_db(utcnow())
    conn.execute(
        """
        INSERT INTO match_failures (condition_id, event_title, league, team_a, team_b, failure_reason, occurrences, first_seen, last_seen)
        VALUES (?, ?, ?, ?, ?, ?, 1, ?, ?)
        ON CONFLICT (condition_id) DO UPDATE SET
            failure_reason = excluded.failure_reason,
            occurrences = match_failures.occurrences + 1,
            last_seen = excluded.last_seen
        """,
        [condition_id, event_title, league, team_a, team_b, reason, now, now],
    )


def clear_match_failure(conn: DuckDBPyConnection, condition_id: str) -> None:
    conn.execute("DELETE FROM match_failures WHERE condition_id = ?", [condition_id])


def list_match_failures(conn: DuckDBPyConnection, limit: int = 100) -> list[dict[str, Any]]:
    return rows_as_dicts(
        conn, "SELECT * FROM match_failures ORDER BY occurrences DESC, last_seen DESC LIMIT ?", [limit]
    )


def set_scan_config(conn: DuckDBPyConnection, key: str, value: Any) -> None:
    conn.execute(
        """
        INSERT INTO scan_config (key, value, updated_at) VALUES (?, ?, ?)
        ON CONFLICT (key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
        """,
        [key, json.dumps(value), to_db(utcnow())],
    )


def get_scan_config(conn: DuckDBPyConnection) -> dict[str, Any]:
    rows = conn.execute("SELECT key, value FROM scan_config").fetchall()
    return {k: json.loads(v) if isinstance(v, str) else v for k, v in rows}
