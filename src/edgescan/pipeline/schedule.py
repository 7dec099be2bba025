"""Bookmaker schedule cross-reference for Polymarket events with no usable date."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from edgescan.matching.index import BookIndex, index_book_events, lookup_key
from edgescan.parsing.dates import ScheduleLookup
from edgescan.parsing.teams import resolve_team_name
from edgescan.sports import team_map_for
from edgescan.storage.db import utcnow
from edgescan.storage.events import list_events
from edgescan.storage.mappings import load_user_mappings

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def load_book_index(
    conn: DuckDBPyConnection, league: str, now: datetime | None = None, lookback_hours: float = 12
) -> tuple[BookIndex, dict[str, str]]:
    """Index of stored bookmaker events for a league, plus that league's user mappings."""
    now = now or utcnow()
    user_mappings = load_user_mappings(conn, league)
    events = list_events(conn, league=league, start_after=now - timedelta(hours=lookback_hours))
    return index_book_events(events, league, team_map_for(league), user_mappings), user_mappings


def build_schedule_lookup(
    conn: DuckDBPyConnection, league: str | None, now: datetime | None = None
) -> ScheduleLookup | None:
    """
    (team_a, team_b) -> earliest upcoming bookmaker start time for that pair.
    None when the league has no team map to resolve names against.
    """
    if not league or not team_map_for(league):
        return None
    now = now or utcnow()
    index, user_mappings = load_book_index(conn, league, now)
    team_map = team_map_for(league)

    def lookup(team_a: str | None, team_b: str | None) -> datetime | None:
        if not team_a or not team_b:
            return None
        a = resolve_team_name(team_a, league, team_map, user_mappings)
        b = resolve_team_name(team_b, league, team_map, user_mappings)
        if not a or not b:
            return None
        starts = [e.start_time for e in index.get(lookup_key(league, a, b), []) if e.start_time >= now]
        return min(starts) if starts else None

    return lookup
