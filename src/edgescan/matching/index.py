"""Index bookmaker events by league and order-independent team set."""

from __future__ import annotations

from collections import defaultdict
from typing import Mapping

import structlog

from edgescan.models.event import Event
from edgescan.parsing.teams import resolve_team_name, team_id, team_set_key

log = structlog.get_logger(__name__)

BookIndex = dict[str, list[Event]]


def lookup_key(league: str, home_official: str, away_official: str) -> str:
    """'NHL|carolina_hurricanes|toronto_maple_leafs'."""
    return f"{league.upper()}|{team_set_key(team_id(home_official), team_id(away_official))}"


def index_book_events(
    events: list[Event],
    league: str,
    team_map: Mapping[str, str] | None = None,
    user_mappings: Mapping[str, str] | None = None,
) -> BookIndex:
    """Events whose two teams both resolve, grouped by lookup key. No date in the key."""
    index: BookIndex = defaultdict(list)
    unresolved: list[str] = []
    for event in events:
        home = resolve_team_name(event.home_team, league, team_map, user_mappings)
        away = resolve_team_name(event.away_team, league, team_map, user_mappings)
        if not home or not away:
            for raw, resolved in ((event.home_team, home), (event.away_team, away)):
                if not resolved and raw not in unresolved:
                    unresolved.append(raw)
            continue
        index[lookup_key(league, home, away)].append(event)
    indexed = sum(len(v) for v in index.values())
    if unresolved:
        log.info("book_index_unresolved", league=league, indexed=indexed, teams=unresolved[:5])
    else:
        log.debug("book_index_built", league=league, indexed=indexed)
    return dict(index)
