"""Match a Polymarket market to a bookmaker event via canonical team keys."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Mapping

from pydantic import BaseModel

from edgescan.matching.index import BookIndex, lookup_key
from edgescan.models.event import Event
from edgescan.parsing.teams import resolve_team_name

WINDOW_HOURS = 36
PLACEHOLDER_WINDOW_HOURS = 48
EXACT_HOURS = 24


class FailureReason(str, Enum):
    TEAM_ALIAS_MISSING = "TEAM_ALIAS_MISSING"
    NO_BOOK_GAME_FOUND = "NO_BOOK_GAME_FOUND"
    START_TIME_MISMATCH = "START_TIME_MISMATCH"


class MatchResult(BaseModel):
    event: Event | None = None
    method: str | None = None
    failure_reason: FailureReason | None = None
    resolved_teams: tuple[str | None, str | None] = (None, None)
    lookup_key: str | None = None
    candidates: int = 0
    time_diff_hours: float | None = None

    @property
    def matched(self) -> bool:
        return self.event is not None


def _utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def match_poly_market(
    index: BookIndex,
    league: str,
    team_a: str,
    team_b: str,
    poly_date: datetime | None,
    is_placeholder_time: bool = False,
    team_map: Mapping[str, str] | None = None,
    user_mappings: Mapping[str, str] | None = None,
) -> MatchResult:
    """
    Resolve both teams, look up candidates by team set, keep those within
    +-36h of the Polymarket date (+-48h for placeholder times) and return the
    closest. Without a Polymarket date the first candidate wins.
    """
    a = resolve_team_name(team_a, league, team_map, user_mappings)
    b = resolve_team_name(team_b, league, team_map, user_mappings)
    if not a or not b:
        return MatchResult(failure_reason=FailureReason.TEAM_ALIAS_MISSING, resolved_teams=(a, b))

    key = lookup_key(league, a, b)
    candidates = index.get(key, [])
    if not candidates:
        return MatchResult(
            failure_reason=FailureReason.NO_BOOK_GAME_FOUND, resolved_teams=(a, b), lookup_key=key
        )
    if poly_date is None:
        return MatchResult(
            event=candidates[0], method="canonical_exact", resolved_teams=(a, b),
            lookup_key=key, candidates=len(candidates),
        )

    window = PLACEHOLDER_WINDOW_HOURS if is_placeholder_time else WINDOW_HOURS
    poly_date = _utc(poly_date)
    best: Event | None = None
    best_diff = float("inf")
    for candidate in candidates:
        diff = abs((_utc(candidate.start_time) - poly_date).total_seconds()) / 3600
        if diff <= window and diff < best_diff:
            best, best_diff = candidate, diff

    if best is None:
        return MatchResult(
            failure_reason=FailureReason.START_TIME_MISMATCH, resolved_teams=(a, b),
            lookup_key=key, candidates=len(candidates),
        )
    return MatchResult(
        event=best,
        method="canonical_exact" if best_diff < EXACT_HOURS else "canonical_time",
        resolved_teams=(a, b),
        lookup_key=key,
        candidates=len(candidates),
        time_diff_hours=round(best_diff, 2),
    )

