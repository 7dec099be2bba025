"""Free-text parsing of Polymarket events: teams, market type, dates."""

from edgescan.parsing.dates import ResolvedDate, resolve_event_date, within_window
from edgescan.parsing.markets import detect_market_type, extract_threshold, extract_token_ids, is_blocked
from edgescan.parsing.teams import extract_team_names, normalize_team_name, resolve_team_name, split_teams

__all__ = [
    "ResolvedDate",
    "detect_market_type",
    "extract_team_names",
    "extract_threshold",
    "extract_token_ids",
    "is_blocked",
    "normalize_team_name",
    "resolve_event_date",
    "resolve_team_name",
    "split_teams",
    "within_window",
]
