"""Polymarket <-> bookmaker event matching."""

from edgescan.matching.index import BookIndex, index_book_events, lookup_key
from edgescan.matching.matcher import FailureReason, MatchResult, match_poly_market

__all__ = [
    "BookIndex",
    "FailureReason",
    "MatchResult",
    "index_book_events",
    "lookup_key",
    "match_poly_market",
]
