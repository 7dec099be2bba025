"""Canonical schema (Pydantic) - events, cache records, signals, bets."""

from edgescan.models.bet import BetEntry, BetStatus
from edgescan.models.cache import CacheRecord, Staleness
from edgescan.models.event import BookMarket, Event, EventStatus
from edgescan.models.signal import ExecutionAnalysis, ExecutionDecision, KellyResult, Signal, Urgency
from edgescan.models.watch import WatchState, WatchStatus

__all__ = [
    "Event",
    "EventStatus",
    "BookMarket",
    "CacheRecord",
    "Staleness",
    "Signal",
    "Urgency",
    "ExecutionAnalysis",
    "ExecutionDecision",
    "KellyResult",
    "BetEntry",
    "BetStatus",
    "WatchState",
    "WatchStatus",
]
