"""Confidence score and urgency tiers for signals."""

from __future__ import annotations

from datetime import datetime, timezone

from edgescan.models.signal import Urgency


def confidence_score(
    edge_percent: float,
    confirming_books: int,
    volume: float = 0.0,
    match_score: float = 100.0,
    minutes_since_update: float | None = None,
) -> int:
    """
    Heuristic 0-100 confidence.

    Base 50, plus up to 15 for confirming books (3 each), up to 15 for volume
    (1 per 100k), up to 10 for match quality above 70, up to 10 for edge (half
    the edge). Quotes older than 10 minutes lose up to 10 points.
    """
    score = 50.0
    score += min(confirming_books * 3, 15)
    score += min(volume / 100_000, 15)
    score += max(0.0, min((match_score - 70) / 3, 10))
    score += max(0.0, min(edge_percent / 2, 10))
    if minutes_since_update is not None and minutes_since_update > 10:
        score -= min((minutes_since_update - 10) / 2, 10)
    return int(max(0, min(100, round(score))))


def urgency_from_edge(edge_percent: float, confirming_books: int) -> Urgency:
    if edge_percent >= 15 and confirming_books >= 5:
        return Urgency.CRITICAL
    if edge_percent >= 10 or (edge_percent >= 7 and confirming_books >= 4):
        return Urgency.HIGH
    if edge_percent < 5:
        return Urgency.LOW
    return Urgency.NORMAL


def urgency_from_time(commence_time: datetime | None, now: datetime | None = None) -> Urgency:
    if commence_time is None:
        return Urgency.LOW
    now = now or datetime.now(timezone.utc)
    if commence_time.tzinfo is None:
        commence_time = commence_time.replace(tzinfo=timezone.utc)
    hours = (commence_time - now).total_seconds() / 3600
    if hours <= 1:
        return Urgency.CRITICAL
    if hours <= 4:
        return Urgency.HIGH
    if hours <= 12:
        return Urgency.NORMAL
    return Urgency.LOW


def combined_urgency(
    edge_percent: float,
    confirming_books: int,
    commence_time: datetime | None = None,
    now: datetime | None = None,
) -> Urgency:
    """Higher of the edge-based and time-to-start urgency."""
    by_edge = urgency_from_edge(edge_percent, confirming_books)
    by_time = urgency_from_time(commence_time, now)
    return by_edge if by_edge.rank >= by_time.rank else by_time
