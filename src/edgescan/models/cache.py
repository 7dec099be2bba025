"""CacheRecord - cached Polymarket market, with staleness classification."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

FRESH_MINUTES = 10
STALE_MINUTES = 30


class Staleness(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    DEAD = "dead"


def classify_staleness(last_updated: datetime | None, now: datetime | None = None) -> Staleness:
    """fresh < 10 min, stale < 30 min, dead otherwise (or never updated)."""
    if last_updated is None:
        return Staleness.DEAD
    now = now or datetime.now(timezone.utc)
    if last_updated.tzinfo is None:
        last_updated = last_updated.replace(tzinfo=timezone.utc)
    minutes = (now - last_updated).total_seconds() / 60
    if minutes < FRESH_MINUTES:
        return Staleness.FRESH
    if minutes < STALE_MINUTES:
        return Staleness.STALE
    return Staleness.DEAD


class CacheRecord(BaseModel):
    """One tradeable Polymarket market resolved to a sports event."""

    condition_id: str
    event_title: str = ""
    question: str = ""
    slug: str | None = None
    team_home: str | None = None
    team_away: str | None = None
    team_home_normalized: str | None = None
    team_away_normalized: str | None = None
    token_id_yes: str | None = None
    token_id_no: str | None = None
    yes_price: float = Field(0.5, ge=0, le=1)
    no_price: float = Field(0.5, ge=0, le=1)
    volume: float = 0.0
    liquidity: float = 0.0
    sport: str | None = None
    market_type: str = "h2h"
    threshold: float | None = None
    event_date: datetime | None = None
    date_source: str | None = None
    is_placeholder_time: bool = False
    source: str = "gamma"
    status: str = "active"
    last_price_update: datetime | None = None

    def staleness(self, now: datetime | None = None) -> Staleness:
        return classify_staleness(self.last_price_update, now)
