"""Event, BookMarket - sportsbook-side entities."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class EventStatus(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    RESULTED = "resulted"


class Event(BaseModel):
    """Scheduled game from the odds API."""

    event_id: str
    sport: str
    league: str = ""
    home_team: str
    away_team: str
    start_time: datetime
    status: EventStatus = EventStatus.UPCOMING

    @property
    def name(self) -> str:
        return f"{self.home_team} vs {self.away_team}"


class BookMarket(BaseModel):
    """One bookmaker price for one selection. market_id is a composite key."""

    market_id: str
    event_id: str
    bookmaker: str
    market_type: str = "h2h"
    selection: str
    line: float | None = None
    odds_decimal: float = Field(..., gt=1)
    last_updated: datetime | None = None

    @staticmethod
    def make_id(event_id: str, bookmaker: str, market_type: str, selection: str) -> str:
        return f"{event_id}:{bookmaker}:{market_type}:{selection}"

