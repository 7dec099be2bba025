"""WatchState - tracked-event lifecycle row."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class WatchStatus(str, Enum):
    MONITORED = "monitored"
    WATCHING = "watching"
    ACTIVE = "active"
    CONFIRMED = "confirmed"
    DROPPED = "dropped"
    SIGNAL = "signal"
    EXPIRED = "expired"


class WatchState(BaseModel):
    event_key: str
    event_name: str | None = None
    league: str | None = None
    outcome: str | None = None
    state: WatchStatus = WatchStatus.WATCHING
    commence_time: datetime | None = None
    initial_probability: float | None = None
    peak_probability: float | None = None
    current_probability: float | None = None
    movement_pct: float | None = None
    velocity: float | None = None
    samples_since_hold: int = 0
    hold_start_at: datetime | None = None
    active_until: datetime | None = None
    polymarket_condition_id: str | None = None
    polymarket_question: str | None = None
    polymarket_price: float | None = None
    polymarket_volume: float | None = None
    polymarket_matched: bool = False
    bookmaker_event_id: str | None = None
