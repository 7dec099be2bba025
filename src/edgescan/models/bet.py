"""BetEntry - user bet log row."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class BetStatus(str, Enum):
    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    VOID = "void"


class BetEntry(BaseModel):
    bet_id: str
    description: str
    selection: str
    odds: float = Field(..., gt=1, description="Decimal odds")
    stake: float = Field(..., gt=0)
    status: BetStatus = BetStatus.PENDING
    profit_loss: float | None = None
    signal_id: str | None = None
    placed_at: datetime | None = None
    settled_at: datetime | None = None

    @property
    def potential_return(self) -> float:
        return round(self.stake * self.odds, 2)
