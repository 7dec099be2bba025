"""Signal, ExecutionAnalysis, KellyResult - derived edge outputs."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Urgency(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return ["low", "normal", "high", "critical"].index(self.value)


class ExecutionDecision(str, Enum):
    STRONG_BET = "STRONG_BET"
    BET = "BET"
    MARGINAL = "MARGINAL"
    NO_BET = "NO_BET"


class ExecutionAnalysis(BaseModel):
    """Costs subtracted from raw edge. All values in percentage points."""

    raw_edge_percent: float
    platform_fee_percent: float = 0.0
    estimated_spread_percent: float = 0.0
    estimated_slippage_percent: float = 0.0
    total_costs_percent: float = 0.0
    net_edge_percent: float = 0.0
    liquidity_tier: str = "insufficient"
    max_stake_without_impact: int = 0
    execution_decision: ExecutionDecision = ExecutionDecision.NO_BET
    decision_reason: str = ""


class KellyResult(BaseModel):
    kelly_fraction: float
    suggested_stake: int
    max_kelly_stake: int
    half_kelly_stake: int
    bankroll_percentage: float
    sizing_tier: str
    warnings: list[str] = Field(default_factory=list)


class Signal(BaseModel):
    """Matched Polymarket vs bookmaker opportunity."""

    signal_id: str
    event_name: str
    sport: str | None = None
    market_type: str = "h2h"
    selection: str
    condition_id: str | None = None
    polymarket_price: float = Field(..., ge=0, le=1)
    bookmaker_probability: float = Field(..., ge=0, le=1)
    edge_percent: float
    confidence_score: int = Field(..., ge=0, le=100)
    urgency: Urgency = Urgency.NORMAL
    confirming_books: int = 0
    volume: float = 0.0
    commence_time: datetime | None = None
    execution: ExecutionAnalysis | None = None
    kelly: KellyResult | None = None
    status: str = "active"
    factors: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
