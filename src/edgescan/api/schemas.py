"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from edgescan.models.bet import BetStatus


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. not_found, invalid_input, internal_error")


# --- Pipeline option bodies ---
class OddsIngestRequest(BaseModel):
    sports: list[str] | None = Field(None, description="Odds API sport keys; defaults to [scan] enabled_sports")


class SyncRequest(BaseModel):
    window_hours: float | None = Field(None, ge=0)
    sports: list[str] | None = Field(None, description="Detected-sport allow-list, e.g. NBA, NHL")


class RefreshRequest(BaseModel):
    sport: str | None = None


class ScrapeRequest(BaseModel):
    leagues: list[str] | None = None


class DetectRequest(BaseModel):
    min_edge: float | None = None


class PipelineResponse(BaseModel):
    success: bool = True
    result: dict[str, Any]


# --- Cache ---
class CacheListResponse(BaseModel):
    records: list[dict[str, Any]]
    total: int
    stats: dict[str, Any] = Field(default_factory=dict)


# --- Signals ---
class SignalStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(active|expired|executed)$")


class ReportResponse(BaseModel):
    report: str
    count: int


# --- Calculators ---
class EvRequest(BaseModel):
    probability: float = Field(..., description="Win probability, 0-1")
    odds: float = Field(..., description="Decimal odds")
    stake: float = 100.0


class EvResponse(BaseModel):
    implied_probability: float
    edge_percent: float
    expected_value: float
    fair_odds: float


class KellyRequest(BaseModel):
    bankroll: float
    probability: float
    odds: float
    fraction: float = Field(0.25, gt=0, le=1)


class KellyResponse(BaseModel):
    kelly_fraction: float
    kelly_percent: float
    suggested_stake: float


# --- Bets ---
class BetCreate(BaseModel):
    description: str
    selection: str
    odds: float
    stake: float
    signal_id: str | None = None


class BetSettle(BaseModel):
    status: BetStatus


class BetSummary(BaseModel):
    count: int
    pending: int
    total_staked: float
    total_profit: float
    roi_percent: float
    win_rate_percent: float


# --- Mappings / config ---
class TeamMappingCreate(BaseModel):
    source_name: str
    sport_code: str
    canonical_name: str


class ScanConfigUpdate(BaseModel):
    values: dict[str, Any]
