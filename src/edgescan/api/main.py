"""FastAPI backend: pipeline triggers, cache/signal views, calculators and the bet log."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import structlog
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from edgescan.api.schemas import (
    BetCreate,
    BetSettle,
    BetSummary,
    CacheListResponse,
    DetectRequest,
    ErrorResponse,
    EvRequest,
    EvResponse,
    HealthResponse,
    KellyRequest,
    KellyResponse,
    OddsIngestRequest,
    PipelineResponse,
    RefreshRequest,
    ReportResponse,
    ScanConfigUpdate,
    ScrapeRequest,
    SignalStatusUpdate,
    SyncRequest,
    TeamMappingCreate,
)
from edgescan.config import Settings, get_settings
from edgescan.models.bet import BetEntry, BetStatus
from edgescan.models.signal import Signal
from edgescan.models.watch import WatchState, WatchStatus
from edgescan.pipeline.odds import ingest_odds
from edgescan.pipeline.refresh import refresh_prices
from edgescan.pipeline.runtime import effective_settings
from edgescan.pipeline.scrape import scrape_polymarket
from edgescan.pipeline.signals import build_signal_report, detect_signals
from edgescan.pipeline.sync import sync_polymarket
from edgescan.pipeline.watch import poll_watch
from edgescan.pricing.kelly import kelly_fraction, kelly_stake
from edgescan.pricing.odds import edge_percent, expected_value, fair_odds, implied_probability
from edgescan.storage.bets import bet_summary, create_bet, delete_bet, list_bets, settle_bet
from edgescan.storage.cache import cache_stats, list_cache
from edgescan.storage.db import get_connection, init_schema
from edgescan.storage.mappings import (
    add_team_mapping,
    get_scan_config,
    list_match_failures,
    list_team_mappings,
    set_scan_config,
)
from edgescan.storage.signals import list_signals, set_signal_status
from edgescan.storage.watch import list_watch

log = structlog.get_logger(__name__)

# Set by run_api() so every request reads the same profile and config dir.
_config_profile: str | None = None
_config_dir: Path | None = None


def _settings() -> Settings:
    return get_settings(_config_profile, _config_dir)


def _get_conn():
    return get_connection(_settings().db_path)


@asynccontextmanager
async def lifespan(app: FastAPI):
    conn = _get_conn()
    try:
        init_schema(conn)
    finally:
        conn.close()
    yield


app = FastAPI(title="edgescan API", version="0.1.0", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


@app.exception_handler(ValueError)
async def _invalid_input(request: Request, exc: ValueError) -> JSONResponse:
    return _error_json("invalid_input", str(exc), 400)


@app.exception_handler(Exception)
async def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    log.error("api_request_failed", path=request.url.path, error=str(exc))
    return _error_json("internal_error", str(exc), 500)


def _run_pipeline(step, **kwargs: Any) -> PipelineResponse:
    conn = _get_conn()
    try:
        settings = effective_settings(conn, _settings())
        return PipelineResponse(result=step(conn, settings, **kwargs))
    finally:
        conn.close()


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


# --- Pipeline ---
@app.post("/odds/ingest", response_model=PipelineResponse)
def odds_ingest(body: OddsIngestRequest | None = None) -> PipelineResponse:
    body = body or OddsIngestRequest()
    return _run_pipeline(ingest_odds, sports=body.sports)


@app.post("/polymarket/sync", response_model=PipelineResponse)
def polymarket_sync(body: SyncRequest | None = None) -> PipelineResponse:
    body = body or SyncRequest()
    return _run_pipeline(sync_polymarket, window_hours=body.window_hours, sports=body.sports)


@app.post("/polymarket/refresh-prices", response_model=PipelineResponse)
def polymarket_refresh(body: RefreshRequest | None = None) -> PipelineResponse:
    body = body or RefreshRequest()
    return _run_pipeline(refresh_prices, sport=body.sport)


@app.post("/polymarket/scrape", response_model=PipelineResponse)
def polymarket_scrape(body: ScrapeRequest | None = None) -> PipelineResponse:
    body = body or ScrapeRequest()
    return _run_pipeline(scrape_polymarket, leagues=body.leagues)


@app.post("/signals/detect", response_model=PipelineResponse)
def signals_detect(body: DetectRequest | None = None) -> PipelineResponse:
    body = body or DetectRequest()
    return _run_pipeline(detect_signals, min_edge=body.min_edge)


@app.post("/watch/poll", response_model=PipelineResponse)
def watch_poll() -> PipelineResponse:
    return _run_pipeline(poll_watch)


# --- Views ---
@app.get("/polymarket/cache", response_model=CacheListResponse)
def polymarket_cache(
    sport: str | None = None,
    market_type: str | None = None,
    status: str | None = Query("active"),
    limit: int = Query(100, ge=1, le=1000),
) -> CacheListResponse:
    conn = _get_conn()
    try:
        records = list_cache(conn, status=status, sport=sport, market_type=market_type, limit=limit)
        rows = [{**r.model_dump(mode="json"), "staleness": r.staleness().value} for r in records]
        return CacheListResponse(records=rows, total=len(rows), stats=cache_stats(conn))
    finally:
        conn.close()


@app.get("/signals", response_model=list[Signal])
def signals_list(
    status: str | None = Query("active"),
    limit: int = Query(100, ge=1, le=500),
) -> list[Signal]:
    conn = _get_conn()
    try:
        return list_signals(conn, status=status, limit=limit)
    finally:
        conn.close()


@app.get("/signals/report", response_model=ReportResponse)
def signals_report(limit: int = Query(20, ge=1, le=100)) -> ReportResponse:
    conn = _get_conn()
    try:
        signals = list_signals(conn, status="active", limit=limit)
        return ReportResponse(report=build_signal_report(signals), count=len(signals))
    finally:
        conn.close()


@app.patch(
    "/signals/{signal_id}",
    responses={404: {"description": "Unknown signal", "model": ErrorResponse}},
)
def signals_set_status(signal_id: str, body: SignalStatusUpdate):
    conn = _get_conn()
    try:
        if not set_signal_status(conn, signal_id, body.status):
            return _error_json("not_found", f"Signal {signal_id} not found")
        return {"signal_id": signal_id, "status": body.status}
    finally:
        conn.close()


@app.get("/watch", response_model=list[WatchState])
def watch_list(state: list[WatchStatus] | None = Query(None)) -> list[WatchState]:
    conn = _get_conn()
    try:
        return list_watch(conn, state)
    finally:
        conn.close()


# --- Calculators ---
@app.post("/calc/ev", response_model=EvResponse)
def calc_ev(body: EvRequest) -> EvResponse:
    return EvResponse(
        implied_probability=round(implied_probability(body.odds), 6),
        edge_percent=round(edge_percent(body.probability, body.odds), 4),
        expected_value=round(expected_value(body.probability, body.odds, body.stake), 2),
        fair_odds=round(fair_odds(body.probability), 4),
    )


@app.post("/calc/kelly", response_model=KellyResponse)
def calc_kelly(body: KellyRequest) -> KellyResponse:
    f = kelly_fraction(body.probability, body.odds)
    return KellyResponse(
        kelly_fraction=round(f, 6),
        kelly_percent=round(f * 100, 2),
        suggested_stake=round(kelly_stake(body.bankroll, body.probability, body.odds, body.fraction), 2),
    )


# --- Bets ---
@app.get("/bets", response_model=list[BetEntry])
def bets_list(status: BetStatus | None = None) -> list[BetEntry]:
    conn = _get_conn()
    try:
        return list_bets(conn, status)
    finally:
        conn.close()


@app.post("/bets", response_model=BetEntry, status_code=201)
def bets_create(body: BetCreate) -> BetEntry:
    conn = _get_conn()
    try:
        return create_bet(conn, body.description, body.selection, body.odds, body.stake, body.signal_id)
    finally:
        conn.close()


@app.get("/bets/summary", response_model=BetSummary)
def bets_summary() -> BetSummary:
    conn = _get_conn()
    try:
        return BetSummary(**bet_summary(conn))
    finally:
        conn.close()


@app.post(
    "/bets/{bet_id}/settle",
    response_model=BetEntry,
    responses={404: {"description": "Unknown bet", "model": ErrorResponse}},
)
def bets_settle(bet_id: str, body: BetSettle):
    conn = _get_conn()
    try:
        bet = settle_bet(conn, bet_id, body.status)
        if bet is None:
            return _error_json("not_found", f"Bet {bet_id} not found")
        return bet
    finally:
        conn.close()


@app.delete("/bets/{bet_id}", responses={404: {"description": "Unknown bet", "model": ErrorResponse}})
def bets_delete(bet_id: str):
    conn = _get_conn()
    try:
        if not delete_bet(conn, bet_id):
            return _error_json("not_found", f"Bet {bet_id} not found")
        return {"deleted": bet_id}
    finally:
        conn.close()


# --- Team mappings, match failures, scan config ---
@app.get("/mappings")
def mappings_list() -> list[dict[str, Any]]:
    conn = _get_conn()
    try:
        return list_team_mappings(conn)
    finally:
        conn.close()


@app.post("/mappings", status_code=201)
def mappings_add(body: TeamMappingCreate) -> dict[str, str]:
    conn = _get_conn()
    try:
        add_team_mapping(conn, body.source_name, body.sport_code, body.canonical_name)
        return body.model_dump()
    finally:
        conn.close()


@app.get("/match-failures")
def match_failures(limit: int = Query(100, ge=1, le=500)) -> list[dict[str, Any]]:
    conn = _get_conn()
    try:
        return list_match_failures(conn, limit)
    finally:
        conn.close()


@app.get("/config")
def scan_config_get() -> dict[str, Any]:
    conn = _get_conn()
    try:
        return get_scan_config(conn)
    finally:
        conn.close()


@app.put("/config")
def scan_config_put(body: ScanConfigUpdate) -> dict[str, Any]:
    conn = _get_conn()
    try:
        for key, value in body.values.items():
            set_scan_config(conn, key, value)
        return get_scan_config(conn)
    finally:
        conn.close()


def run_api(
    host: str = "127.0.0.1", port: int = 8000, profile: str | None = None, config_dir: Path | None = None
) -> None:
    global _config_profile, _config_dir
    _config_profile = profile
    _config_dir = config_dir
    import uvicorn

    uvicorn.run("edgescan.api.main:app", host=host, port=port, reload=False)
