"""Signal detection: matched Polymarket markets priced against bookmaker fair probability."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping

import structlog

from edgescan.ingestion.odds_api import book_prices
from edgescan.matching.index import BookIndex
from edgescan.matching.matcher import MatchResult, match_poly_market
from edgescan.models.cache import CacheRecord, Staleness
from edgescan.models.event import BookMarket, Event
from edgescan.models.signal import Signal
from edgescan.parsing.teams import resolve_team_name, team_id
from edgescan.pipeline.schedule import load_book_index
from edgescan.pricing.execution import analyze_execution
from edgescan.pricing.kelly import BankrollConfig, size_signal
from edgescan.pricing.odds import fair_probabilities
from edgescan.pricing.scoring import combined_urgency, confidence_score
from edgescan.sports import team_map_for
from edgescan.storage.cache import list_cache
from edgescan.storage.db import utcnow
from edgescan.storage.events import list_book_markets
from edgescan.storage.mappings import clear_match_failure, record_match_failure
from edgescan.storage.signals import expire_signals, upsert_signal
from edgescan.storage.watch import mark_matched

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from edgescan.config import Settings

log = structlog.get_logger(__name__)

EXACT_MATCH_SCORE = 100
TIME_MATCH_SCORE = 85


@dataclass
class EdgeQuote:
    """Best side of one matched market."""

    selection: str
    polymarket_price: float
    fair_probability: float
    edge_percent: float
    confirming_books: int
    total_books: int


def bankroll_config(settings: Settings) -> BankrollConfig:
    return BankrollConfig(
        total_bankroll=settings.total_bankroll,
        max_position_pct=settings.max_position_pct,
        kelly_multiplier=settings.kelly_multiplier,
    )


def quote_edge(
    record: CacheRecord,
    markets: list[BookMarket],
    league: str,
    sharp_books: list[str],
    sharp_weight: float = 1.0,
    user_mappings: Mapping[str, str] | None = None,
) -> EdgeQuote | None:
    """
    Price both Polymarket sides against the vig-free bookmaker consensus.

    The yes token belongs to the first-named Polymarket team. Bookmaker
    selections are resolved to official names so the two sides line up.
    None when the sides cannot be paired with bookmaker outcomes.
    """
    team_map = team_map_for(league)
    prices = book_prices(markets, "h2h")
    fair = fair_probabilities(prices, sharp_books, sharp_weight)
    if len(fair) != 2:
        return None

    official = {sel: resolve_team_name(sel, league, team_map, user_mappings) or sel for sel in fair}
    yes_team = resolve_team_name(record.team_home or "", league, team_map, user_mappings)
    no_team = resolve_team_name(record.team_away or "", league, team_map, user_mappings)
    sides: list[tuple[str, float]] = []
    for selection, name in official.items():
        if name == yes_team:
            sides.append((selection, record.yes_price))
        elif name == no_team:
            sides.append((selection, record.no_price))
    sides = [(s, p) for s, p in sides if 0 < p < 1]
    if not sides:
        return None

    best: EdgeQuote | None = None
    for selection, price in sides:
        edge = (fair[selection] - price) * 100
        if best is not None and edge <= best.edge_percent:
            continue
        confirming = 0
        for book, quotes in prices.items():
            own = fair_probabilities({book: quotes})
            if own.get(selection, 0.0) > price:
                confirming += 1
        best = EdgeQuote(
            selection=selection,
            polymarket_price=price,
            fair_probability=fair[selection],
            edge_percent=round(edge, 2),
            confirming_books=confirming,
            total_books=len(prices),
        )
    return best


def build_signal(
    record: CacheRecord,
    event: Event,
    quote: EdgeQuote,
    settings: Settings,
    now: datetime,
    match: MatchResult | None = None,
    confidence: int | None = None,
    factors: dict[str, Any] | None = None,
) -> Signal:
    """Score a quote into a Signal. Pass confidence to override the heuristic."""
    minutes_since_update = None
    if record.last_price_update is not None:
        minutes_since_update = (now - record.last_price_update).total_seconds() / 60
    if confidence is None:
        match_score = EXACT_MATCH_SCORE if match is None or match.method == "canonical_exact" else TIME_MATCH_SCORE
        confidence = confidence_score(
            quote.edge_percent, quote.confirming_books, record.volume, match_score, minutes_since_update
        )
    execution = analyze_execution(quote.edge_percent, record.volume, stake=settings.default_stake)
    kelly = size_signal(quote.polymarket_price, quote.edge_percent, confidence, bankroll_config(settings))
    return Signal(
        signal_id=f"{record.condition_id}:{team_id(quote.selection)}",
        event_name=event.name,
        sport=event.league or record.sport,
        market_type=record.market_type,
        selection=quote.selection,
        condition_id=record.condition_id,
        polymarket_price=quote.polymarket_price,
        bookmaker_probability=round(quote.fair_probability, 4),
        edge_percent=quote.edge_percent,
        confidence_score=confidence,
        urgency=combined_urgency(quote.edge_percent, quote.confirming_books, event.start_time, now),
        confirming_books=quote.confirming_books,
        volume=record.volume,
        commence_time=event.start_time,
        execution=execution,
        kelly=kelly,
        factors={
            "bookmaker_event_id": event.event_id,
            "books": quote.total_books,
            "staleness": record.staleness(now).value,
            "match_method": match.method if match else None,
            "time_diff_hours": match.time_diff_hours if match else None,
            **(factors or {}),
        },
    )


def detect_signals(
    conn: DuckDBPyConnection,
    settings: Settings,
    now: datetime | None = None,
    min_edge: float | None = None,
) -> dict[str, Any]:
    """
    Match every active h2h cache row to a bookmaker event and surface the
    ones whose edge clears min_edge. Unmatched rows are logged to
    match_failures; dead prices are skipped.
    """
    now = now or utcnow()
    threshold = settings.min_edge_pct if min_edge is None else min_edge
    indexes: dict[str, tuple[BookIndex, dict[str, str]]] = {}
    stats = {"checked": 0, "matched": 0, "unmatched": 0, "dead_price": 0, "unsupported_league": 0,
             "no_quote": 0, "below_min_edge": 0, "signals": 0}

    for record in list_cache(conn, market_type="h2h", limit=10_000):
        stats["checked"] += 1
        league = record.sport or ""
        if not team_map_for(league):
            stats["unsupported_league"] += 1
            continue
        if record.staleness(now) == Staleness.DEAD:
            stats["dead_price"] += 1
            continue
        try:
            if league not in indexes:
                indexes[league] = load_book_index(conn, league, now)
            index, user_mappings = indexes[league]
            match = match_poly_market(
                index, league, record.team_home or "", record.team_away or "",
                record.event_date, record.is_placeholder_time, user_mappings=user_mappings,
            )
            if not match.matched:
                stats["unmatched"] += 1
                record_match_failure(
                    conn, record.condition_id, record.event_title, league,
                    record.team_home, record.team_away, match.failure_reason.value,
                )
                continue
            stats["matched"] += 1
            clear_match_failure(conn, record.condition_id)
            event = match.event
            mark_matched(conn, f"poly_{record.condition_id}", event.event_id)

            quote = quote_edge(
                record, list_book_markets(conn, event.event_id, "h2h"), league,
                settings.sharp_books, settings.sharp_book_weight, user_mappings,
            )
            if quote is None:
                stats["no_quote"] += 1
                continue
            if quote.edge_percent < threshold:
                stats["below_min_edge"] += 1
                continue
            signal = build_signal(record, event, quote, settings, now, match=match)
            upsert_signal(conn, signal)
            stats["signals"] += 1
            log.info(
                "signal_detected",
                signal_id=signal.signal_id,
                edge=signal.edge_percent,
                confidence=signal.confidence_score,
                decision=signal.execution.execution_decision.value if signal.execution else None,
            )
        except Exception as e:
            log.warning("signal_detect_failed", condition_id=record.condition_id, error=str(e))

    stats["expired"] = expire_signals(conn, now)
    log.info("signal_detection_complete", **stats)
    return stats


def build_signal_report(signals: list[Signal]) -> str:
    """Plain-text summary of signals, one block each, for pasting into an LLM prompt."""
    if not signals:
        return "No active signals."
    lines = [f"{len(signals)} active signal(s)", ""]
    for i, s in enumerate(signals, 1):
        start = s.commence_time.strftime("%Y-%m-%d %H:%M UTC") if s.commence_time else "unknown"
        lines.append(f"{i}. {s.event_name} [{s.sport or '-'}] starts {start}")
        lines.append(
            f"   Back {s.selection}: Polymarket {s.polymarket_price:.2f} vs fair {s.bookmaker_probability:.3f} "
            f"-> edge {s.edge_percent:+.2f}%"
        )
        lines.append(
            f"   Confidence {s.confidence_score}/100, urgency {s.urgency.value}, "
            f"{s.confirming_books} confirming book(s), volume ${s.volume:,.0f}"
        )
        if s.execution:
            lines.append(
                f"   Execution: {s.execution.execution_decision.value} "
                f"(net {s.execution.net_edge_percent:+.2f}%) - {s.execution.decision_reason}"
            )
        if s.kelly:
            lines.append(
                f"   Kelly: stake ${s.kelly.suggested_stake} ({s.kelly.bankroll_percentage:.2f}% of bankroll, "
                f"{s.kelly.sizing_tier})"
            )
            for warning in s.kelly.warnings:
                lines.append(f"   ! {warning}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
