"""Poly subcommand: Gamma sync, CLOB price refresh, Firecrawl scrape, cache listing."""

from __future__ import annotations

import httpx
import typer

from edgescan.pipeline.refresh import refresh_prices
from edgescan.pipeline.runtime import effective_settings
from edgescan.pipeline.scrape import scrape_polymarket
from edgescan.pipeline.sync import sync_polymarket
from edgescan.storage.cache import cache_stats, list_cache
from edgescan.storage.db import get_connection, init_schema

app = typer.Typer(help="Polymarket cache: sync, refresh, scrape, list")


@app.command("sync")
def sync(
    ctx: typer.Context,
    window_hours: float | None = typer.Option(None, "--window-hours", "-w", help="Start-time horizon"),
    sport: list[str] | None = typer.Option(None, "--sport", "-s", help="Detected sport allow-list (repeatable)"),
) -> None:
    """Pull active sports events from Gamma into the cache."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        settings = effective_settings(conn, ctx.obj["settings"])
        try:
            summary = sync_polymarket(conn, settings, window_hours=window_hours, sports=sport or None)
        except httpx.HTTPError as e:
            typer.echo(f"Gamma sync failed: {e}", err=True)
            raise typer.Exit(1)
        typer.echo(
            f"Fetched {summary['total_fetched']} events, {summary['qualifying_events']} qualifying, "
            f"{summary['upserted_to_cache']} cached, {summary['expired']} expired."
        )
        for reason, count in sorted(summary["filter_stats"].items()):
            typer.echo(f"  skipped {reason}: {count}")
    finally:
        conn.close()


@app.command("refresh")
def refresh(
    ctx: typer.Context,
    sport: str | None = typer.Option(None, "--sport", "-s"),
) -> None:
    """Re-price cached markets from the CLOB."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        summary = refresh_prices(conn, effective_settings(conn, ctx.obj["settings"]), sport=sport)
        typer.echo(
            f"Checked {summary['checked']}: {summary['updated']} updated, {summary['rejected']} rejected, "
            f"{summary['missing']} missing, {summary['deviations']} large moves."
        )
    finally:
        conn.close()


@app.command("scrape")
def scrape(
    ctx: typer.Context,
    league: list[str] | None = typer.Option(None, "--league", "-l", help="League name (repeatable)"),
) -> None:
    """Scrape Polymarket game pages through Firecrawl."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        try:
            summary = scrape_polymarket(conn, effective_settings(conn, ctx.obj["settings"]), leagues=league or None)
        except ValueError as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(1)
        for name, count in summary["leagues"].items():
            typer.echo(f"  {name}: {count} games")
        typer.echo(f"Upserted {summary['upserted']} scraped markets.")
    finally:
        conn.close()


@app.command("cache")
def cache(
    ctx: typer.Context,
    sport: str | None = typer.Option(None, "--sport", "-s"),
    market_type: str | None = typer.Option(None, "--type", "-t", help="h2h, total, spread, player_prop"),
    limit: int = typer.Option(50, "--limit", "-n"),
) -> None:
    """List cached markets with price freshness."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        records = list_cache(conn, sport=sport, market_type=market_type, limit=limit)
        for r in records:
            date = f"{r.event_date:%m-%d %H:%M}" if r.event_date else "--"
            typer.echo(
                f"  {date}  {(r.sport or '-'):<8} {r.yes_price:.2f}/{r.no_price:.2f}  "
                f"{r.staleness().value:<5}  {r.event_title[:50]}"
            )
        stats = cache_stats(conn)
        typer.echo(f"Total: {len(records)} shown; " + ", ".join(f"{k}={v['count']}" for k, v in stats.items()))
    finally:
        conn.close()
