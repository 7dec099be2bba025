"""Odds subcommand: ingest sportsbook prices."""

from __future__ import annotations

import httpx
import typer

from edgescan.pipeline.odds import ingest_odds
from edgescan.pipeline.runtime import effective_settings
from edgescan.storage.db import get_connection, init_schema
from edgescan.storage.events import list_events

app = typer.Typer(help="Sportsbook odds (The Odds API)")


@app.command("ingest")
def ingest(
    ctx: typer.Context,
    sport: list[str] | None = typer.Option(None, "--sport", "-s", help="Odds API sport key (repeatable)"),
) -> None:
    """Fetch odds for the enabled sports and store events, prices and snapshots."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        settings = effective_settings(conn, ctx.obj["settings"])
        try:
            summary = ingest_odds(conn, settings, sports=sport or None)
        except (ValueError, httpx.HTTPError) as e:
            typer.echo(f"Odds ingest failed: {e}", err=True)
            raise typer.Exit(1)
        typer.echo(
            f"Ingested {summary['events']} events, {summary['markets']} prices "
            f"across {summary['sports']} sport(s)."
        )
        if summary["failed_sports"]:
            typer.echo(f"Failed: {', '.join(summary['failed_sports'])}")
    finally:
        conn.close()


@app.command("events")
def events(
    ctx: typer.Context,
    league: str | None = typer.Option(None, "--league", "-l", help="e.g. NBA"),
) -> None:
    """List stored bookmaker events."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        rows = list_events(conn, league=league)
        for e in rows:
            typer.echo(f"  {e.start_time:%Y-%m-%d %H:%M}  {e.league:<6} {e.name}")
        typer.echo(f"Total: {len(rows)} events")
    finally:
        conn.close()
