"""Watch subcommand: movement poll and tracked-event listing."""

from __future__ import annotations

import typer

from edgescan.models.watch import WatchStatus
from edgescan.pipeline.runtime import effective_settings
from edgescan.pipeline.watch import poll_watch
from edgescan.storage.db import get_connection, init_schema
from edgescan.storage.watch import list_watch

app = typer.Typer(help="Movement watch mode")


@app.command("poll")
def poll(ctx: typer.Context) -> None:
    """Snapshot fair probabilities, escalate movers, settle active events."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        result = poll_watch(conn, effective_settings(conn, ctx.obj["settings"]))
        movement, active = result["movement"], result["active"]
        typer.echo(
            f"Analyzed {movement['events_analyzed']} events, {movement['candidates']} movers, "
            f"{movement['escalated']} escalated."
        )
        typer.echo(
            f"Active: {active['processed']} processed, {active['confirmed']} confirmed, "
            f"{active['dropped']} dropped, {active['signal']} unmatched."
        )
    finally:
        conn.close()


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    state: list[WatchStatus] | None = typer.Option(None, "--state", help="Filter by state (repeatable)"),
) -> None:
    """List tracked events."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        rows = list_watch(conn, state or None)
        for w in rows:
            move = f"{w.movement_pct:+.1f}" if w.movement_pct is not None else "--"
            typer.echo(f"  {w.state.value:<9} {move:>6}  {(w.event_name or w.event_key)[:60]}")
        typer.echo(f"Total: {len(rows)} tracked")
    finally:
        conn.close()
