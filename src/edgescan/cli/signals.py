"""Signals subcommand: detect, list, report, mark executed."""

from __future__ import annotations

import typer

from edgescan.pipeline.runtime import effective_settings
from edgescan.pipeline.signals import build_signal_report, detect_signals
from edgescan.storage.db import get_connection, init_schema
from edgescan.storage.signals import list_signals, set_signal_status

app = typer.Typer(help="Edge signals")


@app.command("detect")
def detect(
    ctx: typer.Context,
    min_edge: float | None = typer.Option(None, "--min-edge", help="Minimum edge in percentage points"),
) -> None:
    """Match cached markets to bookmaker events and store signals."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        stats = detect_signals(conn, effective_settings(conn, ctx.obj["settings"]), min_edge=min_edge)
        typer.echo(
            f"Checked {stats['checked']}, matched {stats['matched']}, unmatched {stats['unmatched']}, "
            f"signals {stats['signals']}."
        )
    finally:
        conn.close()


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    status: str = typer.Option("active", "--status", help="active, expired, executed or all"),
    limit: int = typer.Option(25, "--limit", "-n"),
) -> None:
    """List stored signals, biggest edge first."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        rows = list_signals(conn, status=None if status == "all" else status, limit=limit)
        for s in rows:
            decision = s.execution.execution_decision.value if s.execution else "-"
            typer.echo(
                f"  {s.edge_percent:+6.2f}%  conf {s.confidence_score:>3}  {s.urgency.value:<8} "
                f"{decision:<10} {s.selection} ({s.event_name})"
            )
        typer.echo(f"Total: {len(rows)} signals")
    finally:
        conn.close()


@app.command("report")
def report(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n"),
) -> None:
    """Print a plain-text report of active signals."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        typer.echo(build_signal_report(list_signals(conn, status="active", limit=limit)), nl=False)
    finally:
        conn.close()


@app.command("executed")
def executed(ctx: typer.Context, signal_id: str = typer.Argument(...)) -> None:
    """Mark a signal as executed."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        if not set_signal_status(conn, signal_id, "executed"):
            typer.echo(f"Signal {signal_id} not found", err=True)
            raise typer.Exit(1)
        typer.echo(f"Marked {signal_id} executed.")
    finally:
        conn.close()
