"""Mappings subcommand: manual team-name corrections and match failures."""

from __future__ import annotations

import typer

from edgescan.storage.db import get_connection, init_schema
from edgescan.storage.mappings import add_team_mapping, list_match_failures, list_team_mappings

app = typer.Typer(help="Team-name mappings and unmatched markets")


@app.command("add")
def add(
    ctx: typer.Context,
    source_name: str = typer.Argument(..., help="Name as Polymarket or the bookmaker writes it"),
    canonical_name: str = typer.Argument(..., help="Official team name"),
    sport: str = typer.Option(..., "--sport", "-s", help="League, e.g. NBA"),
) -> None:
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        add_team_mapping(conn, source_name, sport, canonical_name)
        typer.echo(f"Mapped '{source_name}' -> '{canonical_name}' ({sport.upper()}).")
    finally:
        conn.close()


@app.command("list")
def list_cmd(ctx: typer.Context) -> None:
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        rows = list_team_mappings(conn)
        for r in rows:
            typer.echo(f"  {r['sport_code']:<6} {r['source_name']} -> {r['canonical_name']}")
        typer.echo(f"Total: {len(rows)} mappings")
    finally:
        conn.close()


@app.command("failures")
def failures(ctx: typer.Context, limit: int = typer.Option(25, "--limit", "-n")) -> None:
    """Markets that could not be matched to a bookmaker event, most frequent first."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        rows = list_match_failures(conn, limit)
        for r in rows:
            typer.echo(
                f"  x{r['occurrences']:<3} {r['failure_reason']:<20} {r['league'] or '-':<6} "
                f"{r['team_a'] or '?'} / {r['team_b'] or '?'}"
            )
        typer.echo(f"Total: {len(rows)} failures")
    finally:
        conn.close()
