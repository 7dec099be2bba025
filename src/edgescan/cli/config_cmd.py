"""Config subcommand: stored runtime overrides of [scan] and [bankroll]."""

from __future__ import annotations

import json

import typer

from edgescan.storage.db import get_connection, init_schema
from edgescan.storage.mappings import get_scan_config, set_scan_config

app = typer.Typer(help="Runtime scan config")


@app.command("show")
def show(ctx: typer.Context) -> None:
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        for key, value in sorted(get_scan_config(conn).items()):
            typer.echo(f"  {key} = {json.dumps(value)}")
    finally:
        conn.close()


@app.command("set")
def set_cmd(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="e.g. min_edge_pct, enabled_sports, total_bankroll"),
    value: str = typer.Argument(..., help="JSON value, e.g. 3.5 or '[\"basketball_nba\"]'"),
) -> None:
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        set_scan_config(conn, key, parsed)
        typer.echo(f"Set {key} = {json.dumps(parsed)}")
    finally:
        conn.close()
