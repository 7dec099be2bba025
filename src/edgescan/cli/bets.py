"""Bets subcommand: personal bet log."""

from __future__ import annotations

import typer

from edgescan.models.bet import BetStatus
from edgescan.storage.bets import bet_summary, create_bet, delete_bet, list_bets, settle_bet
from edgescan.storage.db import get_connection, init_schema

app = typer.Typer(help="Bet log")


@app.command("add")
def add(
    ctx: typer.Context,
    description: str = typer.Argument(..., help="e.g. 'Celtics vs Knicks'"),
    selection: str = typer.Argument(...),
    odds: float = typer.Option(..., "--odds", "-o", help="Decimal odds"),
    stake: float = typer.Option(..., "--stake", "-s"),
    signal_id: str | None = typer.Option(None, "--signal"),
) -> None:
    """Record a placed bet."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        try:
            bet = create_bet(conn, description, selection, odds, stake, signal_id)
        except ValueError as e:
            typer.echo(f"Invalid bet: {e}", err=True)
            raise typer.Exit(1)
        typer.echo(f"Logged {bet.bet_id}: {bet.selection} @ {bet.odds} for {bet.stake:.2f} (returns {bet.potential_return:.2f})")
    finally:
        conn.close()


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    status: BetStatus | None = typer.Option(None, "--status"),
) -> None:
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        rows = list_bets(conn, status)
        for b in rows:
            pl = f"{b.profit_loss:+.2f}" if b.profit_loss is not None else "--"
            typer.echo(f"  {b.bet_id}  {b.status.value:<7} {b.odds:>5.2f} x {b.stake:>8.2f}  {pl:>9}  {b.selection}")
        typer.echo(f"Total: {len(rows)} bets")
    finally:
        conn.close()


@app.command("settle")
def settle(
    ctx: typer.Context,
    bet_id: str = typer.Argument(...),
    status: BetStatus = typer.Argument(..., help="won, lost, void or pending"),
) -> None:
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        bet = settle_bet(conn, bet_id, status)
        if bet is None:
            typer.echo(f"Bet {bet_id} not found", err=True)
            raise typer.Exit(1)
        typer.echo(f"{bet.bet_id} settled {bet.status.value}, P/L {bet.profit_loss if bet.profit_loss is not None else '--'}")
    finally:
        conn.close()


@app.command("delete")
def delete(ctx: typer.Context, bet_id: str = typer.Argument(...)) -> None:
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        if not delete_bet(conn, bet_id):
            typer.echo(f"Bet {bet_id} not found", err=True)
            raise typer.Exit(1)
        typer.echo(f"Deleted {bet_id}.")
    finally:
        conn.close()


@app.command("summary")
def summary(ctx: typer.Context) -> None:
    """Staked, profit, ROI and win rate."""
    conn = get_connection(ctx.obj["settings"].db_path)
    init_schema(conn)
    try:
        s = bet_summary(conn)
        typer.echo(f"Bets: {s['count']} ({s['pending']} pending)")
        typer.echo(f"Staked: {s['total_staked']:.2f}  Profit: {s['total_profit']:+.2f}")
        typer.echo(f"ROI: {s['roi_percent']:.2f}%  Win rate: {s['win_rate_percent']:.2f}%")
    finally:
        conn.close()
