"""Calc subcommand: EV and Kelly calculators."""

from __future__ import annotations

import typer

from edgescan.pricing.kelly import kelly_fraction, kelly_stake
from edgescan.pricing.odds import edge_percent, expected_value, implied_probability

app = typer.Typer(help="Betting calculators")


def _probability(value: float) -> float:
    # accept 55 as well as 0.55
    return value / 100 if value > 1 else value


@app.command("ev")
def ev(
    probability: float = typer.Argument(..., help="Win probability (0.55 or 55)"),
    odds: float = typer.Argument(..., help="Decimal odds"),
    stake: float = typer.Option(100.0, "--stake", "-s"),
) -> None:
    """Expected value of a stake."""
    p = _probability(probability)
    try:
        typer.echo(f"Implied probability: {implied_probability(odds) * 100:.2f}%")
        typer.echo(f"Edge: {edge_percent(p, odds):+.2f}%")
        typer.echo(f"EV on {stake:.2f}: {expected_value(p, odds, stake):+.2f}")
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)


@app.command("kelly")
def kelly(
    probability: float = typer.Argument(..., help="Win probability (0.45 or 45)"),
    odds: float = typer.Argument(..., help="Decimal odds"),
    bankroll: float = typer.Option(10000.0, "--bankroll", "-b"),
    fraction: float = typer.Option(0.25, "--fraction", "-f", help="Kelly fraction, e.g. 0.25 for quarter Kelly"),
) -> None:
    """Full Kelly fraction and fractional stake."""
    p = _probability(probability)
    try:
        f = kelly_fraction(p, odds)
        typer.echo(f"Full Kelly: {f * 100:.2f}% of bankroll")
        typer.echo(f"Stake at {fraction:g} Kelly: {kelly_stake(bankroll, p, odds, fraction):.2f}")
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
