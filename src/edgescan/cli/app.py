"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from edgescan.config import get_settings
from edgescan.config.settings import configure_logging

app = typer.Typer(
    name="edgescan",
    help="edgescan - Polymarket vs sportsbook edge scanner.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from edgescan.cli import api_cmd, bets, calc, config_cmd, mappings, odds, poly, signals, watch  # noqa: E402

app.add_typer(odds.app, name="odds")
app.add_typer(poly.app, name="poly")
app.add_typer(signals.app, name="signals")
app.add_typer(watch.app, name="watch")
app.add_typer(bets.app, name="bets")
app.add_typer(calc.app, name="calc")
app.add_typer(mappings.app, name="mappings")
app.add_typer(config_cmd.app, name="config")
app.add_typer(api_cmd.app, name="api")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
