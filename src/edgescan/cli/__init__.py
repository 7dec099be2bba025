"""typer CLI."""
