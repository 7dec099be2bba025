"""CLI commands through typer's CliRunner with a throwaway config dir."""

import pytest
from typer.testing import CliRunner

from edgescan.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_dir(tmp_path):
    db = tmp_path / "cli.duckdb"
    (tmp_path / "default.toml").write_text(f'[storage]\ndb_path = "{db.as_posix()}"\n[logging]\nlevel = "WARNING"\n')
    return tmp_path


def test_calc_ev_accepts_percent():
    result = runner.invoke(app, ["calc", "ev", "55", "2.10"])
    assert result.exit_code == 0
    assert "EV on 100.00: +15.50" in result.output


def test_calc_kelly():
    result = runner.invoke(app, ["calc", "kelly", "0.45", "2.5"])
    assert result.exit_code == 0
    assert "Full Kelly: 8.33% of bankroll" in result.output
    assert "208.33" in result.output


def test_calc_rejects_bad_odds():
    assert runner.invoke(app, ["calc", "ev", "0.55", "1.0"]).exit_code == 1


def test_bets_add_and_summary(config_dir):
    result = runner.invoke(
        app, ["-C", str(config_dir), "bets", "add", "Celtics vs Knicks", "Boston Celtics", "-o", "2.5", "-s", "40"]
    )
    assert result.exit_code == 0, result.output
    assert "returns 100.00" in result.output

    summary = runner.invoke(app, ["-C", str(config_dir), "bets", "summary"])
    assert "Bets: 1 (1 pending)" in summary.output

    bad = runner.invoke(app, ["-C", str(config_dir), "bets", "add", "x", "y", "-o", "1.0", "-s", "10"])
    assert bad.exit_code == 1


def test_config_set_and_show(config_dir):
    assert runner.invoke(app, ["-C", str(config_dir), "config", "set", "min_edge_pct", "3.5"]).exit_code == 0
    shown = runner.invoke(app, ["-C", str(config_dir), "config", "show"])
    assert "min_edge_pct" in shown.output
    assert "3.5" in shown.output


def test_api_reads_the_cli_config_dir(config_dir, monkeypatch):
    from edgescan.api import main
    from edgescan.cli import api_cmd

    calls = []
    monkeypatch.setattr(api_cmd, "run_api", lambda **kw: calls.append(kw))
    assert runner.invoke(app, ["-C", str(config_dir), "api", "--port", "9001"]).exit_code == 0
    assert calls[0]["config_dir"] == config_dir
    assert calls[0]["port"] == 9001

    monkeypatch.setattr(main, "_config_dir", config_dir)
    assert main._settings().db_path == (config_dir / "cli.duckdb").as_posix()
