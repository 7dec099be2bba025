"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir() -> Path:
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    config_dir = config_dir or _find_config_dir()
    default_path = config_dir / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = config_dir / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    raw = load_config(profile, config_dir)
    return Settings.from_dict(raw)


_SCAN_OVERRIDES = {
    "enabled_sports", "sport_allowlist", "window_hours", "min_edge_pct",
    "movement_threshold_pct", "max_simultaneous_active",
}
_BANKROLL_OVERRIDES = {
    "total_bankroll": "total",
    "kelly_multiplier": "kelly_multiplier",
    "max_position_pct": "max_position_pct",
}


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        storage: dict[str, Any] | None = None,
        odds_api: dict[str, Any] | None = None,
        polymarket: dict[str, Any] | None = None,
        firecrawl: dict[str, Any] | None = None,
        scan: dict[str, Any] | None = None,
        bankroll: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.storage = storage or {}
        self.odds_api = odds_api or {}
        self.polymarket = polymarket or {}
        self.firecrawl = firecrawl or {}
        self.scan = scan or {}
        self.bankroll = bankroll or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            storage=raw.get("storage"),
            odds_api=raw.get("odds_api"),
            polymarket=raw.get("polymarket"),
            firecrawl=raw.get("firecrawl"),
            scan=raw.get("scan"),
            bankroll=raw.get("bankroll"),
            logging=raw.get("logging"),
        )

    def with_overrides(self, overrides: dict[str, Any]) -> Settings:
        """Copy with runtime scan_config values applied over the [scan] and [bankroll] tables."""
        scan = dict(self.scan)
        bankroll = dict(self.bankroll)
        for key, value in overrides.items():
            if key in _BANKROLL_OVERRIDES:
                bankroll[_BANKROLL_OVERRIDES[key]] = value
            elif key in _SCAN_OVERRIDES:
                scan[key] = value
        return Settings(
            storage=self.storage,
            odds_api=self.odds_api,
            polymarket=self.polymarket,
            firecrawl=self.firecrawl,
            scan=scan,
            bankroll=bankroll,
            logging=self.logging,
        )

    # Convenience accessors with defaults
    @property
    def db_path(self) -> str:
        return self.storage.get("db_path", "data/edgescan.duckdb")

    @property
    def odds_api_base(self) -> str:
        return self.odds_api.get("base_url", "https://api.the-odds-api.com/v4")

    @property
    def odds_api_key(self) -> str | None:
        # A key set in config takes precedence over ODDS_API_KEY in the environment.
        return self.odds_api.get("api_key") or os.environ.get("ODDS_API_KEY")

    @property
    def odds_regions(self) -> str:
        return self.odds_api.get("regions", "us,uk,eu")

    @property
    def odds_markets(self) -> str:
        return self.odds_api.get("markets", "h2h")

    @property
    def sharp_books(self) -> list[str]:
        return list(self.odds_api.get("sharp_books") or ["pinnacle", "betfair_ex_eu", "matchbook"])

    @property
    def sharp_book_weight(self) -> float:
        return float(self.odds_api.get("sharp_book_weight", 2.0))

    @property
    def gamma_api_base(self) -> str:
        return self.polymarket.get("gamma_api_base", "https://gamma-api.polymarket.com")

    @property
    def clob_api_base(self) -> str:
        return self.polymarket.get("clob_api_base", "https://clob.polymarket.com")

    @property
    def page_size(self) -> int:
        return int(self.polymarket.get("page_size", 100))

    @property
    def max_events(self) -> int:
        return int(self.polymarket.get("max_events", 500))

    @property
    def price_batch_size(self) -> int:
        return int(self.polymarket.get("price_batch_size", 50))

    @property
    def batch_delay_sec(self) -> float:
        return float(self.polymarket.get("batch_delay_sec", 0.2))

    @property
    def http_timeout_sec(self) -> float:
        return float(self.polymarket.get("http_timeout_sec", 30.0))

    @property
    def firecrawl_api_key(self) -> str | None:
        return self.firecrawl.get("api_key") or os.environ.get("FIRECRAWL_API_KEY")

    @property
    def firecrawl_api_base(self) -> str:
        return self.firecrawl.get("base_url", "https://api.firecrawl.dev/v1")

    @property
    def enabled_sports(self) -> list[str]:
        return list(self.scan.get("enabled_sports") or ["basketball_nba", "icehockey_nhl"])

    @property
    def sport_allowlist(self) -> list[str]:
        return list(self.scan.get("sport_allowlist") or [])

    @property
    def window_hours(self) -> float:
        return float(self.scan.get("window_hours", 168))

    @property
    def min_edge_pct(self) -> float:
        return float(self.scan.get("min_edge_pct", 2.0))

    @property
    def movement_threshold_pct(self) -> float:
        return float(self.scan.get("movement_threshold_pct", 6.0))

    @property
    def max_simultaneous_active(self) -> int:
        return int(self.scan.get("max_simultaneous_active", 5))

    @property
    def total_bankroll(self) -> float:
        return float(self.bankroll.get("total", 10000))

    @property
    def kelly_multiplier(self) -> float:
        return float(self.bankroll.get("kelly_multiplier", 0.5))

    @property
    def max_position_pct(self) -> float:
        return float(self.bankroll.get("max_position_pct", 0.10))

    @property
    def default_stake(self) -> float:
        return float(self.bankroll.get("default_stake", 100))

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
