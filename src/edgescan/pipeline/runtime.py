"""Settings as seen by a pipeline run: TOML config plus stored scan_config overrides."""

from __future__ import annotations

from typing import TYPE_CHECKING

from edgescan.storage.mappings import get_scan_config

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from edgescan.config import Settings


def effective_settings(conn: DuckDBPyConnection, settings: Settings) -> Settings:
    overrides = get_scan_config(conn)
    return settings.with_overrides(overrides) if overrides else settings
