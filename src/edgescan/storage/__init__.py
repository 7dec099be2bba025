"""DuckDB persistence."""

from edgescan.storage.db import get_connection, init_schema

__all__ = ["get_connection", "init_schema"]
