"""Configuration loading (TOML + profile overlays)."""

from edgescan.config.settings import Settings, configure_logging, get_settings, load_config

__all__ = ["Settings", "configure_logging", "get_settings", "load_config"]
