"""Scan pipeline steps: odds ingest, Polymarket sync and refresh, signal detection, watch mode."""
