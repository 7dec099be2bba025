"""Polymarket Gamma (discovery) and CLOB (prices) clients."""
