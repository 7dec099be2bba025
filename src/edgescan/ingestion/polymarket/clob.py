"""Polymarket CLOB REST client - batched live prices and market tokens."""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog

from edgescan.ingestion.http import http_client

log = structlog.get_logger(__name__)

CLOB_API_BASE = "https://clob.polymarket.com"
MIN_VALID_PRICE = 0.05
MAX_VALID_PRICE = 0.95


def validate_price(price: Any) -> float | None:
    """Price as float when within [0.05, 0.95], else None."""
    try:
        p = float(price)
    except (TypeError, ValueError):
        return None
    if MIN_VALID_PRICE <= p <= MAX_VALID_PRICE:
        return p
    return None


def _batches(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def fetch_prices(
    token_ids: list[str],
    base_url: str = CLOB_API_BASE,
    batch_size: int = 50,
    batch_delay_sec: float = 0.2,
    side: str = "BUY",
    client: httpx.Client | None = None,
    timeout: float = 30.0,
) -> dict[str, float]:
    """
    POST /prices in batches; token_id -> raw price for every token the CLOB
    answered. Failed batches are logged and skipped. No validation here.
    """
    url = f"{base_url.rstrip('/')}/prices"
    unique = list(dict.fromkeys(t for t in token_ids if t))
    out: dict[str, float] = {}
    with http_client(client, timeout) as c:
        for i, batch in enumerate(_batches(unique, batch_size)):
            if i and batch_delay_sec > 0:
                time.sleep(batch_delay_sec)
            body = [{"token_id": t, "side": side} for t in batch]
            try:
                resp = c.post(url, json=body)
                resp.raise_for_status()
                data = resp.json()
            except (httpx.HTTPError, ValueError) as e:
                log.warning("clob_batch_failed", batch=i, size=len(batch), error=str(e))
                continue
            if not isinstance(data, dict):
                continue
            for token_id, quote in data.items():
                raw = quote.get(side) if isinstance(quote, dict) else quote
                try:
                    out[str(token_id)] = float(raw)
                except (TypeError, ValueError):
                    continue
    return out


def get_market_tokens(
    condition_id: str,
    base_url: str = CLOB_API_BASE,
    client: httpx.Client | None = None,
    timeout: float = 15.0,
) -> tuple[str | None, str | None]:
    """(yes, no) token ids from /markets/{condition_id}; (None, None) when unavailable."""
    url = f"{base_url.rstrip('/')}/markets/{condition_id}"
    with http_client(client, timeout) as c:
        try:
            resp = c.get(url)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.debug("clob_market_lookup_failed", condition_id=condition_id, error=str(e))
            return None, None
    tokens = data.get("tokens") if isinstance(data, dict) else None
    if not isinstance(tokens, list):
        return None, None
    tokens = [t for t in tokens if isinstance(t, dict)]
    by_outcome = {str(t.get("outcome", "")).lower(): t.get("token_id") for t in tokens}
    if "yes" in by_outcome:
        return by_outcome.get("yes"), by_outcome.get("no")
    # team-named outcomes: first listed is the yes side
    if len(tokens) >= 2:
        return tokens[0].get("token_id"), tokens[1].get("token_id")
    return None, None
