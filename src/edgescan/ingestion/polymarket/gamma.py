"""Polymarket Gamma API client - paginated sports event discovery."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from edgescan.ingestion.http import http_client

log = structlog.get_logger(__name__)

GAMMA_API_BASE = "https://gamma-api.polymarket.com"


def fetch_sports_events(
    base_url: str = GAMMA_API_BASE,
    page_size: int = 100,
    max_events: int = 500,
    tag_slug: str = "sports",
    client: httpx.Client | None = None,
    timeout: float = 30.0,
) -> list[dict[str, Any]]:
    """
    Page through /events?active=true&closed=false&tag_slug=sports.

    Stops on an empty page, a short page, or once max_events have been
    collected. An HTTP error or non-JSON body on a later page keeps what was
    fetched so far; an error on the first page is raised.
    """
    url = f"{base_url.rstrip('/')}/events"
    events: list[dict[str, Any]] = []
    offset = 0
    with http_client(client, timeout) as c:
        while len(events) < max_events:
            params = {
                "active": "true",
                "closed": "false",
                "tag_slug": tag_slug,
                "limit": page_size,
                "offset": offset,
            }
            try:
                resp = c.get(url, params=params)
                resp.raise_for_status()
                page = resp.json()
            except (httpx.HTTPError, ValueError) as e:
                if not events:
                    raise
                log.warning("gamma_page_failed", offset=offset, error=str(e))
                break
            if not isinstance(page, list) or not page:
                break
            events.extend(page)
            if len(page) < page_size:
                break
            offset += page_size
    log.info("gamma_events_fetched", count=min(len(events), max_events))
    return events[:max_events]
