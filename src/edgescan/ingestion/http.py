"""Shared httpx client handling."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import httpx


@contextmanager
def http_client(client: httpx.Client | None = None, timeout: float = 30.0) -> Iterator[httpx.Client]:
    """Yield the caller's client untouched, or a fresh one closed on exit."""
    if client is not None:
        yield client
        return
    with httpx.Client(timeout=timeout) as owned:
        yield owned
