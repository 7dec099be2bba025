"""Firecrawl scrape of Polymarket game pages - fallback price source."""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from edgescan.ingestion.http import http_client
from edgescan.sports import get_sport

log = structlog.get_logger(__name__)

FIRECRAWL_API_BASE = "https://api.firecrawl.dev/v1"

# "lal48¢" - team code then price in cents
_PRICE = re.compile(r"([a-z]{2,5})(\d{1,2})¢", re.IGNORECASE)


class ScrapedGame(BaseModel):
    sport: str
    team1_code: str
    team1_name: str
    team1_price: float
    team2_code: str
    team2_name: str
    team2_price: float

    @property
    def condition_id(self) -> str:
        return f"firecrawl_{self.sport.lower()}_{self.team1_code}_{self.team2_code}"


def parse_games_from_markdown(markdown: str, team_map: dict[str, str], sport: str) -> list[ScrapedGame]:
    """Pair consecutive price tokens into games; keep pairs where a team code is known."""
    matches = list(_PRICE.finditer(markdown))
    games: list[ScrapedGame] = []
    for first, second in zip(matches[0::2], matches[1::2]):
        c1, c2 = first.group(1).lower(), second.group(1).lower()
        if c1 not in team_map and c2 not in team_map:
            continue
        games.append(
            ScrapedGame(
                sport=sport,
                team1_code=c1,
                team1_name=team_map.get(c1, c1.upper()),
                team1_price=int(first.group(2)) / 100,
                team2_code=c2,
                team2_name=team_map.get(c2, c2.upper()),
                team2_price=int(second.group(2)) / 100,
            )
        )
    return games


def scrape_markdown(
    url: str,
    api_key: str,
    base_url: str = FIRECRAWL_API_BASE,
    client: httpx.Client | None = None,
    timeout: float = 60.0,
) -> str:
    """POST /scrape and return the page markdown ('' when Firecrawl returns none)."""
    body: dict[str, Any] = {
        "url": url,
        "formats": ["markdown"],
        "onlyMainContent": True,
        "waitFor": 3000,
    }
    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
    with http_client(client, timeout) as c:
        resp = c.post(f"{base_url.rstrip('/')}/scrape", json=body, headers=headers)
        resp.raise_for_status()
        data = resp.json()
    if not isinstance(data, dict):
        return ""
    inner = data.get("data") if isinstance(data.get("data"), dict) else {}
    return inner.get("markdown") or data.get("markdown") or ""


def scrape_sport_games(
    league: str,
    api_key: str,
    base_url: str = FIRECRAWL_API_BASE,
    client: httpx.Client | None = None,
) -> list[ScrapedGame]:
    """Scrape one league's Polymarket games page. Unknown leagues yield nothing."""
    sport = get_sport(league)
    if sport is None or not sport.polymarket_url:
        log.warning("firecrawl_unsupported_league", league=league)
        return []
    markdown = scrape_markdown(sport.polymarket_url, api_key, base_url, client)
    if not markdown:
        log.info("firecrawl_empty_page", league=sport.name)
        return []
    games = parse_games_from_markdown(markdown, sport.team_map, sport.name)
    log.info("firecrawl_games_parsed", league=sport.name, count=len(games))
    return games
