"""Market classification and Gamma market field extraction."""

from __future__ import annotations

import json
import math
import re
from typing import Any

_TOTAL = [
    r"\bover\s+\d+\.?\d*",
    r"\bunder\s+\d+\.?\d*",
    r"total\s+(?:points|goals|runs|score)",
    r"score\s+(?:over|under)",
    r"combined\s+(?:score|points|total)",
    r"o/u|over/under",
    r"more than \d+|less than \d+|at least \d+|exactly \d+",
]
_SPREAD = [
    r"cover\s+[-+]?\d+\.?\d*",
    r"win\s+by\s+\d+\+?",
    r"(?<![\w.])[-+]\d+\.5\b",
    r"spread|handicap|margin\s+of",
]
_PROP = [
    r"\d+\+?\s+(?:points|rebounds|assists|yards|touchdowns|goals|strikeouts|home runs|hits|saves)",
    r"throw\s+\d+\+?\s+(?:tds|touchdowns)",
    r"rush\s+for\s+\d+\+?\s+yards",
]
FUTURES_KEYWORDS = (
    r"championship|winner|mvp|award|season|division|conference|super bowl|world series|stanley cup"
)
_FUTURES = re.compile(FUTURES_KEYWORDS, re.IGNORECASE)

# Non-tradeable as head-to-head: season-long and award markets.
_BLOCKLIST = re.compile(
    r"\b(?:mvp|rookie of the year|coach of the year|award|win the (?:[\w.]+\s+){0,3}?(?:championship|title|league|cup|series|trophy|pennant)|"
    r"make the playoffs|regular season|top scorer|golden boot|relegated|finals mvp)\b",
    re.IGNORECASE,
)


def _any(patterns: list[str], text: str) -> bool:
    return any(re.search(p, text, re.IGNORECASE) for p in patterns)


def detect_market_type(question: str, gamma_type: str | None = None) -> str:
    """
    h2h | total | spread | player_prop | futures.

    Gamma's sportsMarketType wins when it is recognizable; otherwise the
    question text decides, defaulting to h2h.
    """
    g = (gamma_type or "").lower()
    if g in ("moneyline", "h2h", "winner"):
        return "h2h"
    if "total" in g or "over" in g or "under" in g:
        return "total"
    if "spread" in g or "handicap" in g:
        return "spread"

    q = question.lower()
    if _any(_TOTAL, q):
        return "total"
    if _any(_SPREAD, q):
        return "spread"
    if _any(_PROP, q):
        return "player_prop"
    if _FUTURES.search(q):
        return "futures"
    return "h2h"


def extract_threshold(question: str) -> float | None:
    """Line of a total, spread or prop ('over 220.5' -> 220.5, 'cover -5.5' -> -5.5)."""
    q = question.lower()
    for pattern in (
        r"(?:over|under)\s+(\d+\.?\d*)",
        r"(?<![\w.])([-+]\d+\.?\d*)",
        r"win\s+by\s+(\d+)\+?",
        r"(?:score|throw|record|rush\s+for)\s+(\d+)\+?",
        r"total.*?(\d+\.?\d*)",
    ):
        m = re.search(pattern, q)
        if m:
            return float(m.group(1))
    return None


def is_blocked(text: str) -> bool:
    """True for futures/award style markets that never pair with a single game."""
    return bool(_BLOCKLIST.search(text))


def _looks_like_h2h(market: dict[str, Any]) -> bool:
    gamma_type = str(market.get("sportsMarketType") or "").lower()
    question = str(market.get("question") or "").lower()
    if any(k in gamma_type for k in ("total", "spread", "over", "under")):
        return False
    if re.search(r"over\s+\d+|under\s+\d+|o/u|spread|handicap|[+-]\d+\.5", question):
        return False
    if gamma_type in ("h2h", "moneyline", "winner"):
        return True
    if re.search(r"\bvs\.?\s+|\bbeat\b|\bwin\s+(?:against|vs)", question):
        return True
    return not gamma_type and not re.search(r"\d+\.?\d*\s*(?:points|goals|runs|score)", question)


def select_h2h_market(markets: list[dict[str, Any]]) -> dict[str, Any] | None:
    """First moneyline-looking market of an event, skipping totals and spreads."""
    for market in markets:
        if _looks_like_h2h(market):
            return market
    return None


def _json_list(value: Any) -> list[Any] | None:
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, list) else None
    return None


def extract_token_ids(market: dict[str, Any]) -> tuple[str | None, str | None]:
    """(yes, no) CLOB token ids from clobTokenIds, tokens[] or outcomes[]."""
    ids = _json_list(market.get("clobTokenIds"))
    if ids and len(ids) >= 2 and ids[0]:
        return str(ids[0]), str(ids[1]) if ids[1] else None

    tokens = market.get("tokens")
    if isinstance(tokens, list) and len(tokens) >= 2:
        vals = [t.get("token_id") if isinstance(t, dict) else t for t in tokens[:2]]
        if vals[0]:
            return str(vals[0]), str(vals[1]) if vals[1] else None

    outcomes = market.get("outcomes")
    if isinstance(outcomes, list) and len(outcomes) >= 2 and all(isinstance(o, dict) for o in outcomes[:2]):
        vals = [o.get("clobTokenId") or o.get("tokenId") for o in outcomes[:2]]
        if vals[0]:
            return str(vals[0]), str(vals[1]) if vals[1] else None
    return None, None


def _price(value: Any) -> float:
    try:
        p = float(value)
    except (TypeError, ValueError):
        return 0.5
    if math.isnan(p) or not 0 <= p <= 1:
        return 0.5
    return p


def parse_outcome_prices(market: dict[str, Any]) -> tuple[float, float]:
    """(yes, no) prices from outcomePrices (list or JSON string); 0.5 when missing or invalid."""
    prices = _json_list(market.get("outcomePrices"))
    if prices and len(prices) >= 2:
        return _price(prices[0]), _price(prices[1])
    if "yes_price" in market:
        return _price(market.get("yes_price")), _price(market.get("no_price"))
    return 0.5, 0.5
