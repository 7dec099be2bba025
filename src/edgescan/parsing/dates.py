"""Event start-time resolution from imperfect Polymarket date sources."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Any, Callable

_SLUG_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_MONTH_PHRASE = re.compile(
    r"\b(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+(\d{1,2})(?:st|nd|rd|th)?(?:,?\s+(\d{4}))?\b",
    re.IGNORECASE,
)
_NUMERIC_PHRASE = re.compile(r"\b(\d{1,2})/(\d{1,2})(?:/(\d{2,4}))?\b")

# Date-only values are pinned to the end of the UTC day.
PLACEHOLDER_TIME = time(23, 59, 59)

ScheduleLookup = Callable[[str | None, str | None], datetime | None]


@dataclass
class ResolvedDate:
    value: datetime
    source: str
    is_placeholder: bool


def parse_iso(value: Any) -> tuple[datetime, bool] | None:
    """Parse an ISO timestamp or date; returns (utc datetime, is_placeholder)."""
    if not value or not isinstance(value, str):
        return None
    s = value.strip()
    if len(s) == 10 and _SLUG_DATE.fullmatch(s):
        try:
            d = datetime.strptime(s, "%Y-%m-%d")
        except ValueError:
            return None
        return datetime.combine(d.date(), PLACEHOLDER_TIME, tzinfo=timezone.utc), True
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    placeholder = dt.time().replace(microsecond=0) in (time(0, 0, 0), PLACEHOLDER_TIME)
    return dt, placeholder


def _date_only(year: int, month: int, day: int) -> datetime | None:
    try:
        return datetime(year, month, day, PLACEHOLDER_TIME.hour, PLACEHOLDER_TIME.minute,
                        PLACEHOLDER_TIME.second, tzinfo=timezone.utc)
    except ValueError:
        return None


def _roll_forward(dt: datetime | None, now: datetime, explicit_year: bool) -> datetime | None:
    # A yearless date well in the past refers to next year.
    if dt is None or explicit_year:
        return dt
    if dt < now - timedelta(days=30):
        return _date_only(dt.year + 1, dt.month, dt.day)
    return dt


def date_from_slug(slug: str | None) -> datetime | None:
    if not slug:
        return None
    m = _SLUG_DATE.search(slug)
    if not m:
        return None
    return _date_only(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def date_from_text(text: str, now: datetime | None = None) -> datetime | None:
    """'January 15', 'Jan 15, 2026' or '1/15' in free text."""
    if not text:
        return None
    now = now or datetime.now(timezone.utc)
    m = _MONTH_PHRASE.search(text)
    if m:
        year = int(m.group(3)) if m.group(3) else now.year
        dt = _date_only(year, _MONTHS[m.group(1).lower()[:3]], int(m.group(2)))
        return _roll_forward(dt, now, bool(m.group(3)))
    m = _NUMERIC_PHRASE.search(text)
    if m:
        year = now.year
        if m.group(3):
            year = int(m.group(3))
            if year < 100:
                year += 2000
        dt = _date_only(year, int(m.group(1)), int(m.group(2)))
        return _roll_forward(dt, now, bool(m.group(3)))
    return None


def resolve_event_date(
    event: dict[str, Any],
    market: dict[str, Any] | None = None,
    teams: tuple[str | None, str | None] = (None, None),
    schedule_lookup: ScheduleLookup | None = None,
    now: datetime | None = None,
) -> ResolvedDate | None:
    """
    Best available start time for a Gamma event.

    Priority: date in the slug, explicit start (event startDate or market
    gameStartTime), explicit end date, a date phrase in title/question, then
    the bookmaker schedule for the same teams. Date-only sources are flagged
    as placeholders.
    """
    market = market or {}
    slug_dt = date_from_slug(event.get("slug") or market.get("slug"))
    if slug_dt is not None:
        # A real kickoff beats the bare slug date. The slug carries the local US
        # date, so evening games start on the following UTC day.
        for key in ("gameStartTime", "startDate"):
            parsed = parse_iso(market.get(key) or event.get(key))
            if parsed and not parsed[1] and abs((parsed[0].date() - slug_dt.date()).days) <= 1:
                return ResolvedDate(parsed[0], "slug", False)
        return ResolvedDate(slug_dt, "slug", True)

    for source, value in (
        ("start_date", market.get("gameStartTime") or event.get("startDate") or market.get("startDate")),
        ("end_date", event.get("endDate") or market.get("endDate")),
    ):
        parsed = parse_iso(value)
        if parsed:
            return ResolvedDate(parsed[0], source, parsed[1])

    text = " ".join(str(x) for x in (event.get("title"), market.get("question"), event.get("question")) if x)
    text_dt = date_from_text(text, now)
    if text_dt is not None:
        return ResolvedDate(text_dt, "text", True)

    if schedule_lookup is not None and (teams[0] or teams[1]):
        scheduled = schedule_lookup(teams[0], teams[1])
        if scheduled is not None:
            if scheduled.tzinfo is None:
                scheduled = scheduled.replace(tzinfo=timezone.utc)
            return ResolvedDate(scheduled, "bookmaker", False)
    return None


def hours_until(dt: datetime, now: datetime | None = None) -> float:
    now = now or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - now).total_seconds() / 3600


def within_window(dt: datetime, window_hours: float, now: datetime | None = None) -> bool:
    """0 <= hours until start <= window_hours."""
    h = hours_until(dt, now)
    return 0 <= h <= window_hours
