"""Team name extraction, normalization and canonical resolution."""

from __future__ import annotations

import re
from typing import Mapping

from edgescan.sports import team_map_for

_STRICT_VS = re.compile(r"^([A-Za-z\s.\-']+?)\s+vs\.?\s+([A-Za-z\s.\-']+?)\??$", re.IGNORECASE)
_LOOSE_VS = re.compile(
    r"([A-Za-z0-9\s.\-']+?)\s+(?:vs\.?|versus|v\.?|@)\s+([A-Za-z0-9\s.\-']+?)(?:\s*[(?]|$)",
    re.IGNORECASE,
)
_BEAT = re.compile(
    r"will (?:the )?([A-Za-z\s.\-']+?)\s+(?:beat|defeat)\s+(?:the )?([A-Za-z\s.\-']+)",
    re.IGNORECASE,
)
_SPLIT = re.compile(r"^(.+?)\s+(?:vs\.?|@|v\.?)\s+(.+?)(?:\s*[-–—]\s*.*)?$", re.IGNORECASE)


def normalize_raw(raw: str) -> str:
    """Lowercase, drop non-alphanumerics, collapse whitespace."""
    s = re.sub(r"[^a-z0-9\s]", "", raw.lower())
    return re.sub(r"\s+", " ", s).strip()


def normalize_team_name(name: str) -> str:
    """normalize_raw plus stripping a leading 'the' and trailing 'fc'/'cf'."""
    s = name.lower().strip()
    s = re.sub(r"^the\s+", "", s)
    s = re.sub(r"\s+(?:fc|cf)$", "", s)
    return normalize_raw(s)


def team_id(full_name: str) -> str:
    """'Toronto Maple Leafs' -> 'toronto_maple_leafs'."""
    return re.sub(r"\s+", "_", normalize_raw(full_name))


def team_set_key(team_a: str, team_b: str) -> str:
    """Order-independent key of two team ids."""
    return "|".join(sorted((team_a, team_b)))


def split_teams(title: str) -> tuple[str, str] | None:
    """'A vs B - extra' / 'A @ B' -> (A, B)."""
    m = _SPLIT.match(title.strip())
    if not m:
        return None
    return m.group(1).strip(), m.group(2).strip()


def _pair(a: str, b: str) -> tuple[str, str] | None:
    a = a.strip().rstrip("?").strip()
    b = b.strip().rstrip("?").strip()
    if len(a) >= 2 and len(b) >= 2:
        return a, b
    return None


def extract_team_names(title: str, question: str = "") -> tuple[str | None, str | None]:
    """
    Pull (home, away) out of free text.

    Tries a strict "A vs B" on the title, then on the question, then a looser
    vs/@ pattern that tolerates trailing "(...)", then "Will A beat B".
    """
    for text in (title, question):
        m = _STRICT_VS.match(text.strip()) if text else None
        if m:
            pair = _pair(m.group(1), m.group(2))
            if pair:
                return pair
    for text in (title, question):
        m = _LOOSE_VS.search(text) if text else None
        if m:
            pair = _pair(m.group(1), m.group(2))
            if pair:
                return pair
    m = _BEAT.search(question or "") or _BEAT.search(title or "")
    if m:
        pair = _pair(m.group(1), m.group(2))
        if pair:
            return pair
    return None, None


def _nickname(name: str) -> str:
    parts = [w for w in name.lower().split() if len(w) > 2]
    return parts[-1] if parts else ""


def _city(name: str) -> str:
    parts = name.split()
    if len(parts) <= 1:
        return parts[0].lower() if parts else ""
    if len(parts[-1]) > 2:
        return " ".join(parts[:-1]).lower()
    return parts[0].lower()


def resolve_team_name(
    raw: str,
    league: str | None = None,
    team_map: Mapping[str, str] | None = None,
    user_mappings: Mapping[str, str] | None = None,
) -> str | None:
    """
    Resolve a raw team string to its official name.

    Order: user mappings, exact official name, abbreviation, nickname (last
    word), city, substring containment, then any long word equal to a nickname.
    """
    if not raw or not raw.strip():
        return None
    norm = normalize_raw(raw)
    if user_mappings and norm in user_mappings:
        return user_mappings[norm]

    mapping = team_map if team_map is not None else team_map_for(league)
    if not mapping:
        return None
    officials = list(dict.fromkeys(mapping.values()))

    for official in officials:
        if normalize_raw(official) == norm:
            return official
    for abbr, official in mapping.items():
        if abbr.lower() == norm:
            return official

    nick = _nickname(raw)
    if len(nick) > 2:
        for official in officials:
            if _nickname(official) == nick:
                return official

    city = _city(raw)
    if len(city) > 2:
        for official in officials:
            if _city(official) == city:
                return official

    if len(norm) > 4:
        for official in officials:
            off = normalize_raw(official)
            if norm in off or off in norm:
                return official

    for word in (w for w in norm.split() if len(w) > 3):
        for official in officials:
            if _nickname(official) == word:
                return official
    return None
