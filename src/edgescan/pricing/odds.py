"""Odds arithmetic: implied probability, edge, EV, vig removal."""

from __future__ import annotations

from typing import Iterable


def _check_odds(odds: float) -> None:
    if odds <= 1:
        raise ValueError(f"decimal odds must be > 1, got {odds}")


def _check_probability(p: float) -> None:
    if not 0 < p <= 1:
        raise ValueError(f"probability must be in (0, 1], got {p}")


def implied_probability(odds: float) -> float:
    _check_odds(odds)
    return 1 / odds


def edge_percent(probability: float, odds: float) -> float:
    """(p - 1/o) * 100."""
    _check_probability(probability)
    return (probability - implied_probability(odds)) * 100


def expected_value(probability: float, odds: float, stake: float = 100.0) -> float:
    """EV of a stake: p * (o - 1) * stake - (1 - p) * stake."""
    _check_probability(probability)
    _check_odds(odds)
    return probability * (odds - 1) * stake - (1 - probability) * stake


def fair_odds(probability: float) -> float:
    _check_probability(probability)
    return 1 / probability


def remove_vig(odds: Iterable[float]) -> list[float]:
    """Normalize one book's implied probabilities so they sum to 1."""
    raw = [implied_probability(o) for o in odds]
    total = sum(raw)
    return [r / total for r in raw]


def fair_probabilities(
    book_prices: dict[str, dict[str, float]],
    sharp_books: Iterable[str] = (),
    sharp_weight: float = 1.0,
) -> dict[str, float]:
    """
    Vig-free consensus probability per outcome.

    book_prices maps bookmaker -> {outcome: decimal odds}. Each book that quotes
    every outcome is de-vigged on its own, then books are averaged (sharp books
    count sharp_weight times). Books missing an outcome are ignored.
    """
    outcomes: set[str] = set()
    for prices in book_prices.values():
        outcomes.update(prices)
    if len(outcomes) < 2:
        return {}
    sharp = {s.lower() for s in sharp_books}
    totals = {o: 0.0 for o in outcomes}
    weight_sum = 0.0
    ordered = sorted(outcomes)
    for book, prices in book_prices.items():
        if set(prices) != outcomes:
            continue
        try:
            fair = remove_vig(prices[o] for o in ordered)
        except ValueError:
            continue
        w = sharp_weight if book.lower() in sharp else 1.0
        for o, p in zip(ordered, fair):
            totals[o] += p * w
        weight_sum += w
    if weight_sum == 0:
        return {}
    return {o: totals[o] / weight_sum for o in ordered}
