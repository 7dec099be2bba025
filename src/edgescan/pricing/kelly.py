"""Kelly criterion stake sizing."""

from __future__ import annotations

from dataclasses import dataclass

from edgescan.models.signal import KellyResult


def kelly_fraction(probability: float, odds: float) -> float:
    """f* = (b*p - q) / b with b = odds - 1, q = 1 - p. Can be negative."""
    if odds <= 1:
        raise ValueError(f"decimal odds must be > 1, got {odds}")
    if not 0 < probability <= 1:
        raise ValueError(f"probability must be in (0, 1], got {probability}")
    b = odds - 1
    q = 1 - probability
    return (b * probability - q) / b


def kelly_stake(bankroll: float, probability: float, odds: float, fraction: float = 0.25) -> float:
    """Fractional Kelly stake: max(0, f*) * fraction * bankroll."""
    if bankroll < 0:
        raise ValueError("bankroll must be non-negative")
    return max(0.0, kelly_fraction(probability, odds)) * fraction * bankroll


@dataclass
class BankrollConfig:
    total_bankroll: float = 10000.0
    max_position_pct: float = 0.10
    kelly_multiplier: float = 0.5
    min_edge_for_kelly: float = 0.03


def _sizing_tier(stake: float, bankroll: float) -> str:
    pct = stake / bankroll * 100 if bankroll else 0
    if pct <= 1:
        return "micro"
    if pct <= 3:
        return "small"
    if pct <= 6:
        return "medium"
    if pct <= 10:
        return "large"
    return "max"


def size_signal(
    polymarket_price: float,
    edge_percent: float,
    confidence_score: float,
    config: BankrollConfig | None = None,
) -> KellyResult:
    """
    Size a Polymarket position from a detected edge.

    Buying at price x pays b = (1 - x) / x per unit staked;
    win probability is the price plus the edge, capped at 0.95. The raw Kelly
    fraction is scaled by confidence and the configured multiplier, then capped
    at max_position_pct of the bankroll.
    """
    config = config or BankrollConfig()
    if not 0 < polymarket_price < 1:
        raise ValueError(f"price must be in (0, 1), got {polymarket_price}")
    edge = edge_percent / 100
    confidence = confidence_score / 100
    b = (1 - polymarket_price) / polymarket_price
    p = min(0.95, polymarket_price + edge)
    q = 1 - p
    raw = (b * p - q) / b

    adjusted = max(0.0, raw * confidence) * config.kelly_multiplier
    full_stake = max(0.0, raw * config.total_bankroll)
    suggested = min(adjusted * config.total_bankroll, config.total_bankroll * config.max_position_pct)
    pct = suggested / config.total_bankroll * 100 if config.total_bankroll else 0.0

    warnings: list[str] = []
    if edge < config.min_edge_for_kelly:
        warnings.append(f"Edge below minimum threshold ({config.min_edge_for_kelly * 100:.1f}%)")
    if raw > 0.2:
        warnings.append("High Kelly fraction - consider smaller position")
    if confidence < 0.6:
        warnings.append("Low confidence signal - reduced position size")
    if suggested >= config.total_bankroll * config.max_position_pct:
        warnings.append("Position at maximum size limit")
    if raw <= 0:
        warnings.append("Negative edge - no position recommended")

    return KellyResult(
        kelly_fraction=round(raw, 6),
        suggested_stake=int(suggested),
        max_kelly_stake=int(full_stake),
        half_kelly_stake=int(full_stake * 0.5),
        bankroll_percentage=round(pct, 2),
        sizing_tier=_sizing_tier(suggested, config.total_bankroll),
        warnings=warnings,
    )
