"""Odds math, stake sizing, execution costs and signal scoring."""

from edgescan.pricing.execution import analyze_execution, estimate_slippage, estimate_spread, liquidity_tier
from edgescan.pricing.kelly import BankrollConfig, kelly_fraction, kelly_stake, size_signal
from edgescan.pricing.odds import (
    edge_percent,
    expected_value,
    fair_probabilities,
    implied_probability,
    remove_vig,
)
from edgescan.pricing.scoring import combined_urgency, confidence_score, urgency_from_edge, urgency_from_time

__all__ = [
    "BankrollConfig",
    "analyze_execution",
    "combined_urgency",
    "confidence_score",
    "edge_percent",
    "estimate_slippage",
    "estimate_spread",
    "expected_value",
    "fair_probabilities",
    "implied_probability",
    "kelly_fraction",
    "kelly_stake",
    "liquidity_tier",
    "remove_vig",
    "size_signal",
    "urgency_from_edge",
    "urgency_from_time",
]
