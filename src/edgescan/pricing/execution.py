"""Execution cost model: fee, spread and slippage subtracted from raw edge."""

from __future__ import annotations

import math

from edgescan.models.signal import ExecutionAnalysis, ExecutionDecision

PLATFORM_FEE_RATE = 0.01
STRONG_BET_NET_EDGE = 4.0
BET_NET_EDGE = 2.0
MARGINAL_NET_EDGE = 1.0

# (min volume, spread %) checked top-down
_SPREAD_TIERS = [(500_000, 0.5), (100_000, 1.0), (50_000, 1.5), (10_000, 2.0)]
# (max stake/volume ratio, slippage %)
_SLIPPAGE_TIERS = [(0.001, 0.2), (0.005, 0.5), (0.01, 1.0), (0.02, 2.0)]
_LIQUIDITY_TIERS = [(100_000, "high"), (50_000, "medium"), (10_000, "low")]


def estimate_spread(volume: float) -> float:
    for floor, spread in _SPREAD_TIERS:
        if volume >= floor:
            return spread
    return 3.0


def estimate_slippage(stake: float, volume: float) -> float:
    if volume <= 0:
        return 3.0
    ratio = stake / volume
    for ceiling, slippage in _SLIPPAGE_TIERS:
        if ratio < ceiling:
            return slippage
    return 3.0


def liquidity_tier(volume: float) -> str:
    for floor, tier in _LIQUIDITY_TIERS:
        if volume >= floor:
            return tier
    return "insufficient"


def analyze_execution(
    raw_edge_percent: float,
    volume: float,
    stake: float = 100.0,
    has_polymarket_match: bool = True,
) -> ExecutionAnalysis:
    """Net edge after costs, and the resulting bet decision."""
    if not has_polymarket_match:
        return ExecutionAnalysis(
            raw_edge_percent=raw_edge_percent,
            net_edge_percent=raw_edge_percent,
            execution_decision=ExecutionDecision.NO_BET,
            decision_reason="No Polymarket match - signal only",
        )

    fee = max(0.0, raw_edge_percent) * PLATFORM_FEE_RATE
    spread = estimate_spread(volume)
    slippage = estimate_slippage(stake, volume)
    total = fee + spread + slippage
    net = raw_edge_percent - total
    tier = liquidity_tier(volume)
    max_stake = math.floor(volume * 0.01)

    if tier == "insufficient":
        decision = ExecutionDecision.NO_BET
        reason = "Insufficient liquidity for execution"
    elif net >= STRONG_BET_NET_EDGE:
        decision = ExecutionDecision.STRONG_BET
        reason = f"High conviction: +{net:.1f}% net edge"
    elif net >= BET_NET_EDGE:
        decision = ExecutionDecision.BET
        reason = f"Positive expected value: +{net:.1f}% net edge"
    elif net >= MARGINAL_NET_EDGE and tier == "high":
        decision = ExecutionDecision.MARGINAL
        reason = f"Marginal edge with high liquidity: +{net:.1f}% net"
    else:
        decision = ExecutionDecision.NO_BET
        reason = f"Net edge too thin after costs: {net:.1f}%"

    return ExecutionAnalysis(
        raw_edge_percent=round(raw_edge_percent, 2),
        platform_fee_percent=round(fee, 2),
        estimated_spread_percent=spread,
        estimated_slippage_percent=slippage,
        total_costs_percent=round(total, 2),
        net_edge_percent=round(net, 2),
        liquidity_tier=tier,
        max_stake_without_impact=max_stake,
        execution_decision=decision,
        decision_reason=reason,
    )
