"""Bet log CRUD and summary."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from edgescan.models.bet import BetEntry, BetStatus
from edgescan.storage.db import from_db, rows_as_dicts, to_db, utcnow

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def settle_profit(status: BetStatus, odds: float, stake: float) -> float | None:
    """won -> stake*(odds-1), lost -> -stake, void -> 0, pending -> None."""
    if status == BetStatus.WON:
        return round(stake * (odds - 1), 2)
    if status == BetStatus.LOST:
        return -stake
    if status == BetStatus.VOID:
        return 0.0
    return None


def create_bet(
    conn: DuckDBPyConnection,
    description: str,
    selection: str,
    odds: float,
    stake: float,
    signal_id: str | None = None,
    placed_at: datetime | None = None,
) -> BetEntry:
    """Validate (odds > 1, stake > 0) and insert. Raises ValueError on bad input."""
    if odds <= 1:
        raise ValueError("odds must be greater than 1")
    if stake <= 0:
        raise ValueError("stake must be greater than 0")
    bet = BetEntry(
        bet_id=uuid.uuid4().hex[:12],
        description=description,
        selection=selection,
        odds=odds,
        stake=stake,
        signal_id=signal_id,
        placed_at=placed_at or utcnow(),
    )
    conn.execute(
        """
        INSERT INTO bet_log (bet_id, description, selection, odds, stake, status, profit_loss, signal_id, placed_at, settled_at)
        VALUES (?, ?, ?, ?, ?, ?, NULL, ?, ?, NULL)
        """,
        [bet.bet_id, bet.description, bet.selection, bet.odds, bet.stake, bet.status.value, bet.signal_id, to_db(bet.placed_at)],
    )
    return bet


def _bet(row: dict[str, Any]) -> BetEntry:
    return BetEntry(
        bet_id=row["bet_id"],
        description=row["description"],
        selection=row["selection"],
        odds=row["odds"],
        stake=row["stake"],
        status=row["status"],
        profit_loss=row["profit_loss"],
        signal_id=row["signal_id"],
        placed_at=from_db(row["placed_at"]),
        settled_at=from_db(row["settled_at"]),
    )


def get_bet(conn: DuckDBPyConnection, bet_id: str) -> BetEntry | None:
    rows = rows_as_dicts(conn, "SELECT * FROM bet_log WHERE bet_id = ?", [bet_id])
    return _bet(rows[0]) if rows else None


def list_bets(conn: DuckDBPyConnection, status: BetStatus | None = None) -> list[BetEntry]:
    if status is not None:
        rows = rows_as_dicts(conn, "SELECT * FROM bet_log WHERE status = ? ORDER BY placed_at DESC", [status.value])
    else:
        rows = rows_as_dicts(conn, "SELECT * FROM bet_log ORDER BY placed_at DESC")
    return [_bet(r) for r in rows]


def settle_bet(conn: DuckDBPyConnection, bet_id: str, status: BetStatus) -> BetEntry | None:
    """Set the outcome and profit/loss. None if the bet does not exist."""
    bet = get_bet(conn, bet_id)
    if bet is None:
        return None
    profit = settle_profit(status, bet.odds, bet.stake)
    settled_at = utcnow() if status != BetStatus.PENDING else None
    conn.execute(
        "UPDATE bet_log SET status = ?, profit_loss = ?, settled_at = ? WHERE bet_id = ?",
        [status.value, profit, to_db(settled_at), bet_id],
    )
    return get_bet(conn, bet_id)


def delete_bet(conn: DuckDBPyConnection, bet_id: str) -> bool:
    if get_bet(conn, bet_id) is None:
        return False
    conn.execute("DELETE FROM bet_log WHERE bet_id = ?", [bet_id])
    return True


def bet_summary(conn: DuckDBPyConnection) -> dict[str, Any]:
    """Count, total staked, settled profit, ROI % on settled stake, win rate % of won+lost."""
    bets = list_bets(conn)
    settled = [b for b in bets if b.status != BetStatus.PENDING]
    decided = [b for b in settled if b.status in (BetStatus.WON, BetStatus.LOST)]
    wins = sum(1 for b in decided if b.status == BetStatus.WON)
    staked_settled = sum(b.stake for b in settled)
    profit = sum(b.profit_loss or 0.0 for b in settled)
    return {
        "count": len(bets),
        "pending": len(bets) - len(settled),
        "total_staked": round(sum(b.stake for b in bets), 2),
        "total_profit": round(profit, 2),
        "roi_percent": round(profit / staked_settled * 100, 2) if staked_settled else 0.0,
        "win_rate_percent": round(wins / len(decided) * 100, 2) if decided else 0.0,
    }
