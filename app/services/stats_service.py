"""
app/services/stats_service.py
Read-only reporting: platform stats for the admin, player leaderboard,
and per-player bet history.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, func, col

from app.services.access import AccessPolicy, Capability
from app.services.bet_service import list_bets
from app.services.platform_service import load_platform
from core.constants import MAX_LEADERBOARD_LIMIT
from database.models import Bet, BetStatus, LedgerAccount

logger = logging.getLogger(__name__)


class LeaderboardType(str, Enum):
    WINNINGS = "winnings"
    VOLUME = "volume"
    WIN_RATE = "win_rate"


@dataclass
class PlatformStats:
    total_bets: int
    total_volume: int
    open_bets: int
    settled_bets: int
    winning_bets: int
    total_payout: int
    escrow_held: int
    house_fee_bps: int
    is_active: bool


@dataclass
class LeaderboardEntry:
    player: str
    bets: int
    settled: int
    wins: int
    volume: int
    winnings: int
    win_rate: float | None


async def platform_stats(session: AsyncSession, caller: str) -> PlatformStats:
    """Admin view of platform totals and escrow currently held by bets."""
    platform = await load_platform(session)
    AccessPolicy(platform).require(caller, Capability.ADMIN)

    counts = (await session.execute(
        select(
            func.coalesce(func.sum(case((Bet.status == BetStatus.OPEN, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Bet.status == BetStatus.SETTLED, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Bet.is_winner == True, 1), else_=0)), 0),  # noqa: E712
            func.coalesce(func.sum(Bet.payout), 0),
        )
    )).one()

    escrow_held = (await session.execute(
        select(func.coalesce(func.sum(LedgerAccount.balance), 0))
        .where(LedgerAccount.address.in_(select(Bet.address)))
    )).scalar() or 0

    return PlatformStats(
        total_bets=platform.total_bets,
        total_volume=platform.total_volume,
        open_bets=int(counts[0]),
        settled_bets=int(counts[1]),
        winning_bets=int(counts[2]),
        total_payout=int(counts[3]),
        escrow_held=int(escrow_held),
        house_fee_bps=platform.house_fee_bps,
        is_active=platform.is_active,
    )


async def leaderboard(
    session: AsyncSession,
    board: LeaderboardType = LeaderboardType.WINNINGS,
    limit: int = 100,
) -> list[LeaderboardEntry]:
    """Players ranked by total payout, staked volume, or win rate."""
    limit = max(1, min(limit, MAX_LEADERBOARD_LIMIT))

    settled = func.sum(case((Bet.status == BetStatus.SETTLED, 1), else_=0))
    wins = func.sum(case((Bet.is_winner == True, 1), else_=0))  # noqa: E712
    rows = (await session.execute(
        select(
            Bet.player,
            func.count(),
            settled,
            wins,
            func.sum(Bet.amount),
            func.sum(Bet.payout),
        ).group_by(Bet.player)
    )).all()

    entries = [
        LeaderboardEntry(
            player=player,
            bets=n_bets,
            settled=int(n_settled or 0),
            wins=int(n_wins or 0),
            volume=int(volume or 0),
            winnings=int(winnings or 0),
            win_rate=round(n_wins / n_settled, 4) if n_settled else None,
        )
        for player, n_bets, n_settled, n_wins, volume, winnings in rows
    ]

    if board == LeaderboardType.VOLUME:
        entries.sort(key=lambda e: (e.volume, e.bets), reverse=True)
    elif board == LeaderboardType.WIN_RATE:
        entries = [e for e in entries if e.win_rate is not None]
        entries.sort(key=lambda e: (e.win_rate, e.settled), reverse=True)
    else:
        entries.sort(key=lambda e: (e.winnings, e.wins), reverse=True)

    return entries[:limit]


async def player_history(session: AsyncSession, caller: str, player: str, limit: int = 50) -> list[Bet]:
    """A player's bets, newest first. Readable by that player or the admin."""
    platform = await load_platform(session)
    AccessPolicy(platform).require(caller, Capability.RECORD_OWNER, owner=player)
    return await list_bets(session, player=player, limit=limit)
