"""
app/routes/stats.py
Reporting endpoints: admin stats, leaderboard, player history.
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.routes.common import BetRow, bet_to_row, get_caller
from app.services.stats_service import LeaderboardType, leaderboard, platform_stats, player_history
from core.constants import MAX_LEADERBOARD_LIMIT
from database.connection import get_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/stats", tags=["stats"])


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class StatsResponse(BaseModel):
    """Response for GET /stats."""
    total_bets: int
    total_volume: int
    open_bets: int
    settled_bets: int
    winning_bets: int
    total_payout: int
    escrow_held: int
    house_fee_bps: int
    is_active: bool


class LeaderboardRow(BaseModel):
    player: str
    bets: int
    settled: int
    wins: int
    volume: int
    winnings: int
    win_rate: float | None


class LeaderboardResponse(BaseModel):
    """Response for GET /stats/leaderboard."""
    type: str
    count: int
    leaderboard: list[LeaderboardRow]


class HistoryResponse(BaseModel):
    """Response for GET /stats/players/{address}/history."""
    player: str
    count: int
    bets: list[BetRow]


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("", response_model=StatsResponse)
async def get_stats(
    caller: str = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
) -> StatsResponse:
    """Admin: platform totals and escrow held."""
    stats = await platform_stats(session, caller)
    return StatsResponse(**asdict(stats))


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    type: LeaderboardType = Query(LeaderboardType.WINNINGS, description="winnings, volume, or win_rate"),
    limit: int = Query(100, ge=1, le=MAX_LEADERBOARD_LIMIT),
    session: AsyncSession = Depends(get_session),
) -> LeaderboardResponse:
    entries = await leaderboard(session, board=type, limit=limit)
    return LeaderboardResponse(
        type=type.value,
        count=len(entries),
        leaderboard=[LeaderboardRow(**asdict(e)) for e in entries],
    )


@router.get("/players/{address}/history", response_model=HistoryResponse)
async def get_player_history(
    address: str,
    limit: int = Query(50, ge=1, le=MAX_LEADERBOARD_LIMIT),
    caller: str = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
) -> HistoryResponse:
    """The player's own bets; the admin may read anyone's."""
    bets = await player_history(session, caller, address, limit=limit)
    return HistoryResponse(player=address, count=len(bets), bets=[bet_to_row(b) for b in bets])
