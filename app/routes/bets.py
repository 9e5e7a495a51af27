"""
app/routes/bets.py
Bet endpoints: create, inspect, record start price, settle.
"""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.routes.common import BetRow, bet_to_row, get_caller
from app.routes.platform import LayoutResponse
from app.services.bet_service import create_bet, get_bet, list_bets
from app.services.oracle_service import update_bet_price
from app.services.settlement_engine import settle_bet
from core.constants import STORAGE_INT_MAX
from core.layout import bet_layout, encode_bet
from database.connection import get_session
from database.models import BetStatus

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bets", tags=["bets"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class CreateBetRequest(BaseModel):
    """Body for POST /bets. The caller is the player."""
    amount: int = Field(..., ge=0, le=STORAGE_INT_MAX)
    prediction: bool = Field(..., description="true = up, false = down")
    duration: int = Field(..., description="Window length in seconds")
    token_mint: str


class PriceRequest(BaseModel):
    """Body for POST /bets/{address}/price."""
    start_price: int = Field(..., ge=0, le=STORAGE_INT_MAX)


class SettleRequest(BaseModel):
    """Body for POST /bets/{address}/settle."""
    end_price: int = Field(..., ge=0, le=STORAGE_INT_MAX)


class BetsResponse(BaseModel):
    """Response for GET /bets."""
    count: int
    bets: list[BetRow]


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("", response_model=BetRow, status_code=201)
async def create_bet_endpoint(
    body: CreateBetRequest,
    caller: str = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
) -> BetRow:
    """Open a bet and escrow the stake from the caller."""
    bet = await create_bet(
        session,
        player=caller,
        amount=body.amount,
        prediction=body.prediction,
        duration=body.duration,
        token_mint=body.token_mint,
    )
    return bet_to_row(bet)


@router.get("", response_model=BetsResponse)
async def list_bets_endpoint(
    player: str | None = Query(None, description="Filter by player identity"),
    status: BetStatus | None = Query(None, description="Filter by status: open, settled"),
    limit: int = Query(100, ge=1, le=1000),
    session: AsyncSession = Depends(get_session),
) -> BetsResponse:
    """List bets, newest first."""
    rows = await list_bets(session, player=player, status=status, limit=limit)
    return BetsResponse(count=len(rows), bets=[bet_to_row(b) for b in rows])


@router.get("/{address}", response_model=BetRow)
async def get_bet_endpoint(
    address: str,
    session: AsyncSession = Depends(get_session),
) -> BetRow:
    return bet_to_row(await get_bet(session, address))


@router.get("/{address}/layout", response_model=LayoutResponse)
async def get_bet_layout(
    address: str,
    discriminator: bool = False,
    session: AsyncSession = Depends(get_session),
) -> LayoutResponse:
    """The bet record in its byte-exact account layout."""
    data = encode_bet(bet_layout(await get_bet(session, address)), with_discriminator=discriminator)
    return LayoutResponse(size=len(data), data=data.hex())


@router.post("/{address}/price", response_model=BetRow)
async def update_price_endpoint(
    address: str,
    body: PriceRequest,
    caller: str = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
) -> BetRow:
    """Oracle: record the start price (once)."""
    bet = await update_bet_price(session, caller, address, body.start_price)
    return bet_to_row(bet)


@router.post("/{address}/settle", response_model=BetRow)
async def settle_endpoint(
    address: str,
    body: SettleRequest,
    caller: str = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
) -> BetRow:
    """Oracle: settle an expired bet against the end price."""
    bet = await settle_bet(session, caller, address, body.end_price)
    return bet_to_row(bet)
