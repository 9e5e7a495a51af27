"""
app/routes/common.py
Shared route helpers: caller identity and error-to-status mapping.
"""

from fastapi import Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.errors import (
    BetAlreadySettled,
    BetNotExpired,
    BetNotFound,
    PlatformAlreadyInitialized,
    PlatformInactive,
    PlatformNotInitialized,
    PriceAlreadySet,
    SettlementError,
    Unauthorized,
)
from database.models import Bet

STATUS_BY_ERROR: dict[type[SettlementError], int] = {
    Unauthorized: 403,
    BetNotFound: 404,
    PlatformNotInitialized: 404,
    PlatformInactive: 409,
    BetAlreadySettled: 409,
    BetNotExpired: 409,
    PriceAlreadySet: 409,
    PlatformAlreadyInitialized: 409,
}


def get_caller(x_caller: str = Header(..., description="Base58 identity of the caller")) -> str:
    """Identity of the (already authenticated) caller."""
    return x_caller


async def settlement_error_handler(_request: Request, exc: SettlementError) -> JSONResponse:
    """Render a SettlementError as {"error", "code", "message"}."""
    return JSONResponse(
        status_code=STATUS_BY_ERROR.get(type(exc), 400),
        content=exc.to_dict(),
    )


# ------------------------------------------------------------------
# Shared response model
# ------------------------------------------------------------------

class BetRow(BaseModel):
    """A single bet record."""
    address: str
    player: str
    amount: int
    prediction: bool
    token_mint: str
    start_time: int
    end_time: int
    price_status: str
    start_price: int
    end_price: int
    status: str
    is_settled: bool
    is_winner: bool
    payout: int
    settled_at: str | None


def bet_to_row(b: Bet) -> BetRow:
    return BetRow(
        address=b.address,
        player=b.player,
        amount=b.amount,
        prediction=b.prediction,
        token_mint=b.token_mint,
        start_time=b.start_time,
        end_time=b.end_time,
        price_status=b.price_status.value,
        start_price=b.start_price,
        end_price=b.end_price,
        status=b.status.value,
        is_settled=b.is_settled,
        is_winner=b.is_winner,
        payout=b.payout,
        settled_at=b.settled_at.isoformat() if b.settled_at else None,
    )
