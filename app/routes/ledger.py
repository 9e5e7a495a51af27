"""
app/routes/ledger.py
Balances on the bundled ledger: admin deposits and lookups.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.routes.common import get_caller
from app.services.ledger_service import balance_of, deposit
from core.constants import STORAGE_INT_MAX
from database.connection import get_session

router = APIRouter(prefix="/ledger", tags=["ledger"])


class DepositRequest(BaseModel):
    address: str
    amount: int = Field(..., gt=0, le=STORAGE_INT_MAX)


class BalanceResponse(BaseModel):
    address: str
    balance: int


@router.post("/deposit", response_model=BalanceResponse)
async def deposit_endpoint(
    body: DepositRequest,
    caller: str = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
) -> BalanceResponse:
    """Admin: credit an account."""
    balance = await deposit(session, caller, body.address, body.amount)
    return BalanceResponse(address=body.address, balance=balance)


@router.get("/{address}", response_model=BalanceResponse)
async def get_balance(
    address: str,
    session: AsyncSession = Depends(get_session),
) -> BalanceResponse:
    return BalanceResponse(address=address, balance=await balance_of(session, address))
