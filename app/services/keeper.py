"""
app/services/keeper.py
Oracle keeper: stamps start prices on fresh bets and settles expired ones.

Called by the scheduler every KEEPER_INTERVAL_SECONDS. The keeper acts as
an ordinary oracle caller, so it goes through the same capability checks
and write-once guards as a manual call would.
"""

import logging
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, col

from app.services.oracle_service import update_bet_price
from app.services.price_feed import PriceFeedClient
from app.services.settlement_engine import settle_bet
from core.clock import unix_now
from core.config import get_settings
from core.errors import SettlementError
from database.connection import async_session
from database.models import Bet, BetStatus, PriceStatus

logger = logging.getLogger(__name__)


class PriceSource(Protocol):
    async def get_price(self, token_mint: str) -> int: ...


async def stamp_start_prices(
    session: AsyncSession,
    caller: str,
    prices: PriceSource,
    now: int | None = None,
) -> int:
    """
    Record a start price on every open bet that has none yet and whose
    window is still running.

    A bet whose window closed unpriced is left for manual handling: stamping
    the current price then would make the start and end prices the same
    reading, and a tie always loses.
    Returns the number of bets stamped.
    """
    current_time = unix_now() if now is None else now
    pending = (await session.execute(
        select(Bet.address, Bet.token_mint)
        .where(
            Bet.status == BetStatus.OPEN,
            Bet.price_status == PriceStatus.UNSET,
            Bet.end_time > current_time,
        )
        .order_by(col(Bet.start_time))
    )).all()

    stamped = 0
    for address, token_mint in pending:
        try:
            price = await prices.get_price(token_mint)
            await update_bet_price(session, caller, address, price)
            stamped += 1
        except SettlementError as exc:
            logger.warning("Keeper skipped start price for %s: %s", address, exc)
        except Exception as exc:
            logger.error("Keeper failed to price bet %s: %s", address, exc)
    return stamped


async def settle_expired_bets(
    session: AsyncSession,
    caller: str,
    prices: PriceSource,
    now: int | None = None,
) -> int:
    """
    Settle every open, priced bet whose window has closed.

    Bets still waiting for a start price are left for the next pass.
    Returns the number of bets settled.
    """
    current_time = unix_now() if now is None else now
    expired = (await session.execute(
        select(Bet.address, Bet.token_mint)
        .where(
            Bet.status == BetStatus.OPEN,
            Bet.price_status == PriceStatus.SET,
            Bet.end_time <= current_time,
        )
        .order_by(col(Bet.end_time))
    )).all()

    settled = 0
    for address, token_mint in expired:
        try:
            price = await prices.get_price(token_mint)
            await settle_bet(session, caller, address, price, now=current_time)
            settled += 1
        except SettlementError as exc:
            logger.warning("Keeper skipped settlement of %s: %s", address, exc)
        except Exception as exc:
            logger.error("Keeper failed to settle bet %s: %s", address, exc)
    return settled


async def run_keeper() -> None:
    """Entry point called by the scheduler."""
    settings = get_settings()
    if not settings.KEEPER_IDENTITY:
        logger.warning("Keeper enabled without KEEPER_IDENTITY; skipping run")
        return

    client = PriceFeedClient()
    try:
        async with async_session() as session:
            now = unix_now()
            stamped = await stamp_start_prices(session, settings.KEEPER_IDENTITY, client, now=now)
            settled = await settle_expired_bets(session, settings.KEEPER_IDENTITY, client, now=now)
        if stamped or settled:
            logger.info("Keeper run: %d start prices stamped, %d bets settled", stamped, settled)
    finally:
        await client.close()
