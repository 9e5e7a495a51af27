"""
app/services/bet_service.py
Bet creation with stake escrow, plus read access to bet records.

create_bet is a single transaction: the record, the escrow transfer from
the player into the bet's own address, the platform counter increments, and
the BetCreated log entry commit together or not at all.
"""

import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, col

from app.services.escrow import EscrowGateway, LedgerEscrow, transfer
from app.services.events import BetCreated, EventBus, event_bus, record_event
from app.services.platform_service import load_platform
from core.clock import unix_now
from core.constants import STORAGE_INT_MAX
from core.errors import (
    BetNotFound,
    BetTooLarge,
    BetTooSmall,
    InvalidParameter,
    PlatformInactive,
)
from core.identity import new_address, validate_address
from core.settlement_math import checked_add
from core.validation import require_positive_duration, require_uint
from database.connection import atomic
from database.models import Bet, BetStatus, PlatformConfig

logger = logging.getLogger(__name__)


async def create_bet(
    session: AsyncSession,
    player: str,
    amount: int,
    prediction: bool,
    duration: int,
    token_mint: str,
    now: int | None = None,
    escrow: EscrowGateway | None = None,
    bus: EventBus = event_bus,
) -> Bet:
    """
    Open a new wager and escrow the stake.

    Checks, in order: platform active, amount >= min_bet, amount <= max_bet,
    duration > 0. The first failing check aborts with nothing written.
    """
    validate_address(player)
    validate_address(token_mint)
    require_uint("amount", amount)
    if not isinstance(prediction, bool):
        raise InvalidParameter(f"prediction must be a boolean, got {prediction!r}")

    platform = await load_platform(session)

    if not platform.is_active:
        logger.warning("Bet rejected for %s: platform inactive", player)
        raise PlatformInactive()
    if amount < platform.min_bet:
        logger.warning("Bet rejected for %s: %d below min %d", player, amount, platform.min_bet)
        raise BetTooSmall(f"Bet amount {amount} below minimum {platform.min_bet}")
    if amount > platform.max_bet:
        logger.warning("Bet rejected for %s: %d above max %d", player, amount, platform.max_bet)
        raise BetTooLarge(f"Bet amount {amount} above maximum {platform.max_bet}")
    require_positive_duration(duration)

    start_time = unix_now() if now is None else now
    try:
        end_time = checked_add(start_time, duration, STORAGE_INT_MAX)
        checked_add(platform.total_volume, amount, STORAGE_INT_MAX)
    except (OverflowError, ValueError) as exc:
        raise InvalidParameter(str(exc)) from exc

    bet = Bet(
        address=new_address(),
        player=player,
        amount=amount,
        prediction=prediction,
        token_mint=token_mint,
        start_time=start_time,
        end_time=end_time,
        start_price=0,
        end_price=0,
        status=BetStatus.OPEN,
        is_winner=False,
        payout=0,
    )
    event = BetCreated(
        bet=bet.address,
        player=player,
        amount=amount,
        prediction=prediction,
        duration=duration,
        token_mint=token_mint,
    )

    gateway = escrow or LedgerEscrow(session)
    async with atomic(session):
        session.add(bet)
        await transfer(gateway, player, bet.address, amount)
        await session.execute(
            update(PlatformConfig)
            .where(PlatformConfig.id == platform.id)
            .values(
                total_bets=PlatformConfig.total_bets + 1,
                total_volume=PlatformConfig.total_volume + amount,
            )
            .execution_options(synchronize_session=False)
        )
        record_event(session, event)

    logger.info(
        "Bet %s created: player=%s amount=%d %s window=[%d, %d]",
        bet.address, player, amount, "UP" if prediction else "DOWN",
        start_time, end_time,
    )
    await bus.publish(event)
    return bet


async def get_bet(session: AsyncSession, address: str) -> Bet:
    """Load a bet by address, refreshed from the database."""
    bet = await session.get(Bet, address, populate_existing=True)
    if bet is None:
        raise BetNotFound(f"Bet {address} not found")
    return bet


async def list_bets(
    session: AsyncSession,
    player: str | None = None,
    status: BetStatus | None = None,
    limit: int = 100,
) -> list[Bet]:
    """Bets newest first, optionally filtered by player and status."""
    query = select(Bet).order_by(col(Bet.start_time).desc(), col(Bet.created_at).desc())
    if player:
        query = query.where(Bet.player == player)
    if status:
        query = query.where(Bet.status == status)
    rows = (await session.execute(query.limit(limit))).scalars().all()
    return list(rows)
