"""
app/services/oracle_service.py
Records the start price on a bet, exactly once, on behalf of the oracle.

The price itself is trusted input: nothing here judges whether the number
is plausible, only that it is written once and before settlement.
"""

import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.access import AccessPolicy, Capability
from app.services.bet_service import get_bet
from app.services.events import BetPriceUpdated, EventBus, event_bus, record_event
from app.services.platform_service import load_platform
from app.services.record_locks import RecordLocks, bet_locks
from core.errors import BetAlreadySettled, PriceAlreadySet
from core.validation import require_uint
from database.connection import atomic
from database.models import Bet, BetStatus, PriceStatus

logger = logging.getLogger(__name__)


def _check_price_writable(bet: Bet) -> None:
    if bet.is_settled:
        raise BetAlreadySettled(f"Bet {bet.address} already settled")
    if bet.price_status != PriceStatus.UNSET:
        raise PriceAlreadySet(f"Bet {bet.address} start price already {bet.start_price}")


async def update_bet_price(
    session: AsyncSession,
    caller: str,
    bet_address: str,
    start_price: int,
    bus: EventBus = event_bus,
    locks: RecordLocks = bet_locks,
) -> Bet:
    """
    Stamp the start price onto an open bet.

    Fails with BetAlreadySettled on a settled bet and PriceAlreadySet on a
    second write, whatever the new value.
    """
    require_uint("start_price", start_price)
    platform = await load_platform(session)
    AccessPolicy(platform).require(caller, Capability.ORACLE)

    async with locks.hold(bet_address):
        bet = await get_bet(session, bet_address)
        _check_price_writable(bet)

        event = BetPriceUpdated(bet=bet.address, start_price=start_price)
        async with atomic(session):
            # Compare-and-set: only an open bet with an unset price moves.
            result = await session.execute(
                update(Bet)
                .where(
                    Bet.address == bet.address,
                    Bet.status == BetStatus.OPEN,
                    Bet.price_status == PriceStatus.UNSET,
                )
                .values(start_price=start_price, price_status=PriceStatus.SET)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Another writer got in between the read and the update.
                _check_price_writable(await get_bet(session, bet_address))
                raise PriceAlreadySet(f"Bet {bet_address} start price already set")
            record_event(session, event)

        bet = await get_bet(session, bet_address)

    logger.info("Bet %s start price set to %d by %s", bet.address, start_price, caller)
    await bus.publish(event)
    return bet
