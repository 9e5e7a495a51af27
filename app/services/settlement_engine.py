"""
app/services/settlement_engine.py
Finalizes a bet once its window has closed: records the end price,
decides the winner, computes the payout, and releases funds.

Double payout is prevented at two levels. In-process, a per-bet lock keeps
two settlements of the same bet from interleaving. In the database, the
OPEN → SETTLED transition is a compare-and-set that only one transaction
can win; the payout transfer runs in that same transaction, so it either
commits with the transition or not at all.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.access import AccessPolicy, Capability
from app.services.bet_service import get_bet
from app.services.escrow import EscrowGateway, LedgerEscrow, transfer
from app.services.events import BetSettled, EventBus, event_bus, record_event
from app.services.platform_service import load_platform
from app.services.record_locks import RecordLocks, bet_locks
from core.clock import unix_now
from core.errors import BetAlreadySettled, BetNotExpired
from core.settlement_math import compute_payout, is_winner
from core.validation import require_uint
from database.connection import atomic
from database.models import Bet, BetStatus, PriceStatus

logger = logging.getLogger(__name__)


def _check_settleable(bet: Bet, now: int) -> None:
    if bet.is_settled:
        raise BetAlreadySettled(f"Bet {bet.address} already settled")
    if now < bet.end_time:
        raise BetNotExpired(
            f"Bet {bet.address} window closes at {bet.end_time}, now {now}"
        )


class _StaleRead(Exception):
    """The bet row changed between the read and the compare-and-set."""


async def _settle_once(
    session: AsyncSession,
    bet_address: str,
    end_price: int,
    now: int,
    gateway: EscrowGateway,
) -> BetSettled:
    bet = await get_bet(session, bet_address)
    _check_settleable(bet, now)

    if bet.price_status == PriceStatus.UNSET:
        logger.warning(
            "Settling bet %s with no recorded start price (treated as 0)", bet.address,
        )

    winner = is_winner(bet.prediction, bet.start_price, end_price)
    payout = compute_payout(bet.amount, winner)
    event = BetSettled(
        bet=bet.address,
        player=bet.player,
        end_price=end_price,
        is_winner=winner,
        payout=payout,
    )

    async with atomic(session):
        # Compare-and-set on every field the outcome was computed from.
        result = await session.execute(
            update(Bet)
            .where(
                Bet.address == bet.address,
                Bet.status == BetStatus.OPEN,
                Bet.price_status == bet.price_status,
                Bet.start_price == bet.start_price,
            )
            .values(
                end_price=end_price,
                status=BetStatus.SETTLED,
                is_winner=winner,
                payout=payout,
                settled_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise _StaleRead(bet.address)
        if payout:
            await transfer(gateway, bet.address, bet.player, payout)
        record_event(session, event)
    return event


async def settle_bet(
    session: AsyncSession,
    caller: str,
    bet_address: str,
    end_price: int,
    now: int | None = None,
    escrow: EscrowGateway | None = None,
    bus: EventBus = event_bus,
    locks: RecordLocks = bet_locks,
) -> Bet:
    """
    Settle a bet against `end_price`.

    Preconditions: the bet is unsettled (else BetAlreadySettled) and the
    window has closed (else BetNotExpired). The bet is marked settled
    whether it wins or loses. A winner is paid from the bet's escrow; a
    loser's stake stays in escrow.

    If another writer records the start price between the read and the
    update, the bet is re-read and settled against the new price. The
    start price moves at most once, so a second miss means the bet was
    settled elsewhere.
    """
    require_uint("end_price", end_price)
    platform = await load_platform(session)
    AccessPolicy(platform).require(caller, Capability.ORACLE)
    current_time = unix_now() if now is None else now
    gateway = escrow or LedgerEscrow(session)

    async with locks.hold(bet_address):
        for _attempt in range(2):
            try:
                event = await _settle_once(session, bet_address, end_price, current_time, gateway)
                break
            except _StaleRead:
                logger.warning("Bet %s changed during settlement; re-reading", bet_address)
        else:
            raise BetAlreadySettled(f"Bet {bet_address} already settled")

        bet = await get_bet(session, bet_address)

    logger.info(
        "Bet %s settled: start=%d end=%d %s -> %s payout=%d",
        bet.address, bet.start_price, end_price,
        "UP" if bet.prediction else "DOWN",
        "WIN" if event.is_winner else "LOSS", event.payout,
    )
    await bus.publish(event)
    return bet
