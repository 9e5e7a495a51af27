"""
tests/test_bets.py
Tests for bet creation: precondition order, escrow, and platform counters.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, func

from app.services.bet_service import create_bet, get_bet, list_bets
from app.services.escrow import LedgerEscrow
from app.services.events import BetCreated
from app.services.platform_service import load_platform, update_platform
from core.errors import (
    BetNotFound,
    BetTooLarge,
    BetTooSmall,
    InsufficientFunds,
    InvalidParameter,
    PlatformInactive,
)
from core.identity import new_address
from database.models import Bet, BetStatus, EventKind, EventLog, PriceStatus

T0 = 1_700_000_000


async def _count_bets(session: AsyncSession) -> int:
    return (await session.execute(select(func.count()).select_from(Bet))).scalar()


@pytest.mark.asyncio
class TestCreateBet:
    async def test_scenario_a(self, async_db_session, platform, player, token_mint, bus):
        """amount=5000 up for 60s: window [T, T+60], stake escrowed, totals bumped."""
        bet = await create_bet(
            async_db_session, player, amount=5000, prediction=True,
            duration=60, token_mint=token_mint, now=T0, bus=bus,
        )

        assert bet.start_time == T0
        assert bet.end_time == T0 + 60
        assert bet.start_price == 0
        assert bet.end_price == 0
        assert bet.price_status == PriceStatus.UNSET
        assert bet.status == BetStatus.OPEN
        assert bet.is_settled is False
        assert bet.is_winner is False
        assert bet.payout == 0

        ledger = LedgerEscrow(async_db_session)
        assert await ledger.balance_of(bet.address) == 5000
        assert await ledger.balance_of(player) == 100_000 - 5000

        config = await load_platform(async_db_session)
        assert config.total_bets == 1
        assert config.total_volume == 5000

    async def test_emits_bet_created(self, async_db_session, platform, player, token_mint, bus):
        bet = await create_bet(
            async_db_session, player, 2000, False, 30, token_mint, now=T0, bus=bus,
        )

        assert bus.published == [
            BetCreated(
                bet=bet.address, player=player, amount=2000,
                prediction=False, duration=30, token_mint=token_mint,
            )
        ]
        logged = (await async_db_session.execute(
            select(EventLog).where(EventLog.bet_address == bet.address)
        )).scalars().all()
        assert [e.kind for e in logged] == [EventKind.BET_CREATED]

    async def test_counters_accumulate(self, async_db_session, platform, player, token_mint, bus):
        """Each creation adds exactly 1 bet and exactly `amount` volume."""
        for amount in (1000, 2500, 1_000):
            await create_bet(async_db_session, player, amount, True, 60, token_mint, now=T0, bus=bus)

        config = await load_platform(async_db_session)
        assert config.total_bets == 3
        assert config.total_volume == 4500

    async def test_bounds_are_inclusive(self, async_db_session, platform, player, token_mint, bus):
        await LedgerEscrow(async_db_session).credit(player, 1_000_000)
        await async_db_session.commit()

        low = await create_bet(async_db_session, player, 1000, True, 60, token_mint, now=T0, bus=bus)
        high = await create_bet(async_db_session, player, 1_000_000, True, 60, token_mint, now=T0, bus=bus)

        assert (low.amount, high.amount) == (1000, 1_000_000)

    async def test_scenario_f_too_small(self, async_db_session, platform, player, token_mint, bus):
        """Below min_bet fails BetTooSmall and nothing changes."""
        with pytest.raises(BetTooSmall):
            await create_bet(async_db_session, player, 999, True, 60, token_mint, now=T0, bus=bus)

        config = await load_platform(async_db_session)
        assert config.total_bets == 0
        assert config.total_volume == 0
        assert await _count_bets(async_db_session) == 0
        assert await LedgerEscrow(async_db_session).balance_of(player) == 100_000
        assert bus.published == []

    async def test_too_large(self, async_db_session, platform, player, token_mint, bus):
        with pytest.raises(BetTooLarge):
            await create_bet(async_db_session, player, 1_000_001, True, 60, token_mint, now=T0, bus=bus)

    async def test_inactive_checked_first(self, async_db_session, platform, admin, player, token_mint, bus):
        """An inactive platform rejects even an out-of-range amount as PlatformInactive."""
        await update_platform(async_db_session, admin, is_active=False, bus=bus)

        with pytest.raises(PlatformInactive):
            await create_bet(async_db_session, player, 1, True, 60, token_mint, now=T0, bus=bus)

    async def test_non_positive_duration_rejected(self, async_db_session, platform, player, token_mint, bus):
        for duration in (0, -60):
            with pytest.raises(InvalidParameter):
                await create_bet(async_db_session, player, 5000, True, duration, token_mint, now=T0, bus=bus)

        assert await _count_bets(async_db_session) == 0

    async def test_escrow_failure_leaves_no_trace(self, async_db_session, platform, token_mint, bus):
        """A player without funds: no record, no counter change, no event."""
        broke = new_address()

        with pytest.raises(InsufficientFunds):
            await create_bet(async_db_session, broke, 5000, True, 60, token_mint, now=T0, bus=bus)

        config = await load_platform(async_db_session)
        assert config.total_bets == 0
        assert config.total_volume == 0
        assert await _count_bets(async_db_session) == 0
        events = (await async_db_session.execute(
            select(EventLog).where(EventLog.kind == EventKind.BET_CREATED)
        )).scalars().all()
        assert events == []
        assert bus.published == []

    async def test_each_bet_gets_its_own_address(self, async_db_session, platform, player, token_mint, bus):
        a = await create_bet(async_db_session, player, 1000, True, 60, token_mint, now=T0, bus=bus)
        b = await create_bet(async_db_session, player, 1000, True, 60, token_mint, now=T0, bus=bus)

        assert a.address != b.address


@pytest.mark.asyncio
class TestReadBets:
    async def test_get_unknown_bet(self, async_db_session, platform):
        with pytest.raises(BetNotFound):
            await get_bet(async_db_session, new_address())

    async def test_list_filters_by_player(self, async_db_session, platform, player, token_mint, bus):
        other = new_address()
        await LedgerEscrow(async_db_session).credit(other, 10_000)
        await async_db_session.commit()

        await create_bet(async_db_session, player, 1000, True, 60, token_mint, now=T0, bus=bus)
        await create_bet(async_db_session, other, 1000, False, 60, token_mint, now=T0 + 1, bus=bus)

        mine = await list_bets(async_db_session, player=player)
        assert [b.player for b in mine] == [player]

        everyone = await list_bets(async_db_session)
        assert [b.player for b in everyone] == [other, player]   # newest first
