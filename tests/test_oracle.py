"""
tests/test_oracle.py
Tests for recording the start price on a bet.
"""

import pytest
from sqlmodel import select

from app.services.bet_service import get_bet
from app.services.events import BetPriceUpdated
from app.services.oracle_service import update_bet_price
from app.services.settlement_engine import settle_bet
from core.errors import BetAlreadySettled, BetNotFound, InvalidParameter, PriceAlreadySet, Unauthorized
from core.identity import new_address
from database.models import EventKind, EventLog, PriceStatus


@pytest.mark.asyncio
class TestUpdateBetPrice:
    async def test_scenario_b(self, async_db_session, open_bet, oracle, bus):
        """Oracle writes 100: start_price=100, price marked set, bet still open."""
        bet = await update_bet_price(async_db_session, oracle, open_bet.address, 100, bus=bus)

        assert bet.start_price == 100
        assert bet.price_status == PriceStatus.SET
        assert bet.is_settled is False
        assert bus.published == [BetPriceUpdated(bet=bet.address, start_price=100)]

    async def test_writes_event_log(self, async_db_session, open_bet, oracle, bus):
        address = open_bet.address
        await update_bet_price(async_db_session, oracle, address, 100, bus=bus)

        kinds = (await async_db_session.execute(
            select(EventLog.kind).where(EventLog.bet_address == address).order_by(EventLog.id)
        )).scalars().all()
        assert kinds == [EventKind.BET_CREATED, EventKind.BET_PRICE_UPDATED]

    async def test_admin_holds_oracle_capability(self, async_db_session, open_bet, admin, bus):
        bet = await update_bet_price(async_db_session, admin, open_bet.address, 42, bus=bus)

        assert bet.start_price == 42

    async def test_second_write_rejected(self, async_db_session, open_bet, oracle, bus):
        """Start price is write-once, even when the new value is identical."""
        address = open_bet.address
        await update_bet_price(async_db_session, oracle, address, 100, bus=bus)

        for price in (100, 250):
            with pytest.raises(PriceAlreadySet):
                await update_bet_price(async_db_session, oracle, address, price, bus=bus)

        bet = await get_bet(async_db_session, address)
        assert bet.start_price == 100
        assert len(bus.published) == 1

    async def test_zero_price_still_counts_as_set(self, async_db_session, open_bet, oracle, bus):
        address = open_bet.address
        bet = await update_bet_price(async_db_session, oracle, address, 0, bus=bus)
        assert bet.price_status == PriceStatus.SET

        with pytest.raises(PriceAlreadySet):
            await update_bet_price(async_db_session, oracle, address, 100, bus=bus)

    async def test_unauthorized_caller(self, async_db_session, open_bet, player, bus):
        """Not even the bet's own player may record its price."""
        address = open_bet.address
        for caller in (player, new_address()):
            with pytest.raises(Unauthorized):
                await update_bet_price(async_db_session, caller, address, 100, bus=bus)

        bet = await get_bet(async_db_session, address)
        assert bet.price_status == PriceStatus.UNSET
        assert bus.published == []

    async def test_settled_bet_rejected(self, async_db_session, open_bet, oracle, bus):
        address = open_bet.address
        await settle_bet(
            async_db_session, oracle, address, 150, now=open_bet.end_time, bus=bus,
        )

        with pytest.raises(BetAlreadySettled):
            await update_bet_price(async_db_session, oracle, address, 100, bus=bus)

    async def test_unknown_bet(self, async_db_session, platform, oracle, bus):
        with pytest.raises(BetNotFound):
            await update_bet_price(async_db_session, oracle, new_address(), 100, bus=bus)

    async def test_negative_price_rejected(self, async_db_session, open_bet, oracle, bus):
        with pytest.raises(InvalidParameter):
            await update_bet_price(async_db_session, oracle, open_bet.address, -1, bus=bus)
