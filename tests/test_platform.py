"""
tests/test_platform.py
Tests for one-time platform initialization and admin updates.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.services.events import PlatformInitialized
from app.services.platform_service import initialize_platform, load_platform, update_platform
from core.errors import (
    InvalidParameter,
    PlatformAlreadyInitialized,
    PlatformNotInitialized,
    Unauthorized,
)
from core.identity import new_address
from database.models import EventKind, EventLog, PlatformConfig


@pytest.mark.asyncio
class TestInitializePlatform:
    async def test_initial_state(self, async_db_session: AsyncSession, admin, house_wallet, bus):
        """Totals start at zero, platform starts active, caller becomes admin."""
        config = await initialize_platform(
            async_db_session, admin, house_wallet,
            house_fee_bps=100, min_bet=1000, max_bet=1_000_000, bus=bus,
        )

        assert config.admin == admin
        assert config.house_wallet == house_wallet
        assert config.house_fee_bps == 100
        assert (config.min_bet, config.max_bet) == (1000, 1_000_000)
        assert config.total_bets == 0
        assert config.total_volume == 0
        assert config.is_active is True

    async def test_emits_event_with_all_values(self, async_db_session, admin, house_wallet, bus):
        await initialize_platform(
            async_db_session, admin, house_wallet, 250, 10, 20, bus=bus,
        )

        assert bus.published == [
            PlatformInitialized(
                admin=admin, house_wallet=house_wallet,
                house_fee_bps=250, min_bet=10, max_bet=20,
            )
        ]
        logged = (await async_db_session.execute(select(EventLog))).scalars().all()
        assert [e.kind for e in logged] == [EventKind.PLATFORM_INITIALIZED]

    async def test_second_initialization_fails(self, async_db_session, admin, house_wallet, bus):
        await initialize_platform(async_db_session, admin, house_wallet, 100, 1, 2, bus=bus)

        with pytest.raises(PlatformAlreadyInitialized):
            await initialize_platform(async_db_session, new_address(), house_wallet, 0, 5, 6, bus=bus)

        config = await load_platform(async_db_session)
        assert config.admin == admin
        assert config.min_bet == 1

    async def test_min_above_max_rejected(self, async_db_session, admin, house_wallet, bus):
        with pytest.raises(InvalidParameter):
            await initialize_platform(async_db_session, admin, house_wallet, 100, 10, 9, bus=bus)

        assert await async_db_session.get(PlatformConfig, 1) is None

    async def test_fee_above_10000_bps_rejected(self, async_db_session, admin, house_wallet, bus):
        with pytest.raises(InvalidParameter):
            await initialize_platform(async_db_session, admin, house_wallet, 10_001, 1, 2, bus=bus)

    async def test_fee_at_10000_bps_accepted(self, async_db_session, admin, house_wallet, bus):
        config = await initialize_platform(async_db_session, admin, house_wallet, 10_000, 1, 1, bus=bus)
        assert config.house_fee_bps == 10_000

    async def test_malformed_house_wallet_rejected(self, async_db_session, admin, bus):
        with pytest.raises(InvalidParameter):
            await initialize_platform(async_db_session, admin, "0OIl", 100, 1, 2, bus=bus)

    async def test_load_before_initialization(self, async_db_session):
        with pytest.raises(PlatformNotInitialized):
            await load_platform(async_db_session)


@pytest.mark.asyncio
class TestUpdatePlatform:
    async def test_admin_can_pause(self, async_db_session, platform, admin, bus):
        config = await update_platform(async_db_session, admin, is_active=False, bus=bus)

        assert config.is_active is False
        assert bus.published[-1].kind == EventKind.PLATFORM_UPDATED

    async def test_non_admin_rejected(self, async_db_session, platform, player, bus):
        with pytest.raises(Unauthorized):
            await update_platform(async_db_session, player, is_active=False, bus=bus)

        assert (await load_platform(async_db_session)).is_active is True
        assert bus.published == []

    async def test_oracle_is_not_admin(self, async_db_session, platform, oracle, bus):
        with pytest.raises(Unauthorized):
            await update_platform(async_db_session, oracle, min_bet=1, bus=bus)

    async def test_bounds_revalidated(self, async_db_session, platform, admin, bus):
        """Changing only min_bet still has to respect the stored max_bet."""
        with pytest.raises(InvalidParameter):
            await update_platform(async_db_session, admin, min_bet=2_000_000, bus=bus)

        assert (await load_platform(async_db_session)).min_bet == 1000

    async def test_unchanged_fields_preserved(self, async_db_session, platform, admin, bus):
        config = await update_platform(async_db_session, admin, house_fee_bps=300, bus=bus)

        assert config.house_fee_bps == 300
        assert (config.min_bet, config.max_bet) == (1000, 1_000_000)
        assert config.is_active is True
