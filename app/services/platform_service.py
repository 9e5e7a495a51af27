"""
app/services/platform_service.py
Creates and administers the single PlatformConfig row.

Initialization happens exactly once per deployment; afterwards only the
admin may change the simple admin-set fields, and only bet creation touches
the running totals.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.access import AccessPolicy, Capability
from app.services.events import EventBus, PlatformInitialized, PlatformUpdated, event_bus, record_event
from core.constants import MAX_FEE_BPS, PLATFORM_CONFIG_ID
from core.errors import InvalidParameter, PlatformAlreadyInitialized, PlatformNotInitialized
from core.identity import validate_address
from core.validation import require_uint
from database.connection import atomic
from database.models import PlatformConfig

logger = logging.getLogger(__name__)


def _validate_limits(house_fee_bps: int, min_bet: int, max_bet: int) -> None:
    require_uint("house_fee_bps", house_fee_bps, MAX_FEE_BPS)
    require_uint("min_bet", min_bet)
    require_uint("max_bet", max_bet)
    if min_bet > max_bet:
        raise InvalidParameter(f"min_bet ({min_bet}) must not exceed max_bet ({max_bet})")


async def load_platform(session: AsyncSession) -> PlatformConfig:
    """Fetch the current PlatformConfig, bypassing any stale cached copy."""
    platform = await session.get(PlatformConfig, PLATFORM_CONFIG_ID, populate_existing=True)
    if platform is None:
        raise PlatformNotInitialized()
    return platform


async def initialize_platform(
    session: AsyncSession,
    caller: str,
    house_wallet: str,
    house_fee_bps: int,
    min_bet: int,
    max_bet: int,
    bus: EventBus = event_bus,
) -> PlatformConfig:
    """
    Create the PlatformConfig. The caller becomes admin.

    All parameters are required; totals start at zero and the platform
    starts active. A second call fails with PlatformAlreadyInitialized.
    """
    validate_address(caller)
    validate_address(house_wallet)
    _validate_limits(house_fee_bps, min_bet, max_bet)

    if await session.get(PlatformConfig, PLATFORM_CONFIG_ID) is not None:
        raise PlatformAlreadyInitialized()

    platform = PlatformConfig(
        id=PLATFORM_CONFIG_ID,
        admin=caller,
        house_wallet=house_wallet,
        house_fee_bps=house_fee_bps,
        min_bet=min_bet,
        max_bet=max_bet,
        total_bets=0,
        total_volume=0,
        is_active=True,
    )
    event = PlatformInitialized(
        admin=caller,
        house_wallet=house_wallet,
        house_fee_bps=house_fee_bps,
        min_bet=min_bet,
        max_bet=max_bet,
    )

    try:
        async with atomic(session):
            session.add(platform)
            record_event(session, event)
    except IntegrityError as exc:
        # Lost a race with a concurrent initializer on the primary key.
        raise PlatformAlreadyInitialized() from exc

    logger.info(
        "Platform initialized: admin=%s fee=%dbps bets=[%d, %d]",
        caller, house_fee_bps, min_bet, max_bet,
    )
    await bus.publish(event)
    return platform


async def update_platform(
    session: AsyncSession,
    caller: str,
    is_active: bool | None = None,
    house_fee_bps: int | None = None,
    min_bet: int | None = None,
    max_bet: int | None = None,
    bus: EventBus = event_bus,
) -> PlatformConfig:
    """Admin-only change of the activity flag, fee rate, or bet bounds."""
    platform = await load_platform(session)
    AccessPolicy(platform).require(caller, Capability.ADMIN)

    new_fee = platform.house_fee_bps if house_fee_bps is None else house_fee_bps
    new_min = platform.min_bet if min_bet is None else min_bet
    new_max = platform.max_bet if max_bet is None else max_bet
    new_active = platform.is_active if is_active is None else is_active
    _validate_limits(new_fee, new_min, new_max)

    event = PlatformUpdated(
        admin=platform.admin,
        house_fee_bps=new_fee,
        min_bet=new_min,
        max_bet=new_max,
        is_active=new_active,
    )
    async with atomic(session):
        platform.house_fee_bps = new_fee
        platform.min_bet = new_min
        platform.max_bet = new_max
        platform.is_active = new_active
        session.add(platform)
        record_event(session, event)

    logger.info(
        "Platform updated: active=%s fee=%dbps bets=[%d, %d]",
        new_active, new_fee, new_min, new_max,
    )
    await bus.publish(event)
    return platform
