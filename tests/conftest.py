"""
tests/conftest.py
Shared fixtures for the test suite.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import database.models as _models  # noqa: F401  registers table metadata
from app.services.bet_service import create_bet
from app.services.events import Event, EventBus
from app.services.escrow import LedgerEscrow
from app.services.platform_service import initialize_platform
from core.config import get_settings
from core.identity import new_address
from database.models import Bet, PlatformConfig

PLAYER_FUNDS = 100_000


@pytest_asyncio.fixture
async def async_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an in-memory SQLite async session for tests."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async_session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def admin() -> str:
    return new_address()


@pytest.fixture
def oracle(monkeypatch) -> str:
    """An identity registered as an oracle authority for the test."""
    identity = new_address()
    monkeypatch.setattr(get_settings(), "ORACLE_AUTHORITIES", identity)
    return identity


@pytest.fixture
def player() -> str:
    return new_address()


@pytest.fixture
def house_wallet() -> str:
    return new_address()


@pytest.fixture
def token_mint() -> str:
    return new_address()


class RecordingBus(EventBus):
    """EventBus that also keeps every published event, in order."""

    def __init__(self) -> None:
        super().__init__()
        self.published: list[Event] = []

    async def publish(self, event: Event) -> None:
        self.published.append(event)
        await super().publish(event)


@pytest.fixture
def bus() -> RecordingBus:
    """A private event bus that records everything published to it."""
    return RecordingBus()


@pytest_asyncio.fixture
async def platform(
    async_db_session: AsyncSession,
    admin: str,
    house_wallet: str,
    player: str,
) -> PlatformConfig:
    """Platform at fee=100bps, bets in [1000, 1000000], player funded."""
    config = await initialize_platform(
        async_db_session,
        caller=admin,
        house_wallet=house_wallet,
        house_fee_bps=100,
        min_bet=1000,
        max_bet=1_000_000,
    )
    await LedgerEscrow(async_db_session).credit(player, PLAYER_FUNDS)
    await async_db_session.commit()
    return config


BET_START = 1_700_000_000


@pytest_asyncio.fixture
async def open_bet(
    async_db_session: AsyncSession,
    platform: PlatformConfig,
    player: str,
    token_mint: str,
) -> Bet:
    """5000 units on UP, 60s window starting at BET_START, price unset."""
    return await create_bet(
        async_db_session,
        player,
        amount=5000,
        prediction=True,
        duration=60,
        token_mint=token_mint,
        now=BET_START,
        bus=EventBus(),
    )
