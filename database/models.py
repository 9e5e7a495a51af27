"""
database/models.py
SQLModel table definitions for the up/down settlement engine.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, Column, JSON
from sqlmodel import SQLModel, Field

from core.constants import PLATFORM_CONFIG_ID


def _utcnow() -> datetime:
    """Timezone-aware UTC now (replaces the deprecated utcnow call)."""
    return datetime.now(timezone.utc)


def _u64(default=None):
    """BIGINT column for ledger integers (amounts, prices, counters, timestamps)."""
    column = Column(BigInteger, nullable=False)
    if default is None:
        return Field(sa_column=column)
    return Field(default=default, sa_column=column)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BetStatus(str, Enum):
    """Record lifecycle: OPEN → SETTLED, never back."""
    OPEN = "open"
    SETTLED = "settled"


class PriceStatus(str, Enum):
    """Start price lifecycle: UNSET → SET, exactly once."""
    UNSET = "unset"
    SET = "set"


class EventKind(str, Enum):
    PLATFORM_INITIALIZED = "PlatformInitialized"
    PLATFORM_UPDATED = "PlatformUpdated"
    BET_CREATED = "BetCreated"
    BET_PRICE_UPDATED = "BetPriceUpdated"
    BET_SETTLED = "BetSettled"


# ---------------------------------------------------------------------------
# PlatformConfig: the single deployment-wide configuration row
# ---------------------------------------------------------------------------

class PlatformConfig(SQLModel, table=True):
    """Admin identity, fee and bet-size parameters, running totals."""

    id: int = Field(default=PLATFORM_CONFIG_ID, primary_key=True)

    admin: str
    house_wallet: str
    house_fee_bps: int

    min_bet: int = _u64()
    max_bet: int = _u64()

    # Running totals (only ever incremented)
    total_bets: int = _u64(default=0)
    total_volume: int = _u64(default=0)

    is_active: bool = True

    created_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Bet: one wager and its escrow
# ---------------------------------------------------------------------------

class Bet(SQLModel, table=True):
    """A single up/down wager. `address` is also the escrow account."""

    address: str = Field(primary_key=True)

    # Immutable after creation
    player: str = Field(index=True)
    amount: int = _u64()
    prediction: bool                 # True = up, False = down
    token_mint: str

    # Window (unix seconds)
    start_time: int = _u64()
    end_time: int = _u64()

    # Oracle-owned fields
    price_status: PriceStatus = PriceStatus.UNSET
    start_price: int = _u64(default=0)
    end_price: int = _u64(default=0)

    # Settlement
    status: BetStatus = Field(default=BetStatus.OPEN, index=True)
    is_winner: bool = False
    payout: int = _u64(default=0)

    created_at: datetime = Field(default_factory=_utcnow)
    settled_at: Optional[datetime] = None

    @property
    def is_settled(self) -> bool:
        return self.status == BetStatus.SETTLED

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time


# ---------------------------------------------------------------------------
# LedgerAccount: balances held by the bundled escrow ledger
# ---------------------------------------------------------------------------

class LedgerAccount(SQLModel, table=True):
    """Fungible balance per identity. Bet addresses hold their own escrow."""

    address: str = Field(primary_key=True)
    balance: int = _u64(default=0)
    updated_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# EventLog: append-only record of every emitted event
# ---------------------------------------------------------------------------

class EventLog(SQLModel, table=True):
    """One row per state transition, written in the transition's transaction."""

    id: Optional[int] = Field(default=None, primary_key=True)

    kind: EventKind = Field(index=True)
    bet_address: Optional[str] = Field(default=None, index=True)
    payload: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(default_factory=_utcnow)
