"""
app/services/events.py
Structured notifications, one per state transition.

Each operation builds an event, appends it to the EventLog inside its own
transaction, and publishes it to subscribers only after commit. Delivery
beyond that (webhooks, indexers) belongs to whoever subscribes.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Literal, Union

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import EventKind, EventLog

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Event payloads
# ------------------------------------------------------------------

class PlatformInitialized(BaseModel):
    kind: Literal[EventKind.PLATFORM_INITIALIZED] = EventKind.PLATFORM_INITIALIZED
    admin: str
    house_wallet: str
    house_fee_bps: int
    min_bet: int
    max_bet: int


class PlatformUpdated(BaseModel):
    kind: Literal[EventKind.PLATFORM_UPDATED] = EventKind.PLATFORM_UPDATED
    admin: str
    house_fee_bps: int
    min_bet: int
    max_bet: int
    is_active: bool


class BetCreated(BaseModel):
    kind: Literal[EventKind.BET_CREATED] = EventKind.BET_CREATED
    bet: str
    player: str
    amount: int
    prediction: bool
    duration: int
    token_mint: str


class BetPriceUpdated(BaseModel):
    kind: Literal[EventKind.BET_PRICE_UPDATED] = EventKind.BET_PRICE_UPDATED
    bet: str
    start_price: int


class BetSettled(BaseModel):
    kind: Literal[EventKind.BET_SETTLED] = EventKind.BET_SETTLED
    bet: str
    player: str
    end_price: int
    is_winner: bool
    payout: int


Event = Union[PlatformInitialized, PlatformUpdated, BetCreated, BetPriceUpdated, BetSettled]
EventHandler = Callable[[Event], Awaitable[None]]


def record_event(session: AsyncSession, event: Event) -> EventLog:
    """Stage the event in the EventLog; it commits with the transition."""
    entry = EventLog(
        kind=event.kind,
        bet_address=getattr(event, "bet", None),
        payload=event.model_dump(mode="json"),
    )
    session.add(entry)
    return entry


# ------------------------------------------------------------------
# Observer
# ------------------------------------------------------------------

class EventBus:
    """Fan-out of committed events to async subscribers."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    async def publish(self, event: Event) -> None:
        """
        Deliver to every subscriber. A failing subscriber is logged and
        skipped; the transition it reports has already committed.
        """
        logger.info("Event %s: %s", event.kind.value, event.model_dump(mode="json", exclude={"kind"}))
        for handler in list(self._handlers):
            try:
                await handler(event)
            except Exception as exc:
                logger.error("Event handler %r failed on %s: %s", handler, event.kind.value, exc)


event_bus = EventBus()
