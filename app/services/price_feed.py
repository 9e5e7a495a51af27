"""
app/services/price_feed.py
Async client for the external token price API used by the oracle keeper.

Prices arrive as decimal numbers and are converted to integer units with
PRICE_DECIMALS places, since bets only ever store whole-number prices.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Any

import httpx

from core.config import get_settings

logger = logging.getLogger(__name__)


class PriceFeedError(Exception):
    """The price API returned no usable price for a token."""


def to_price_units(price: Any, decimals: int) -> int:
    """Scale a decimal price to an integer, truncating extra precision."""
    try:
        value = Decimal(str(price))
    except InvalidOperation as exc:
        raise PriceFeedError(f"Unparseable price: {price!r}") from exc
    if not value.is_finite() or value < 0:
        raise PriceFeedError(f"Price must be a non-negative number, got {price!r}")
    scaled = (value * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN)
    return int(scaled)


class PriceFeedClient:
    """Async client for a Jupiter-style `/price?ids=<mint>` endpoint."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        settings = get_settings()
        self._url = settings.PRICE_FEED_URL
        self._decimals = settings.PRICE_DECIMALS
        self._client = client or httpx.AsyncClient(timeout=settings.PRICE_FEED_TIMEOUT_SECONDS)

    async def get_price(self, token_mint: str) -> int:
        """
        Current price of `token_mint` in integer units.

        Expects a body shaped like {"data": {"<mint>": {"price": 0.0000234}}}.
        """
        resp = await self._client.get(self._url, params={"ids": token_mint})
        resp.raise_for_status()
        data = resp.json().get("data") or {}
        entry = data.get(token_mint)
        if not entry or entry.get("price") is None:
            raise PriceFeedError(f"No price returned for {token_mint}")
        price = to_price_units(entry["price"], self._decimals)
        logger.debug("Price %s = %s -> %d units", token_mint, entry["price"], price)
        return price

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
