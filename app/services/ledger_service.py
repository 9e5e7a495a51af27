"""
app/services/ledger_service.py
Admin funding and balance lookups on the bundled ledger.

A host ledger with real token custody replaces this; it exists so players
have balances to stake from when the engine runs standalone.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.access import AccessPolicy, Capability
from app.services.escrow import LedgerEscrow
from app.services.platform_service import load_platform
from core.errors import InvalidParameter
from core.identity import validate_address
from core.validation import require_uint
from database.connection import atomic

logger = logging.getLogger(__name__)


async def deposit(session: AsyncSession, caller: str, address: str, amount: int) -> int:
    """Credit `amount` to `address`. Admin only. Returns the new balance."""
    validate_address(address)
    require_uint("amount", amount)
    if amount == 0:
        raise InvalidParameter("Deposit amount must be positive")

    platform = await load_platform(session)
    AccessPolicy(platform).require(caller, Capability.ADMIN)

    ledger = LedgerEscrow(session)
    async with atomic(session):
        await ledger.credit(address, amount)
    balance = await ledger.balance_of(address)

    logger.info("Deposited %d to %s (balance %d)", amount, address, balance)
    return balance


async def balance_of(session: AsyncSession, address: str) -> int:
    validate_address(address)
    return await LedgerEscrow(session).balance_of(address)
