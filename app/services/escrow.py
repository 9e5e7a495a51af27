"""
app/services/escrow.py
Fund movement for bet creation (inbound escrow) and settlement (payout).

The engine only sees the EscrowGateway protocol. LedgerEscrow is the bundled
implementation: balances live in the LedgerAccount table and every debit or
credit joins the caller's open transaction, so a transfer commits or rolls
back together with the state change that triggered it.
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from core.constants import STORAGE_INT_MAX
from core.errors import InsufficientFunds, InvalidParameter
from core.validation import require_uint
from database.models import LedgerAccount

logger = logging.getLogger(__name__)


class EscrowGateway(Protocol):
    """Fund-movement interface implemented by the host ledger."""

    async def debit(self, address: str, amount: int) -> None: ...

    async def credit(self, address: str, amount: int) -> None: ...

    async def balance_of(self, address: str) -> int: ...


async def transfer(gateway: EscrowGateway, source: str, destination: str, amount: int) -> None:
    """Move `amount` units from `source` to `destination`."""
    if source == destination:
        raise InvalidParameter("Transfer source and destination must differ")
    await gateway.debit(source, amount)
    await gateway.credit(destination, amount)


class LedgerEscrow:
    """EscrowGateway over the LedgerAccount table, sharing the caller's session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def balance_of(self, address: str) -> int:
        balance = (await self._session.execute(
            select(LedgerAccount.balance).where(LedgerAccount.address == address)
        )).scalar()
        return balance or 0

    async def debit(self, address: str, amount: int) -> None:
        require_uint("amount", amount)
        if amount == 0:
            return
        # Conditional decrement: never goes negative, even under concurrent debits.
        result = await self._session.execute(
            update(LedgerAccount)
            .where(LedgerAccount.address == address, LedgerAccount.balance >= amount)
            .values(
                balance=LedgerAccount.balance - amount,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            balance = await self.balance_of(address)
            raise InsufficientFunds(
                f"{address} holds {balance}, cannot debit {amount}"
            )
        logger.debug("Debited %d from %s", amount, address)

    async def credit(self, address: str, amount: int) -> None:
        require_uint("amount", amount)
        if amount == 0:
            return
        account = (await self._session.execute(
            select(LedgerAccount).where(LedgerAccount.address == address)
        )).scalars().first()
        if account is None:
            self._session.add(LedgerAccount(address=address, balance=amount))
            await self._session.flush()
        else:
            # Conditional increment: the balance stays within a signed 64-bit column.
            result = await self._session.execute(
                update(LedgerAccount)
                .where(
                    LedgerAccount.address == address,
                    LedgerAccount.balance <= STORAGE_INT_MAX - amount,
                )
                .values(
                    balance=LedgerAccount.balance + amount,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                balance = await self.balance_of(address)
                raise InvalidParameter(
                    f"Crediting {amount} to {address} would overflow its balance of {balance}"
                )
        logger.debug("Credited %d to %s", amount, address)
