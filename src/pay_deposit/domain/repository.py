"""Deposit repository Protocol."""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_deposit.domain.models import Deposit


class DepositRepositoryProtocol(Protocol):
    async def acquire_matcher_lock(self, db: AsyncSession) -> None:
        """Serialize payable-amount selection until the transaction ends."""
        ...

    async def expire_stale(self, db: AsyncSession, now: datetime) -> int: ...

    async def active_payable_amounts(self, db: AsyncSession, now: datetime) -> set[Decimal]: ...

    async def insert(self, db: AsyncSession, deposit: Deposit) -> Deposit: ...

    async def get(self, db: AsyncSession, deposit_id: str) -> Deposit | None: ...

    async def lock(self, db: AsyncSession, deposit_id: str) -> Deposit | None: ...

    async def lock_active_by_payable_amount(
        self, db: AsyncSession, payable_amount: Decimal, now: datetime
    ) -> Deposit | None:
        """Oldest active deposit holding exactly `payable_amount`, row-locked."""
        ...

    async def find_by_tx_hash(self, db: AsyncSession, tx_hash: str) -> Deposit | None: ...

    async def finalize(self, db: AsyncSession, deposit: Deposit) -> Deposit | None:
        """Persist a terminal transition; None if the row was no longer PENDING."""
        ...

    async def list(
        self,
        db: AsyncSession,
        user_id: str | None,
        status: str | None,
        limit: int,
        offset: int,
    ) -> list[Deposit]: ...
