"""PaymentRequest repository Protocol."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_payment.domain.models import PaymentRequest


class PaymentRequestRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, request: PaymentRequest) -> PaymentRequest: ...

    async def get(self, db: AsyncSession, request_id: str) -> PaymentRequest | None: ...

    async def lock(self, db: AsyncSession, request_id: str) -> PaymentRequest | None:
        """SELECT ... FOR UPDATE; the lock is held until the caller's transaction ends."""
        ...

    async def update(self, db: AsyncSession, request: PaymentRequest) -> PaymentRequest: ...

    async def list(
        self,
        db: AsyncSession,
        user_id: str | None,
        status: str | None,
        urgency: str | None,
        limit: int,
        offset: int,
    ) -> list[PaymentRequest]: ...
