"""Notification storage and delivery Protocols."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_notification.domain.models import Notification


class NotificationRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, notification: Notification) -> Notification: ...

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        limit: int,
        unread_only: bool,
    ) -> list[Notification]: ...

    async def count_unread(self, db: AsyncSession, user_id: str) -> int: ...

    async def mark_read(
        self, db: AsyncSession, user_id: str, ids: list[int] | None
    ) -> int:
        """Mark the given ids (or all when None) read; returns rows changed."""
        ...


class NotificationSinkProtocol(Protocol):
    async def send(self, chat_id: str, text: str) -> None: ...

    async def close(self) -> None: ...
