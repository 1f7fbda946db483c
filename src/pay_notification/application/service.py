"""NotificationApplicationService: user's inbox: list, unread count, mark read."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_notification.application.schemas import (
    MarkReadResponse,
    NotificationItem,
    NotificationListResponse,
)
from src.pay_notification.domain.repository import NotificationRepositoryProtocol
from src.pay_notification.infrastructure.persistence import NotificationRepository


class NotificationApplicationService:
    def __init__(self, repo: NotificationRepositoryProtocol | None = None) -> None:
        self._repo: NotificationRepositoryProtocol = repo or NotificationRepository()

    async def list_for_user(
        self, db: AsyncSession, user_id: str, limit: int, unread_only: bool
    ) -> NotificationListResponse:
        items = await self._repo.list_for_user(db, user_id, limit, unread_only)
        unread = await self._repo.count_unread(db, user_id)
        return NotificationListResponse(
            items=[NotificationItem.from_domain(n) for n in items],
            unread_count=unread,
        )

    async def unread_count(self, db: AsyncSession, user_id: str) -> int:
        return await self._repo.count_unread(db, user_id)

    async def mark_read(
        self, db: AsyncSession, user_id: str, ids: list[int] | None
    ) -> MarkReadResponse:
        try:
            updated = await self._repo.mark_read(db, user_id, ids)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return MarkReadResponse(updated=updated)
