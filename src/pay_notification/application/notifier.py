"""Notifier: in-app record inside the transaction, Telegram delivery after commit.

    async with transaction:
        pending = await notifier.record(db, user_id, message, chat_id=..., request_id=...)
    await notifier.deliver(pending)

Delivery never raises: a failed Telegram send is logged and dropped, the
in-app row is already committed.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_notification.application.messages import Message
from src.pay_notification.domain.models import Notification
from src.pay_notification.domain.repository import (
    NotificationRepositoryProtocol,
    NotificationSinkProtocol,
)
from src.pay_notification.infrastructure.persistence import NotificationRepository
from src.pay_notification.infrastructure.telegram_sink import notification_sink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingDelivery:
    chat_id: str | None
    text: str


class Notifier:
    def __init__(
        self,
        repo: NotificationRepositoryProtocol | None = None,
        sink: NotificationSinkProtocol | None = None,
    ) -> None:
        self._repo: NotificationRepositoryProtocol = repo or NotificationRepository()
        self._sink: NotificationSinkProtocol = sink or notification_sink

    @property
    def sink(self) -> NotificationSinkProtocol:
        return self._sink

    async def record(
        self,
        db: AsyncSession,
        user_id: str,
        message: Message,
        chat_id: str | None,
        request_id: str | None = None,
        deposit_id: str | None = None,
    ) -> PendingDelivery:
        await self._repo.insert(
            db,
            Notification(
                id=None,
                user_id=user_id,
                message=message.in_app,
                request_id=request_id,
                deposit_id=deposit_id,
            ),
        )
        return PendingDelivery(chat_id=chat_id, text=message.telegram)

    async def deliver(self, *pending: PendingDelivery) -> None:
        for item in pending:
            if not item.chat_id:
                continue
            try:
                await self._sink.send(item.chat_id, item.text)
            except Exception:
                logger.warning("Telegram delivery to chat %s failed", item.chat_id, exc_info=True)
