"""NotificationRepository: raw SQL against the notifications table.

Transaction ownership: the CALLER commits or rolls back.
"""

from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_common.errors import InternalError
from src.pay_notification.domain.models import Notification

_COLUMNS = "id, user_id, message, request_id, deposit_id, is_read, created_at"

_INSERT_SQL = text(f"""
    INSERT INTO notifications (user_id, message, request_id, deposit_id)
    VALUES (:user_id, :message, :request_id, :deposit_id)
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM notifications
    WHERE user_id = :user_id
      AND (:unread_only = FALSE OR is_read = FALSE)
    ORDER BY id DESC
    LIMIT :limit
""")

_COUNT_UNREAD_SQL = text("""
    SELECT COUNT(*) FROM notifications
    WHERE user_id = :user_id AND is_read = FALSE
""")

_MARK_ALL_READ_SQL = text("""
    UPDATE notifications SET is_read = TRUE
    WHERE user_id = :user_id AND is_read = FALSE
""")

_MARK_READ_SQL = text("""
    UPDATE notifications SET is_read = TRUE
    WHERE user_id = :user_id AND is_read = FALSE AND id IN :ids
""").bindparams(bindparam("ids", expanding=True))


def _row_to_notification(row: Any) -> Notification:
    return Notification(
        id=row.id,
        user_id=row.user_id,
        message=row.message,
        request_id=row.request_id,
        deposit_id=row.deposit_id,
        is_read=row.is_read,
        created_at=row.created_at,
    )


class NotificationRepository:
    async def insert(self, db: AsyncSession, notification: Notification) -> Notification:
        result = await db.execute(
            _INSERT_SQL,
            {
                "user_id": notification.user_id,
                "message": notification.message,
                "request_id": notification.request_id,
                "deposit_id": notification.deposit_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Notification insert returned no rows")
        return _row_to_notification(row)

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        limit: int,
        unread_only: bool,
    ) -> list[Notification]:
        result = await db.execute(
            _LIST_SQL, {"user_id": user_id, "limit": limit, "unread_only": unread_only}
        )
        return [_row_to_notification(r) for r in result.fetchall()]

    async def count_unread(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_COUNT_UNREAD_SQL, {"user_id": user_id})
        return int(result.scalar_one())

    async def mark_read(
        self, db: AsyncSession, user_id: str, ids: list[int] | None
    ) -> int:
        if ids is None:
            result = await db.execute(_MARK_ALL_READ_SQL, {"user_id": user_id})
        elif not ids:
            return 0
        else:
            result = await db.execute(_MARK_READ_SQL, {"user_id": user_id, "ids": ids})
        return result.rowcount  # type: ignore[attr-defined]
