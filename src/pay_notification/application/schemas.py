"""Pydantic schemas for pay_notification API."""

from pydantic import BaseModel, Field

from src.pay_notification.domain.models import Notification


class NotificationItem(BaseModel):
    id: int
    message: str
    request_id: str | None
    deposit_id: str | None
    is_read: bool
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, n: Notification) -> "NotificationItem":
        return cls(
            id=n.id or 0,
            message=n.message,
            request_id=n.request_id,
            deposit_id=n.deposit_id,
            is_read=n.is_read,
            created_at=n.created_at.isoformat() if n.created_at else "",
        )


class NotificationListResponse(BaseModel):
    items: list[NotificationItem]
    unread_count: int


class MarkReadRequest(BaseModel):
    ids: list[int] | None = Field(None, description="Notification ids; omit to mark all read")


class MarkReadResponse(BaseModel):
    updated: int
