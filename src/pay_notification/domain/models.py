"""Notification domain model: append-only in-app message for one user."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Notification:
    id: int | None                   # BIGSERIAL, None until inserted
    user_id: str
    message: str
    request_id: str | None = None
    deposit_id: str | None = None
    is_read: bool = False
    created_at: datetime | None = None
