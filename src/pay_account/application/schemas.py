"""Pydantic schemas and cursor utilities for pay_account API.

Money is `Decimal` on the wire-facing models; ApiResponse serializes it as
a decimal string, never a JSON float.
"""

import base64
import json
from decimal import Decimal

from pydantic import BaseModel, Field

from src.pay_account.domain.models import Account, LedgerEntry
from src.pay_common.money import usdt_display

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas (admin)
# ---------------------------------------------------------------------------


class SetBalancesRequest(BaseModel):
    available_balance: Decimal = Field(..., ge=0, max_digits=20, decimal_places=8)
    frozen_balance: Decimal = Field(..., ge=0, max_digits=20, decimal_places=8)


class GrantDepositRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=20, decimal_places=8)
    comment: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    user_id: str
    available_balance: Decimal
    available_balance_display: str
    frozen_balance: Decimal
    frozen_balance_display: str
    total_balance: Decimal
    total_balance_display: str

    @classmethod
    def from_account(cls, account: Account) -> "BalanceResponse":
        return cls(
            user_id=account.user_id,
            available_balance=account.available_balance,
            available_balance_display=usdt_display(account.available_balance),
            frozen_balance=account.frozen_balance,
            frozen_balance_display=usdt_display(account.frozen_balance),
            total_balance=account.total_balance,
            total_balance_display=usdt_display(account.total_balance),
        )


class AccountInfo(BaseModel):
    user_id: str
    telegram_id: str | None
    username: str | None
    available_balance: Decimal
    frozen_balance: Decimal
    created_at: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountInfo":
        return cls(
            user_id=account.user_id,
            telegram_id=account.telegram_id,
            username=account.username,
            available_balance=account.available_balance,
            frozen_balance=account.frozen_balance,
            created_at=account.created_at.isoformat() if account.created_at else "",
        )


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    available_delta: Decimal
    frozen_delta: Decimal
    available_after: Decimal
    frozen_after: Decimal
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_entry(cls, e: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=e.id or 0,
            entry_type=e.entry_type,
            available_delta=e.available_delta,
            frozen_delta=e.frozen_delta,
            available_after=e.available_after,
            frozen_after=e.frozen_after,
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            description=e.description,
            created_at=e.created_at.isoformat() if e.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
