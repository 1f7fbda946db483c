"""PaymentRequestRepository: raw SQL against payment_requests.

attachments / receipt are JSONB; they are written as JSON text and cast.
Transaction ownership: the CALLER commits or rolls back.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_common.errors import InternalError, PaymentRequestNotFoundError
from src.pay_payment.domain.models import PaymentRequest

_COLUMNS = """
    id, user_id, amount_rub, amount_usdt, frozen_rate, urgency, status,
    comment, attachments, receipt, admin_comment, processed_by,
    created_at, updated_at, processed_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO payment_requests
        (id, user_id, amount_rub, amount_usdt, frozen_rate, urgency, status,
         comment, attachments)
    VALUES
        (:id, :user_id, :amount_rub, :amount_usdt, :frozen_rate, :urgency, :status,
         :comment, CAST(:attachments AS JSONB))
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM payment_requests WHERE id = :id")

_LOCK_SQL = text(f"SELECT {_COLUMNS} FROM payment_requests WHERE id = :id FOR UPDATE")

_UPDATE_SQL = text(f"""
    UPDATE payment_requests
    SET amount_rub    = :amount_rub,
        amount_usdt   = :amount_usdt,
        status        = :status,
        receipt       = CAST(:receipt AS JSONB),
        admin_comment = :admin_comment,
        processed_by  = :processed_by,
        processed_at  = :processed_at,
        updated_at    = NOW()
    WHERE id = :id
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM payment_requests
    WHERE (CAST(:user_id AS TEXT) IS NULL OR user_id = :user_id)
      AND (CAST(:status AS TEXT) IS NULL OR status = :status)
      AND (CAST(:urgency AS TEXT) IS NULL OR urgency = :urgency)
    ORDER BY created_at DESC, id DESC
    LIMIT :limit OFFSET :offset
""")


def _json_or_none(value: Any) -> str | None:
    return None if value is None else json.dumps(value)


def _row_to_request(row: Any) -> PaymentRequest:
    return PaymentRequest(
        id=row.id,
        user_id=row.user_id,
        amount_rub=row.amount_rub,
        amount_usdt=row.amount_usdt,
        frozen_rate=row.frozen_rate,
        urgency=row.urgency,
        status=row.status,
        comment=row.comment,
        attachments=list(row.attachments or []),
        receipt=row.receipt,
        admin_comment=row.admin_comment,
        processed_by=row.processed_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
        processed_at=row.processed_at,
    )


class PaymentRequestRepository:
    async def insert(self, db: AsyncSession, request: PaymentRequest) -> PaymentRequest:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": request.id,
                "user_id": request.user_id,
                "amount_rub": request.amount_rub,
                "amount_usdt": request.amount_usdt,
                "frozen_rate": request.frozen_rate,
                "urgency": request.urgency,
                "status": request.status,
                "comment": request.comment,
                "attachments": json.dumps(request.attachments),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Payment request insert returned no rows")
        return _row_to_request(row)

    async def get(self, db: AsyncSession, request_id: str) -> PaymentRequest | None:
        row = (await db.execute(_GET_SQL, {"id": request_id})).fetchone()
        return _row_to_request(row) if row else None

    async def lock(self, db: AsyncSession, request_id: str) -> PaymentRequest | None:
        row = (await db.execute(_LOCK_SQL, {"id": request_id})).fetchone()
        return _row_to_request(row) if row else None

    async def update(self, db: AsyncSession, request: PaymentRequest) -> PaymentRequest:
        result = await db.execute(
            _UPDATE_SQL,
            {
                "id": request.id,
                "amount_rub": request.amount_rub,
                "amount_usdt": request.amount_usdt,
                "status": request.status,
                "receipt": _json_or_none(request.receipt),
                "admin_comment": request.admin_comment,
                "processed_by": request.processed_by,
                "processed_at": request.processed_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise PaymentRequestNotFoundError(request.id)
        return _row_to_request(row)

    async def list(
        self,
        db: AsyncSession,
        user_id: str | None,
        status: str | None,
        urgency: str | None,
        limit: int,
        offset: int,
    ) -> list[PaymentRequest]:
        result = await db.execute(
            _LIST_SQL,
            {
                "user_id": user_id,
                "status": status,
                "urgency": urgency,
                "limit": limit,
                "offset": offset,
            },
        )
        return [_row_to_request(r) for r in result.fetchall()]
