"""DepositRepository: raw SQL against the deposits table.

Uniqueness backstops live in the schema:
  - uq_deposits_pending_payable: payable_amount WHERE status = 'PENDING'
  - uq_deposits_tx_hash:         tx_hash WHERE tx_hash IS NOT NULL

Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_common.errors import InternalError
from src.pay_deposit.domain.models import Deposit

# Arbitrary app-wide key for pg_advisory_xact_lock around payable-amount selection
MATCHER_LOCK_KEY = 0x524F4D4158  # "ROMAX"

_COLUMNS = """
    id, user_id, requested_amount, payable_amount, wallet_address, status,
    expires_at, tx_hash, confirmed_amount, confirmed_by, confirmed_at,
    created_at, updated_at
"""

_ADVISORY_LOCK_SQL = text("SELECT pg_advisory_xact_lock(:key)")

_EXPIRE_SQL = text("""
    UPDATE deposits
    SET status = 'EXPIRED', updated_at = NOW()
    WHERE status = 'PENDING' AND expires_at <= :now
""")

_ACTIVE_AMOUNTS_SQL = text("""
    SELECT payable_amount FROM deposits
    WHERE status = 'PENDING' AND expires_at > :now
""")

_INSERT_SQL = text(f"""
    INSERT INTO deposits
        (id, user_id, requested_amount, payable_amount, wallet_address, status, expires_at)
    VALUES
        (:id, :user_id, :requested_amount, :payable_amount, :wallet_address, :status, :expires_at)
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM deposits WHERE id = :id")

_LOCK_SQL = text(f"SELECT {_COLUMNS} FROM deposits WHERE id = :id FOR UPDATE")

_LOCK_BY_PAYABLE_SQL = text(f"""
    SELECT {_COLUMNS} FROM deposits
    WHERE payable_amount = :payable_amount
      AND status = 'PENDING'
      AND expires_at > :now
    ORDER BY created_at ASC
    LIMIT 1
    FOR UPDATE
""")

_BY_TX_HASH_SQL = text(f"SELECT {_COLUMNS} FROM deposits WHERE tx_hash = :tx_hash")

_FINALIZE_SQL = text(f"""
    UPDATE deposits
    SET status           = :status,
        tx_hash          = :tx_hash,
        confirmed_amount = :confirmed_amount,
        confirmed_by     = :confirmed_by,
        confirmed_at     = :confirmed_at,
        updated_at       = NOW()
    WHERE id = :id AND status = 'PENDING'
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM deposits
    WHERE (CAST(:user_id AS TEXT) IS NULL OR user_id = :user_id)
      AND (CAST(:status AS TEXT) IS NULL OR status = :status)
    ORDER BY created_at DESC, id DESC
    LIMIT :limit OFFSET :offset
""")


def _row_to_deposit(row: Any) -> Deposit:
    return Deposit(
        id=row.id,
        user_id=row.user_id,
        requested_amount=row.requested_amount,
        payable_amount=row.payable_amount,
        wallet_address=row.wallet_address,
        status=row.status,
        expires_at=row.expires_at,
        tx_hash=row.tx_hash,
        confirmed_amount=row.confirmed_amount,
        confirmed_by=row.confirmed_by,
        confirmed_at=row.confirmed_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class DepositRepository:
    async def acquire_matcher_lock(self, db: AsyncSession) -> None:
        await db.execute(_ADVISORY_LOCK_SQL, {"key": MATCHER_LOCK_KEY})

    async def expire_stale(self, db: AsyncSession, now: datetime) -> int:
        result = await db.execute(_EXPIRE_SQL, {"now": now})
        return result.rowcount  # type: ignore[attr-defined]

    async def active_payable_amounts(self, db: AsyncSession, now: datetime) -> set[Decimal]:
        result = await db.execute(_ACTIVE_AMOUNTS_SQL, {"now": now})
        return {row.payable_amount for row in result.fetchall()}

    async def insert(self, db: AsyncSession, deposit: Deposit) -> Deposit:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": deposit.id,
                "user_id": deposit.user_id,
                "requested_amount": deposit.requested_amount,
                "payable_amount": deposit.payable_amount,
                "wallet_address": deposit.wallet_address,
                "status": deposit.status,
                "expires_at": deposit.expires_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Deposit insert returned no rows")
        return _row_to_deposit(row)

    async def get(self, db: AsyncSession, deposit_id: str) -> Deposit | None:
        row = (await db.execute(_GET_SQL, {"id": deposit_id})).fetchone()
        return _row_to_deposit(row) if row else None

    async def lock(self, db: AsyncSession, deposit_id: str) -> Deposit | None:
        row = (await db.execute(_LOCK_SQL, {"id": deposit_id})).fetchone()
        return _row_to_deposit(row) if row else None

    async def lock_active_by_payable_amount(
        self, db: AsyncSession, payable_amount: Decimal, now: datetime
    ) -> Deposit | None:
        row = (
            await db.execute(
                _LOCK_BY_PAYABLE_SQL, {"payable_amount": payable_amount, "now": now}
            )
        ).fetchone()
        return _row_to_deposit(row) if row else None

    async def find_by_tx_hash(self, db: AsyncSession, tx_hash: str) -> Deposit | None:
        row = (await db.execute(_BY_TX_HASH_SQL, {"tx_hash": tx_hash})).fetchone()
        return _row_to_deposit(row) if row else None

    async def finalize(self, db: AsyncSession, deposit: Deposit) -> Deposit | None:
        result = await db.execute(
            _FINALIZE_SQL,
            {
                "id": deposit.id,
                "status": deposit.status,
                "tx_hash": deposit.tx_hash,
                "confirmed_amount": deposit.confirmed_amount,
                "confirmed_by": deposit.confirmed_by,
                "confirmed_at": deposit.confirmed_at,
            },
        )
        row = result.fetchone()
        return _row_to_deposit(row) if row else None

    async def list(
        self,
        db: AsyncSession,
        user_id: str | None,
        status: str | None,
        limit: int,
        offset: int,
    ) -> list[Deposit]:
        result = await db.execute(
            _LIST_SQL,
            {"user_id": user_id, "status": status, "limit": limit, "offset": offset},
        )
        return [_row_to_deposit(r) for r in result.fetchall()]
