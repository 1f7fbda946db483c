"""AccountRepository: PostgreSQL implementation of AccountRepositoryProtocol.

Balance mutations follow lock → compute → write-back:
  1. `lock_account` reads the row with SELECT ... FOR UPDATE
  2. the Ledger applies the rule on the domain Account
  3. `save_balances` writes it back guarded by `version`

Transaction ownership: the CALLER (application service) commits or rolls back.
Row locks are held until then, so same-account mutations never interleave.
"""

import uuid
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_account.domain.models import Account, LedgerEntry
from src.pay_common.errors import ConcurrentUpdateError, InternalError

_ACCOUNT_COLUMNS = """
    id, user_id, telegram_id, username,
    available_balance, frozen_balance, version, created_at, updated_at
"""

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")

_LOCK_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
    FOR UPDATE
""")

_SAVE_BALANCES_SQL = text(f"""
    UPDATE accounts
    SET available_balance = :available_balance,
        frozen_balance    = :frozen_balance,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND version = :version
    RETURNING {_ACCOUNT_COLUMNS}
""")

_UPSERT_TELEGRAM_SQL = text(f"""
    INSERT INTO accounts (user_id, telegram_id, username)
    VALUES (:user_id, :telegram_id, :username)
    ON CONFLICT (telegram_id) DO UPDATE
        SET username = COALESCE(EXCLUDED.username, accounts.username)
    RETURNING {_ACCOUNT_COLUMNS}
""")

_LIST_ACCOUNTS_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    ORDER BY created_at DESC
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, available_delta, frozen_delta,
         available_after, frozen_after, reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :available_delta, :frozen_delta,
         :available_after, :frozen_after, :reference_type, :reference_id, :description)
    RETURNING id, created_at
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, available_delta, frozen_delta,
           available_after, frozen_after, reference_type, reference_id,
           description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS TEXT) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: Any) -> Account:
    return Account(
        id=str(row.id),
        user_id=row.user_id,
        telegram_id=row.telegram_id,
        username=row.username,
        available_balance=row.available_balance,
        frozen_balance=row.frozen_balance,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_ledger(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        user_id=row.user_id,
        entry_type=row.entry_type,
        available_delta=row.available_delta,
        frozen_delta=row.frozen_delta,
        available_after=row.available_after,
        frozen_after=row.frozen_after,
        reference_type=row.reference_type,
        reference_id=row.reference_id,
        description=row.description,
        created_at=row.created_at,
    )


class AccountRepository:
    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        row = (await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})).fetchone()
        return _row_to_account(row) if row else None

    async def lock_account(self, db: AsyncSession, user_id: str) -> Account | None:
        row = (await db.execute(_LOCK_ACCOUNT_SQL, {"user_id": user_id})).fetchone()
        return _row_to_account(row) if row else None

    async def save_balances(self, db: AsyncSession, account: Account) -> Account:
        result = await db.execute(
            _SAVE_BALANCES_SQL,
            {
                "user_id": account.user_id,
                "available_balance": account.available_balance,
                "frozen_balance": account.frozen_balance,
                "version": account.version,
            },
        )
        row = result.fetchone()
        if row is None:
            # Only reachable if someone wrote the row without taking the lock
            raise ConcurrentUpdateError("Account", account.user_id)
        return _row_to_account(row)

    async def insert_ledger_entry(
        self, db: AsyncSession, entry: LedgerEntry
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": entry.user_id,
                "entry_type": entry.entry_type,
                "available_delta": entry.available_delta,
                "frozen_delta": entry.frozen_delta,
                "available_after": entry.available_after,
                "frozen_after": entry.frozen_after,
                "reference_type": entry.reference_type,
                "reference_id": entry.reference_id,
                "description": entry.description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        entry.id = row.id
        entry.created_at = row.created_at
        return entry

    async def upsert_telegram_account(
        self, db: AsyncSession, telegram_id: str, username: str | None
    ) -> Account:
        result = await db.execute(
            _UPSERT_TELEGRAM_SQL,
            {
                "user_id": str(uuid.uuid4()),
                "telegram_id": telegram_id,
                "username": username,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Account upsert returned no rows")
        return _row_to_account(row)

    async def list_accounts(self, db: AsyncSession) -> list[Account]:
        rows = (await db.execute(_LIST_ACCOUNTS_SQL)).fetchall()
        return [_row_to_account(r) for r in rows]

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(r) for r in result.fetchall()]
