"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the PostgreSQL implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_account.domain.models import Account, LedgerEntry


class AccountRepositoryProtocol(Protocol):
    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None: ...

    async def lock_account(self, db: AsyncSession, user_id: str) -> Account | None:
        """Read the account row holding an exclusive lock until the transaction ends."""
        ...

    async def save_balances(self, db: AsyncSession, account: Account) -> Account: ...

    async def insert_ledger_entry(
        self, db: AsyncSession, entry: LedgerEntry
    ) -> LedgerEntry: ...

    async def upsert_telegram_account(
        self, db: AsyncSession, telegram_id: str, username: str | None
    ) -> Account: ...

    async def list_accounts(self, db: AsyncSession) -> list[Account]: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
