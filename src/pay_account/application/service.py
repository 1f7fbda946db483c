"""AccountApplicationService: balance views and admin balance tools.

Read paths run without an explicit transaction. Admin writes go through the
Ledger and commit together with the user's notification row; Telegram
delivery happens after commit.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_account.application.ledger import Ledger
from src.pay_account.application.schemas import (
    AccountInfo,
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.pay_account.domain.repository import AccountRepositoryProtocol
from src.pay_account.infrastructure.persistence import AccountRepository
from src.pay_common.enums import LedgerEntryType, ReferenceType
from src.pay_common.errors import AccountNotFoundError
from src.pay_notification.application import messages
from src.pay_notification.application.notifier import Notifier


class AccountApplicationService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        ledger: Ledger | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._ledger = ledger or Ledger(self._repo)
        self._notifier = notifier or Notifier()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return BalanceResponse.from_account(account)

    async def list_accounts(self, db: AsyncSession) -> list[AccountInfo]:
        accounts = await self._repo.list_accounts(db)
        return [AccountInfo.from_account(a) for a in accounts]

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [LedgerEntryItem.from_entry(e) for e in page]
        next_cursor = cursor_encode(page[-1].id) if has_more and page and page[-1].id else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    async def set_balances(
        self,
        db: AsyncSession,
        user_id: str,
        available: Decimal,
        frozen: Decimal,
        actor: str,
    ) -> BalanceResponse:
        try:
            account = await self._ledger.set_balances(
                db, user_id, available, frozen, description=f"set by {actor}"
            )
            pending = await self._notifier.record(
                db,
                user_id,
                messages.balance_set(account.available_balance, account.frozen_balance),
                chat_id=account.telegram_id,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self._notifier.deliver(pending)
        return BalanceResponse.from_account(account)

    async def grant_deposit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        actor: str,
        comment: str | None = None,
    ) -> BalanceResponse:
        """Credit available balance directly, without a matched deposit."""
        try:
            account = await self._ledger.credit(
                db,
                user_id,
                amount,
                entry_type=LedgerEntryType.ADMIN_CREDIT,
                reference_type=ReferenceType.ADMIN,
                description=comment or f"credited by {actor}",
            )
            pending = await self._notifier.record(
                db,
                user_id,
                messages.balance_credited(amount, account.available_balance),
                chat_id=account.telegram_id,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self._notifier.deliver(pending)
        return BalanceResponse.from_account(account)
