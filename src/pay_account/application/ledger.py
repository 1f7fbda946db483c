"""Ledger: the only writer of account balances.

Every operation runs inside the caller's transaction:
  lock account row → apply balance rule → write back (version-guarded) → append ledger entry

The caller commits or rolls back. A raised error leaves the session dirty
but nothing is persisted once the caller rolls back.
"""

import logging
from collections.abc import Callable
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pay_account.domain.models import Account, BalanceChange, LedgerEntry
from src.pay_account.domain.repository import AccountRepositoryProtocol
from src.pay_account.infrastructure.persistence import AccountRepository
from src.pay_common.enums import FrozenFloorPolicy, LedgerEntryType, ReferenceType
from src.pay_common.errors import AccountNotFoundError
from src.pay_common.money import ZERO, to_usdt

logger = logging.getLogger(__name__)

_CLAMP_MARK = "[frozen floored at 0]"


class Ledger:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        floor_policy: FrozenFloorPolicy | None = None,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._policy = floor_policy or FrozenFloorPolicy(settings.LEDGER_FROZEN_FLOOR)

    @property
    def floor_policy(self) -> FrozenFloorPolicy:
        return self._policy

    async def freeze(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> Account:
        """available → frozen. InsufficientFundsError leaves the account untouched."""
        return await self._apply(
            db,
            user_id,
            lambda acc: acc.freeze(amount),
            LedgerEntryType.REQUEST_FREEZE,
            ReferenceType.PAYMENT_REQUEST,
            reference_id,
            description,
        )

    async def release(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> Account:
        return await self._apply(
            db,
            user_id,
            lambda acc: acc.release(amount, self._policy),
            LedgerEntryType.REQUEST_RELEASE,
            ReferenceType.PAYMENT_REQUEST,
            reference_id,
            description,
        )

    async def settle(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> Account:
        """Frozen funds leave the system (payout made)."""
        return await self._apply(
            db,
            user_id,
            lambda acc: acc.settle(amount, self._policy),
            LedgerEntryType.REQUEST_SETTLE,
            ReferenceType.PAYMENT_REQUEST,
            reference_id,
            description,
        )

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        entry_type: LedgerEntryType = LedgerEntryType.DEPOSIT_CREDIT,
        reference_type: ReferenceType = ReferenceType.DEPOSIT,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> Account:
        return await self._apply(
            db,
            user_id,
            lambda acc: acc.credit(amount),
            entry_type,
            reference_type,
            reference_id,
            description,
        )

    async def adjust_freeze_delta(
        self,
        db: AsyncSession,
        user_id: str,
        delta: Decimal,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> Account | None:
        """Resize a reservation. Zero delta touches nothing and returns None."""
        if to_usdt(delta) == ZERO:
            return None
        return await self._apply(
            db,
            user_id,
            lambda acc: acc.adjust_freeze(delta, self._policy),
            LedgerEntryType.FREEZE_ADJUST,
            ReferenceType.PAYMENT_REQUEST,
            reference_id,
            description,
        )

    async def set_balances(
        self,
        db: AsyncSession,
        user_id: str,
        available: Decimal,
        frozen: Decimal,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> Account:
        return await self._apply(
            db,
            user_id,
            lambda acc: acc.overwrite(available, frozen),
            LedgerEntryType.ADMIN_SET,
            ReferenceType.ADMIN,
            reference_id,
            description,
        )

    async def _apply(
        self,
        db: AsyncSession,
        user_id: str,
        rule: Callable[[Account], BalanceChange],
        entry_type: LedgerEntryType,
        reference_type: ReferenceType,
        reference_id: str | None,
        description: str | None,
    ) -> Account:
        account = await self._repo.lock_account(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)

        change = rule(account)
        saved = await self._repo.save_balances(db, account)

        if change.clamped:
            description = f"{description} {_CLAMP_MARK}" if description else _CLAMP_MARK

        await self._repo.insert_ledger_entry(
            db,
            LedgerEntry(
                id=None,
                user_id=user_id,
                entry_type=entry_type.value,
                available_delta=change.available_delta,
                frozen_delta=change.frozen_delta,
                available_after=saved.available_balance,
                frozen_after=saved.frozen_balance,
                reference_type=reference_type.value,
                reference_id=reference_id,
                description=description,
            ),
        )
        logger.debug(
            "Ledger %s user=%s available_delta=%s frozen_delta=%s ref=%s",
            entry_type.value,
            user_id,
            change.available_delta,
            change.frozen_delta,
            reference_id,
        )
        return saved
