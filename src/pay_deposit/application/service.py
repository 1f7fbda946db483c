"""DepositService: deposit lifecycle and payable-amount assignment.

Creation (one transaction):
  advisory xact lock → expire stale PENDING rows → read active payable amounts
  → matcher → insert → notification row → commit

Confirmation (one transaction):
  lock deposit → must be PENDING → Ledger.credit → UPDATE ... WHERE status='PENDING'
  → notification row → commit

Telegram delivery always runs after commit.
"""

import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pay_account.application.ledger import Ledger
from src.pay_account.domain.repository import AccountRepositoryProtocol
from src.pay_account.infrastructure.persistence import AccountRepository
from src.pay_common.datetime_utils import minutes_from_now, utc_now
from src.pay_common.enums import DepositStatus, LedgerEntryType, ReferenceType, Role
from src.pay_common.errors import (
    AccountNotFoundError,
    DepositFinalizedError,
    DepositNotFoundError,
    DuplicateTransactionError,
    PayableAmountConflictError,
)
from src.pay_common.id_generator import generate_id
from src.pay_common.money import to_usdt
from src.pay_deposit.application.schemas import DepositListResponse, DepositResponse
from src.pay_deposit.domain.matcher import (
    MatcherPolicy,
    pick_payable_amount,
    validate_requested_amount,
)
from src.pay_deposit.domain.models import Deposit
from src.pay_deposit.domain.repository import DepositRepositoryProtocol
from src.pay_deposit.infrastructure.persistence import DepositRepository
from src.pay_gateway.auth.dependencies import Principal
from src.pay_notification.application import messages
from src.pay_notification.application.notifier import Notifier, PendingDelivery

logger = logging.getLogger(__name__)

CHAIN_ACTOR = "chain"
PENDING_PAYABLE_CONSTRAINT = "uq_deposits_pending_payable"
TX_HASH_CONSTRAINT = "uq_deposits_tx_hash"


def _violates(exc: IntegrityError, constraint: str) -> bool:
    return constraint in str(exc.orig)


class DepositService:
    def __init__(
        self,
        repo: DepositRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        ledger: Ledger | None = None,
        notifier: Notifier | None = None,
        policy: MatcherPolicy | None = None,
    ) -> None:
        self._repo: DepositRepositoryProtocol = repo or DepositRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._ledger = ledger or Ledger(self._accounts)
        self._notifier = notifier or Notifier()
        self._policy = policy or MatcherPolicy.from_settings()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create(
        self, db: AsyncSession, user_id: str, requested_amount: Decimal
    ) -> DepositResponse:
        requested = validate_requested_amount(
            requested_amount, settings.DEPOSIT_MIN_USDT, settings.DEPOSIT_MAX_USDT
        )
        payable: Decimal | None = None
        try:
            if await self._accounts.get_account_by_user_id(db, user_id) is None:
                raise AccountNotFoundError(user_id)
            await self._repo.acquire_matcher_lock(db)
            now = utc_now()
            expired = await self._repo.expire_stale(db, now)
            if expired:
                logger.info("Expired %d stale deposits before matching", expired)

            taken = await self._repo.active_payable_amounts(db, now)
            payable = pick_payable_amount(requested, taken, self._policy)

            deposit = await self._repo.insert(
                db,
                Deposit(
                    id=generate_id(),
                    user_id=user_id,
                    requested_amount=to_usdt(requested),
                    payable_amount=payable,
                    wallet_address=settings.DEPOSIT_WALLET_ADDRESS,
                    status=DepositStatus.PENDING.value,
                    expires_at=minutes_from_now(settings.DEPOSIT_EXPIRATION_MINUTES, now),
                ),
            )
            pending = await self._record(
                db,
                user_id,
                messages.deposit_created(
                    requested, payable, settings.DEPOSIT_EXPIRATION_MINUTES
                ),
                deposit.id,
            )
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            # Partial unique index caught a concurrent writer that bypassed the lock
            if _violates(exc, PENDING_PAYABLE_CONSTRAINT):
                raise PayableAmountConflictError(payable or requested) from None
            raise
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Deposit %s created: user=%s requested=%s payable=%s",
            deposit.id,
            user_id,
            deposit.requested_amount,
            deposit.payable_amount,
        )
        await self._notifier.deliver(pending)
        return DepositResponse.from_domain(deposit)

    # ------------------------------------------------------------------
    # Confirmation / rejection
    # ------------------------------------------------------------------

    async def confirm(self, db: AsyncSession, deposit_id: str, actor: str) -> DepositResponse:
        """Manual admin confirmation: credits the requested amount.

        Like the chain path, refuses a deposit past expires_at.
        """
        try:
            deposit = await self._lock(db, deposit_id)
            deposit.ensure_active(utc_now())
            saved, pending = await self._confirm_locked(
                db, deposit, deposit.requested_amount, None, actor
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Deposit %s confirmed by %s: +%s", deposit_id, actor, saved.confirmed_amount)
        await self._notifier.deliver(pending)
        return DepositResponse.from_domain(saved)

    async def confirm_from_chain(
        self,
        db: AsyncSession,
        payable_amount: Decimal,
        actual_amount: Decimal,
        tx_hash: str,
    ) -> DepositResponse:
        """Observed transfer: credits what actually arrived to the matching deposit."""
        try:
            if await self._repo.find_by_tx_hash(db, tx_hash) is not None:
                raise DuplicateTransactionError(tx_hash)

            amount = to_usdt(payable_amount)
            deposit = await self._repo.lock_active_by_payable_amount(db, amount, utc_now())
            if deposit is None:
                raise DepositNotFoundError(f"payable amount {amount}")

            saved, pending = await self._confirm_locked(
                db, deposit, actual_amount, tx_hash, CHAIN_ACTOR
            )
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            # Same transfer reported twice concurrently
            if _violates(exc, TX_HASH_CONSTRAINT):
                raise DuplicateTransactionError(tx_hash) from None
            raise
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Deposit %s confirmed from chain tx=%s payable=%s actual=%s",
            saved.id,
            tx_hash,
            saved.payable_amount,
            saved.confirmed_amount,
        )
        await self._notifier.deliver(pending)
        return DepositResponse.from_domain(saved)

    async def reject(self, db: AsyncSession, deposit_id: str, actor: str) -> DepositResponse:
        try:
            deposit = await self._lock(db, deposit_id)
            deposit.ensure_pending()
            deposit.status = DepositStatus.REJECTED.value
            deposit.confirmed_by = actor
            saved = await self._finalize(db, deposit)
            pending = await self._record(db, deposit.user_id, messages.deposit_rejected(), deposit.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Deposit %s rejected by %s", deposit_id, actor)
        await self._notifier.deliver(pending)
        return DepositResponse.from_domain(saved)

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    async def expire_stale(self, db: AsyncSession) -> int:
        """PENDING → EXPIRED for every deposit past expires_at. Safe to re-run."""
        try:
            count = await self._repo.expire_stale(db, utc_now())
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if count:
            logger.info("Expired %d pending deposits", count)
        return count

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, db: AsyncSession, deposit_id: str, principal: Principal) -> DepositResponse:
        deposit = await self._repo.get(db, deposit_id)
        if deposit is None or (principal.role == Role.USER and deposit.user_id != principal.subject):
            raise DepositNotFoundError(deposit_id)
        return DepositResponse.from_domain(deposit)

    async def list_deposits(
        self,
        db: AsyncSession,
        user_id: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> DepositListResponse:
        items = await self._repo.list(db, user_id, status, limit, offset)
        return DepositListResponse(
            items=[DepositResponse.from_domain(d) for d in items],
            limit=limit,
            offset=offset,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _lock(self, db: AsyncSession, deposit_id: str) -> Deposit:
        deposit = await self._repo.lock(db, deposit_id)
        if deposit is None:
            raise DepositNotFoundError(deposit_id)
        return deposit

    async def _finalize(self, db: AsyncSession, deposit: Deposit) -> Deposit:
        saved = await self._repo.finalize(db, deposit)
        if saved is None:
            raise DepositFinalizedError(deposit.id, "finalized concurrently")
        return saved

    async def _confirm_locked(
        self,
        db: AsyncSession,
        deposit: Deposit,
        actual_amount: Decimal,
        tx_hash: str | None,
        actor: str,
    ) -> tuple[Deposit, PendingDelivery]:
        amount = to_usdt(actual_amount)
        account = await self._ledger.credit(
            db,
            deposit.user_id,
            amount,
            entry_type=LedgerEntryType.DEPOSIT_CREDIT,
            reference_type=ReferenceType.DEPOSIT,
            reference_id=deposit.id,
            description=f"deposit tx {tx_hash}" if tx_hash else f"deposit confirmed by {actor}",
        )
        deposit.status = DepositStatus.CONFIRMED.value
        deposit.tx_hash = tx_hash
        deposit.confirmed_amount = amount
        deposit.confirmed_by = actor
        deposit.confirmed_at = utc_now()
        saved = await self._finalize(db, deposit)
        pending = await self._notifier.record(
            db,
            deposit.user_id,
            messages.deposit_confirmed(amount),
            chat_id=account.telegram_id,
            deposit_id=deposit.id,
        )
        return saved, pending

    async def _record(
        self, db: AsyncSession, user_id: str, message: messages.Message, deposit_id: str
    ) -> PendingDelivery:
        account = await self._accounts.get_account_by_user_id(db, user_id)
        return await self._notifier.record(
            db,
            user_id,
            message,
            chat_id=account.telegram_id if account else None,
            deposit_id=deposit_id,
        )
