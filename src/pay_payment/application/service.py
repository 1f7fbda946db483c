"""PaymentRequestService: cash-out lifecycle on top of the Ledger.

Every mutating call is one transaction:
  lock request row (FOR UPDATE) → lifecycle check → Ledger ops → write request
  → in-app notification row → commit
Telegram delivery runs after commit and never affects the outcome.

Lock order is always payment request, then account.
"""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_account.application.ledger import Ledger
from src.pay_account.domain.models import Account
from src.pay_common.datetime_utils import utc_now
from src.pay_common.enums import PaymentStatus, Role, Urgency
from src.pay_common.errors import InvalidTransitionError, PaymentRequestNotFoundError
from src.pay_common.id_generator import generate_id, short_number
from src.pay_common.money import rub_to_usdt, to_rub
from src.pay_gateway.auth.dependencies import Principal
from src.pay_notification.application import messages
from src.pay_notification.application.notifier import Notifier, PendingDelivery
from src.pay_payment.application.schemas import (
    PaymentRequestListResponse,
    PaymentRequestResponse,
)
from src.pay_payment.domain.models import PaymentRequest, plan_amount_edit
from src.pay_payment.domain.repository import PaymentRequestRepositoryProtocol
from src.pay_payment.infrastructure.persistence import PaymentRequestRepository
from src.pay_rates.application import providers
from src.pay_rates.domain.provider import ExchangeRateProviderProtocol

logger = logging.getLogger(__name__)

# Cancellation goes through cancel(), which releases the reservation
PROCESS_DECISIONS = frozenset(
    {PaymentStatus.PROCESSING, PaymentStatus.PAID, PaymentStatus.REJECTED}
)


class PaymentRequestService:
    def __init__(
        self,
        repo: PaymentRequestRepositoryProtocol | None = None,
        ledger: Ledger | None = None,
        rates: ExchangeRateProviderProtocol | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._repo: PaymentRequestRepositoryProtocol = repo or PaymentRequestRepository()
        self._ledger = ledger or Ledger()
        self._rates = rates or providers.rate_provider
        self._notifier = notifier or Notifier()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        user_id: str,
        amount_rub: Decimal,
        urgency: Urgency = Urgency.STANDARD,
        comment: str | None = None,
        attachments: list[dict[str, Any]] | None = None,
    ) -> PaymentRequestResponse:
        """Snapshot the current rate and freeze amount_rub / rate.

        On InsufficientFundsError no request row exists afterwards.
        """
        # Rate lookup may hit the network; keep it outside the transaction
        rate = await self._rates.get_usdt_rub_rate()
        rub = to_rub(amount_rub)
        request = PaymentRequest(
            id=generate_id(),
            user_id=user_id,
            amount_rub=rub,
            amount_usdt=rub_to_usdt(rub, rate),
            frozen_rate=rate,
            urgency=urgency.value,
            status=PaymentStatus.SUBMITTED.value,
            comment=comment,
            attachments=attachments or [],
        )
        try:
            await self._ledger.freeze(
                db,
                user_id,
                request.amount_usdt,
                reference_id=request.id,
                description=f"request #{short_number(request.id)}",
            )
            created = await self._repo.insert(db, request)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Payment request %s created: user=%s rub=%s usdt=%s rate=%s",
            created.id,
            user_id,
            created.amount_rub,
            created.amount_usdt,
            created.frozen_rate,
        )
        return PaymentRequestResponse.from_domain(created)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(
        self, db: AsyncSession, request_id: str, principal: Principal
    ) -> PaymentRequestResponse:
        request = await self._repo.get(db, request_id)
        # Users only see their own requests; hide existence of others'
        if request is None or (principal.role == Role.USER and request.user_id != principal.subject):
            raise PaymentRequestNotFoundError(request_id)
        return PaymentRequestResponse.from_domain(request)

    async def list_requests(
        self,
        db: AsyncSession,
        user_id: str | None = None,
        status: str | None = None,
        urgency: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> PaymentRequestListResponse:
        items = await self._repo.list(db, user_id, status, urgency, limit, offset)
        return PaymentRequestListResponse(
            items=[PaymentRequestResponse.from_domain(r) for r in items],
            limit=limit,
            offset=offset,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def approve(
        self,
        db: AsyncSession,
        request_id: str,
        actor: str,
        admin_comment: str | None = None,
    ) -> PaymentRequestResponse:
        return await self.process(
            db, request_id, PaymentStatus.PAID, actor, admin_comment=admin_comment
        )

    async def reject(
        self,
        db: AsyncSession,
        request_id: str,
        actor: str,
        admin_comment: str | None = None,
    ) -> PaymentRequestResponse:
        return await self.process(
            db, request_id, PaymentStatus.REJECTED, actor, admin_comment=admin_comment
        )

    async def cancel(
        self, db: AsyncSession, request_id: str, principal: Principal
    ) -> PaymentRequestResponse:
        """Owner: own SUBMITTED requests only. Admin: any non-terminal request."""
        try:
            request = await self._lock(db, request_id)
            if not principal.is_admin:
                if request.user_id != principal.subject:
                    raise PaymentRequestNotFoundError(request_id)
                if request.status == PaymentStatus.PROCESSING.value:
                    raise InvalidTransitionError(request.status, PaymentStatus.CANCELLED.value)
            request.ensure_can_transition(PaymentStatus.CANCELLED)

            account = await self._ledger.release(
                db,
                request.user_id,
                request.amount_usdt,
                reference_id=request.id,
                description=f"request #{short_number(request.id)} cancelled",
            )
            request.status = PaymentStatus.CANCELLED.value
            request.processed_by = principal.subject if principal.is_admin else None
            request.processed_at = utc_now()
            saved = await self._repo.update(db, request)
            pending = await self._notifier.record(
                db,
                request.user_id,
                messages.request_cancelled(request.id, by_admin=principal.is_admin),
                chat_id=account.telegram_id,
                request_id=request.id,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Payment request %s cancelled by %s", request_id, principal.subject)
        await self._notifier.deliver(pending)
        return PaymentRequestResponse.from_domain(saved)

    async def process(
        self,
        db: AsyncSession,
        request_id: str,
        decision: PaymentStatus,
        actor: str,
        new_amount_rub: Decimal | None = None,
        receipt: dict[str, Any] | None = None,
        admin_comment: str | None = None,
    ) -> PaymentRequestResponse:
        """Operator/admin path: optional amount edit, then the decision.

        An edit re-prices at `frozen_rate` and resizes the reservation first;
        if that fails with InsufficientFundsError (carrying the shortfall)
        nothing about the request or the account changes. PAID settles and
        REJECTED releases the (possibly new) amount_usdt. Any other decision
        raises InvalidTransitionError; cancellation goes through cancel().
        """
        pending: PendingDelivery | None = None
        try:
            request = await self._lock(db, request_id)
            if decision not in PROCESS_DECISIONS:
                raise InvalidTransitionError(request.status, decision.value)
            request.ensure_can_transition(decision)

            edit = plan_amount_edit(request, new_amount_rub)
            if edit is not None:
                await self._ledger.adjust_freeze_delta(
                    db,
                    request.user_id,
                    edit.delta_usdt,
                    reference_id=request.id,
                    description=(
                        f"request #{short_number(request.id)} edited "
                        f"{request.amount_rub} → {edit.amount_rub} RUB"
                    ),
                )
                logger.info(
                    "Payment request %s amount edited: rub %s → %s, usdt %s → %s",
                    request.id,
                    request.amount_rub,
                    edit.amount_rub,
                    request.amount_usdt,
                    edit.amount_usdt,
                )
                request.amount_rub = edit.amount_rub
                request.amount_usdt = edit.amount_usdt

            account = await self._apply_decision(db, request, decision)

            request.status = decision.value
            request.processed_by = actor
            if receipt is not None:
                request.receipt = receipt
            if admin_comment is not None:
                request.admin_comment = admin_comment
            if account is not None:
                request.processed_at = utc_now()
            saved = await self._repo.update(db, request)

            if account is not None:
                pending = await self._notifier.record(
                    db,
                    request.user_id,
                    self._outcome_message(saved),
                    chat_id=account.telegram_id,
                    request_id=request.id,
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Payment request %s → %s by %s", request_id, decision.value, actor)
        if pending is not None:
            await self._notifier.deliver(pending)
        return PaymentRequestResponse.from_domain(saved)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _lock(self, db: AsyncSession, request_id: str) -> PaymentRequest:
        request = await self._repo.lock(db, request_id)
        if request is None:
            raise PaymentRequestNotFoundError(request_id)
        return request

    async def _apply_decision(
        self, db: AsyncSession, request: PaymentRequest, decision: PaymentStatus
    ) -> Account | None:
        """Ledger effect of the decision; None when the request stays open."""
        number = short_number(request.id)
        if decision == PaymentStatus.PAID:
            return await self._ledger.settle(
                db,
                request.user_id,
                request.amount_usdt,
                reference_id=request.id,
                description=f"request #{number} paid",
            )
        if decision == PaymentStatus.REJECTED:
            return await self._ledger.release(
                db,
                request.user_id,
                request.amount_usdt,
                reference_id=request.id,
                description=f"request #{number} rejected",
            )
        return None

    @staticmethod
    def _outcome_message(request: PaymentRequest) -> messages.Message:
        if request.status == PaymentStatus.PAID.value:
            return messages.request_paid(
                request.id, request.amount_rub, request.amount_usdt, request.admin_comment
            )
        return messages.request_rejected(
            request.id, request.amount_rub, request.amount_usdt, request.admin_comment
        )
