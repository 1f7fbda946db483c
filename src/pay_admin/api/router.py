"""Admin REST API: every endpoint requires an ADMIN token."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_account.application.schemas import GrantDepositRequest, SetBalancesRequest
from src.pay_account.application.service import AccountApplicationService
from src.pay_common.database import get_db_session
from src.pay_common.enums import DepositStatus, PaymentStatus, Urgency
from src.pay_common.response import ApiResponse, success_response
from src.pay_deposit.application.service import DepositService
from src.pay_gateway.auth.dependencies import Principal, require_admin
from src.pay_gateway.operator.db_models import OperatorModel
from src.pay_gateway.operator.schemas import (
    OperatorCreateRequest,
    OperatorInfo,
    OperatorUpdateRequest,
)
from src.pay_gateway.operator.service import OperatorService
from src.pay_payment.application.schemas import (
    DecisionRequest,
    ProcessPaymentRequest,
    attachment_to_json,
)
from src.pay_payment.application.service import PaymentRequestService

router = APIRouter(prefix="/admin", tags=["admin"])

_accounts = AccountApplicationService()
_payments = PaymentRequestService()
_deposits = DepositService()
_operators = OperatorService()

AdminPrincipal = Annotated[Principal, Depends(require_admin)]
Session = Annotated[AsyncSession, Depends(get_db_session)]


def _operator_info(operator: OperatorModel) -> OperatorInfo:
    return OperatorInfo(
        id=str(operator.id),
        login=operator.login,
        display_name=operator.display_name,
        is_active=operator.is_active,
        created_at=operator.created_at.isoformat(),
    )


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@router.get("/accounts")
async def list_accounts(principal: AdminPrincipal, db: Session, request: Request) -> ApiResponse:
    data = await _accounts.list_accounts(db)
    return success_response(data, request)


@router.get("/accounts/{user_id}/balance")
async def get_account_balance(
    user_id: str, principal: AdminPrincipal, db: Session, request: Request
) -> ApiResponse:
    data = await _accounts.get_balance(db, user_id)
    return success_response(data, request)


@router.get("/accounts/{user_id}/ledger")
async def get_account_ledger(
    user_id: str,
    principal: AdminPrincipal,
    db: Session,
    request: Request,
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    entry_type: str | None = Query(None),
) -> ApiResponse:
    data = await _accounts.list_ledger(db, user_id, cursor, limit, entry_type)
    return success_response(data, request)


@router.put("/accounts/{user_id}/balances")
async def set_account_balances(
    user_id: str,
    body: SetBalancesRequest,
    principal: AdminPrincipal,
    db: Session,
    request: Request,
) -> ApiResponse:
    data = await _accounts.set_balances(
        db, user_id, body.available_balance, body.frozen_balance, principal.subject
    )
    return success_response(data, request)


@router.post("/accounts/{user_id}/grant-deposit")
async def grant_deposit(
    user_id: str,
    body: GrantDepositRequest,
    principal: AdminPrincipal,
    db: Session,
    request: Request,
) -> ApiResponse:
    data = await _accounts.grant_deposit(
        db, user_id, body.amount, principal.subject, comment=body.comment
    )
    return success_response(data, request)


# ---------------------------------------------------------------------------
# Payment requests
# ---------------------------------------------------------------------------


@router.get("/payment-requests")
async def list_payment_requests(
    principal: AdminPrincipal,
    db: Session,
    request: Request,
    status_filter: PaymentStatus | None = Query(None, alias="status"),
    urgency: Urgency | None = Query(None),
    user_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    data = await _payments.list_requests(
        db,
        user_id=user_id,
        status=status_filter.value if status_filter else None,
        urgency=urgency.value if urgency else None,
        limit=limit,
        offset=offset,
    )
    return success_response(data, request)


@router.post("/payment-requests/{request_id}/approve")
async def approve_payment_request(
    request_id: str,
    principal: AdminPrincipal,
    db: Session,
    request: Request,
    body: DecisionRequest | None = None,
) -> ApiResponse:
    comment = body.admin_comment if body else None
    data = await _payments.approve(db, request_id, principal.subject, admin_comment=comment)
    return success_response(data, request)


@router.post("/payment-requests/{request_id}/reject")
async def reject_payment_request(
    request_id: str,
    principal: AdminPrincipal,
    db: Session,
    request: Request,
    body: DecisionRequest | None = None,
) -> ApiResponse:
    comment = body.admin_comment if body else None
    data = await _payments.reject(db, request_id, principal.subject, admin_comment=comment)
    return success_response(data, request)


@router.post("/payment-requests/{request_id}/cancel")
async def cancel_payment_request(
    request_id: str, principal: AdminPrincipal, db: Session, request: Request
) -> ApiResponse:
    data = await _payments.cancel(db, request_id, principal)
    return success_response(data, request)


@router.post("/payment-requests/{request_id}/process")
async def process_payment_request(
    request_id: str,
    body: ProcessPaymentRequest,
    principal: AdminPrincipal,
    db: Session,
    request: Request,
) -> ApiResponse:
    data = await _payments.process(
        db,
        request_id,
        PaymentStatus(body.status),
        principal.subject,
        new_amount_rub=body.amount_rub,
        receipt=attachment_to_json(body.receipt) if body.receipt else None,
        admin_comment=body.admin_comment,
    )
    return success_response(data, request)


# ---------------------------------------------------------------------------
# Deposits
# ---------------------------------------------------------------------------


@router.get("/deposits")
async def list_deposits(
    principal: AdminPrincipal,
    db: Session,
    request: Request,
    status_filter: DepositStatus | None = Query(DepositStatus.PENDING, alias="status"),
    user_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    data = await _deposits.list_deposits(
        db,
        user_id=user_id,
        status=status_filter.value if status_filter else None,
        limit=limit,
        offset=offset,
    )
    return success_response(data, request)


@router.post("/deposits/{deposit_id}/confirm")
async def confirm_deposit(
    deposit_id: str, principal: AdminPrincipal, db: Session, request: Request
) -> ApiResponse:
    data = await _deposits.confirm(db, deposit_id, principal.subject)
    return success_response(data, request)


@router.post("/deposits/{deposit_id}/reject")
async def reject_deposit(
    deposit_id: str, principal: AdminPrincipal, db: Session, request: Request
) -> ApiResponse:
    data = await _deposits.reject(db, deposit_id, principal.subject)
    return success_response(data, request)


@router.post("/deposits/expire")
async def expire_deposits(principal: AdminPrincipal, db: Session, request: Request) -> ApiResponse:
    count = await _deposits.expire_stale(db)
    return success_response({"expired": count}, request)


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


@router.get("/operators")
async def list_operators(principal: AdminPrincipal, db: Session, request: Request) -> ApiResponse:
    operators = await _operators.list_all(db)
    return success_response([_operator_info(o) for o in operators], request)


@router.post("/operators", status_code=status.HTTP_201_CREATED)
async def create_operator(
    body: OperatorCreateRequest, principal: AdminPrincipal, db: Session, request: Request
) -> ApiResponse:
    async with db.begin():
        operator = await _operators.create(body.login, body.password, body.display_name, db)
    return success_response(_operator_info(operator), request)


@router.patch("/operators/{operator_id}")
async def update_operator(
    operator_id: str,
    body: OperatorUpdateRequest,
    principal: AdminPrincipal,
    db: Session,
    request: Request,
) -> ApiResponse:
    async with db.begin():
        operator = await _operators.update(
            operator_id,
            db,
            is_active=body.is_active,
            display_name=body.display_name,
            password=body.password,
        )
    return success_response(_operator_info(operator), request)


@router.delete("/operators/{operator_id}")
async def delete_operator(
    operator_id: str, principal: AdminPrincipal, db: Session, request: Request
) -> ApiResponse:
    async with db.begin():
        await _operators.delete(operator_id, db)
    return success_response({"deleted": operator_id}, request)
