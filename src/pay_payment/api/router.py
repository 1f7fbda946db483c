"""pay_payment REST API: the mini-app user's own cash-out requests."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_common.database import get_db_session
from src.pay_common.enums import PaymentStatus
from src.pay_common.response import ApiResponse, success_response
from src.pay_gateway.auth.dependencies import Principal, require_user
from src.pay_payment.application.schemas import CreatePaymentRequest, attachment_to_json
from src.pay_payment.application.service import PaymentRequestService

router = APIRouter(prefix="/payment-requests", tags=["payment-requests"])

_service = PaymentRequestService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payment_request(
    body: CreatePaymentRequest,
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create(
        db,
        principal.subject,
        body.amount_rub,
        urgency=body.urgency,
        comment=body.comment,
        attachments=[attachment_to_json(a) for a in body.attachments],
    )
    return success_response(data, request)


@router.get("")
async def list_my_requests(
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status_filter: PaymentStatus | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    data = await _service.list_requests(
        db,
        user_id=principal.subject,
        status=status_filter.value if status_filter else None,
        limit=limit,
        offset=offset,
    )
    return success_response(data, request)


@router.get("/{request_id}")
async def get_my_request(
    request_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get(db, request_id, principal)
    return success_response(data, request)


@router.post("/{request_id}/cancel")
async def cancel_my_request(
    request_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel(db, request_id, principal)
    return success_response(data, request)
