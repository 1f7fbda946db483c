"""Operator workspace: request queue and the combined process call.

Admins pass `require_staff` too, so both roles share these endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_common.database import get_db_session
from src.pay_common.enums import PaymentStatus, Urgency
from src.pay_common.response import ApiResponse, success_response
from src.pay_gateway.auth.dependencies import Principal, require_staff
from src.pay_payment.application.schemas import ProcessPaymentRequest, attachment_to_json
from src.pay_payment.application.service import PaymentRequestService

router = APIRouter(prefix="/operator/payment-requests", tags=["operator"])

_service = PaymentRequestService()


@router.get("")
async def list_requests(
    principal: Annotated[Principal, Depends(require_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status_filter: PaymentStatus | None = Query(None, alias="status"),
    urgency: Urgency | None = Query(None),
    user_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    data = await _service.list_requests(
        db,
        user_id=user_id,
        status=status_filter.value if status_filter else None,
        urgency=urgency.value if urgency else None,
        limit=limit,
        offset=offset,
    )
    return success_response(data, request)


@router.get("/{request_id}")
async def get_request(
    request_id: str,
    principal: Annotated[Principal, Depends(require_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get(db, request_id, principal)
    return success_response(data, request)


@router.post("/{request_id}/process")
async def process_request(
    request_id: str,
    body: ProcessPaymentRequest,
    principal: Annotated[Principal, Depends(require_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.process(
        db,
        request_id,
        PaymentStatus(body.status),
        principal.subject,
        new_amount_rub=body.amount_rub,
        receipt=attachment_to_json(body.receipt) if body.receipt else None,
        admin_comment=body.admin_comment,
    )
    return success_response(data, request)
