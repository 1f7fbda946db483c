"""pay_deposit REST API: the mini-app user's deposits."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_common.database import get_db_session
from src.pay_common.enums import DepositStatus
from src.pay_common.response import ApiResponse, success_response
from src.pay_deposit.application.schemas import CreateDepositRequest
from src.pay_deposit.application.service import DepositService
from src.pay_gateway.auth.dependencies import Principal, require_user

router = APIRouter(prefix="/deposits", tags=["deposits"])

_service = DepositService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_deposit(
    body: CreateDepositRequest,
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create(db, principal.subject, body.amount)
    return success_response(data, request)


@router.get("")
async def list_my_deposits(
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status_filter: DepositStatus | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    data = await _service.list_deposits(
        db,
        user_id=principal.subject,
        status=status_filter.value if status_filter else None,
        limit=limit,
        offset=offset,
    )
    return success_response(data, request)


@router.get("/{deposit_id}")
async def get_my_deposit(
    deposit_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get(db, deposit_id, principal)
    return success_response(data, request)
