"""pay_account REST API: the caller's balance and ledger history."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_account.application.service import AccountApplicationService
from src.pay_common.database import get_db_session
from src.pay_common.response import ApiResponse, success_response
from src.pay_gateway.auth.dependencies import Principal, require_user

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/balance")
async def get_balance(
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, principal.subject)
    return success_response(data, request)


@router.get("/ledger")
async def list_ledger(
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: str | None = Query(None, description="Filter by LedgerEntryType"),
) -> ApiResponse:
    data = await _service.list_ledger(db, principal.subject, cursor, limit, entry_type)
    return success_response(data, request)
