"""pay_notification REST API: the user's in-app inbox."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_common.database import get_db_session
from src.pay_common.response import ApiResponse, success_response
from src.pay_gateway.auth.dependencies import Principal, require_user
from src.pay_notification.application.schemas import MarkReadRequest
from src.pay_notification.application.service import NotificationApplicationService

router = APIRouter(prefix="/notifications", tags=["notifications"])

_service = NotificationApplicationService()


@router.get("")
async def list_notifications(
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = Query(False),
) -> ApiResponse:
    data = await _service.list_for_user(db, principal.subject, limit, unread_only)
    return success_response(data, request)


@router.get("/unread-count")
async def unread_count(
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    count = await _service.unread_count(db, principal.subject)
    return success_response({"unread_count": count}, request)


@router.post("/read")
async def mark_read(
    body: MarkReadRequest,
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.mark_read(db, principal.subject, body.ids)
    return success_response(data, request)
