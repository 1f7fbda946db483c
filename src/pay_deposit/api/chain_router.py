"""Blockchain observer callback.

The observer watches the deposit wallet and reports each incoming transfer.
It authenticates with the shared CHAIN_WEBHOOK_SECRET in X-Webhook-Secret;
an empty secret disables the endpoint.
"""

import hmac
import logging

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pay_common.database import get_db_session
from src.pay_common.errors import ForbiddenError
from src.pay_common.response import ApiResponse, success_response
from src.pay_deposit.application.schemas import ChainConfirmRequest
from src.pay_deposit.application.service import DepositService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deposits", tags=["chain"])

_service = DepositService()


async def verify_webhook_secret(
    x_webhook_secret: str | None = Header(None, alias="X-Webhook-Secret"),
) -> None:
    expected = settings.CHAIN_WEBHOOK_SECRET
    if not expected or not x_webhook_secret:
        raise ForbiddenError("Chain webhook is not authorized")
    if not hmac.compare_digest(x_webhook_secret.encode(), expected.encode()):
        logger.warning("Chain webhook called with a wrong secret")
        raise ForbiddenError("Chain webhook is not authorized")


@router.post("/chain-confirm", dependencies=[Depends(verify_webhook_secret)])
async def chain_confirm(
    body: ChainConfirmRequest,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    data = await _service.confirm_from_chain(
        db, body.payable_amount, body.actual_amount, body.tx_hash
    )
    return success_response(data, request)
