"""Auth API router: Telegram mini-app login, admin login, operator login.

All endpoints return ApiResponse[T]. request_id is read from
request.state (injected by RequestLogMiddleware).
"""

import hmac
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pay_account.infrastructure.persistence import AccountRepository
from src.pay_common.database import get_db_session
from src.pay_common.enums import Role
from src.pay_common.errors import InvalidCredentialsError
from src.pay_common.response import ApiResponse, success_response
from src.pay_gateway.auth.dependencies import Principal, get_current_principal
from src.pay_gateway.auth.jwt_handler import create_access_token
from src.pay_gateway.auth.telegram import validate_init_data
from src.pay_gateway.operator.schemas import (
    AdminLoginRequest,
    OperatorLoginRequest,
    TelegramAuthRequest,
    TokenResponse,
)
from src.pay_gateway.operator.service import OperatorService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
_operators = OperatorService()
_accounts = AccountRepository()

_ADMIN_SUBJECT = "admin"


def _token(subject: str, role: Role) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(subject, role),
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        role=role.value,
        subject=subject,
    )


@router.post(
    "/telegram",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Mini-app login with Telegram initData",
)
async def telegram_login(
    request: Request,
    body: TelegramAuthRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    tg_user = validate_init_data(
        body.init_data,
        settings.BOT_TOKEN,
        settings.TELEGRAM_AUTH_MAX_AGE_SECONDS,
    )
    async with db.begin():
        account = await _accounts.upsert_telegram_account(
            db, tg_user.telegram_id, tg_user.username
        )
    logger.info("Telegram login telegram_id=%s user=%s", tg_user.telegram_id, account.user_id)

    resp = success_response(_token(account.user_id, Role.USER), request)
    resp.message = "Login successful"
    return resp


@router.post(
    "/admin/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Administrator login with the shared password",
)
async def admin_login(request: Request, body: AdminLoginRequest) -> ApiResponse:
    if not hmac.compare_digest(body.password.encode(), settings.ADMIN_PASSWORD.encode()):
        logger.warning("Failed admin login attempt")
        raise InvalidCredentialsError()

    resp = success_response(_token(_ADMIN_SUBJECT, Role.ADMIN), request)
    resp.message = "Login successful"
    return resp


@router.post(
    "/operator/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Operator login",
)
async def operator_login(
    request: Request,
    body: OperatorLoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    operator, access_token = await _operators.login(body.login, body.password, db)

    data = TokenResponse(
        access_token=access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        role=Role.OPERATOR.value,
        subject=str(operator.id),
    )
    resp = success_response(data, request)
    resp.message = "Login successful"
    return resp


@router.get("/me", response_model=ApiResponse, summary="Current token identity")
async def whoami(
    request: Request,
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse:
    return success_response({"role": principal.role.value, "subject": principal.subject}, request)
