"""FastAPI dependencies: caller identity and role gates.

Usage in any protected router:
    from src.pay_gateway.auth.dependencies import Principal, require_user

    @router.get("/protected")
    async def protected(principal: Principal = Depends(require_user)):
        ...
"""

import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_common.database import get_db_session
from src.pay_common.enums import Role
from src.pay_common.errors import AccountDisabledError, ForbiddenError, InvalidCredentialsError
from src.pay_gateway.auth.jwt_handler import decode_token
from src.pay_gateway.operator.db_models import OperatorModel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/operator/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class Principal:
    role: Role
    subject: str  # user_id, operator id, or "admin"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return Principal(role=Role(payload["role"]), subject=payload["sub"])


async def require_user(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.role != Role.USER:
        raise ForbiddenError("Telegram user session required")
    return principal


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.role != Role.ADMIN:
        raise ForbiddenError("Administrator access required")
    return principal


async def require_staff(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
) -> Principal:
    """Admin, or an operator whose row still exists and is active."""
    if principal.role == Role.ADMIN:
        return principal
    if principal.role != Role.OPERATOR:
        raise ForbiddenError("Staff access required")

    try:
        operator_id = uuid.UUID(principal.subject)
    except ValueError:
        raise _CREDENTIALS_EXCEPTION from None
    operator = await db.get(OperatorModel, operator_id)
    if operator is None:
        raise _CREDENTIALS_EXCEPTION
    if not operator.is_active:
        raise AccountDisabledError()
    return principal
