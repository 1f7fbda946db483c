"""Operator service: staff login and admin-side CRUD.

Transactions are managed by the caller (router layer) via `async with db.begin()`.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.pay_common.enums import Role
from src.pay_common.errors import (
    AccountDisabledError,
    InvalidCredentialsError,
    LoginExistsError,
    OperatorNotFoundError,
)
from src.pay_gateway.auth.jwt_handler import create_access_token
from src.pay_gateway.auth.password import hash_password, verify_password
from src.pay_gateway.operator.db_models import OperatorModel


def _parse_id(operator_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(operator_id)
    except ValueError:
        raise OperatorNotFoundError(operator_id) from None


class OperatorService:
    """Stateless service: instantiate once, reuse across requests."""

    async def login(self, login: str, password: str, db: AsyncSession) -> tuple[OperatorModel, str]:
        """Unknown login and wrong password both raise InvalidCredentialsError."""
        result = await db.execute(select(OperatorModel).where(OperatorModel.login == login))
        operator = result.scalar_one_or_none()

        if operator is None or not verify_password(password, operator.password_hash):
            raise InvalidCredentialsError()
        if not operator.is_active:
            raise AccountDisabledError()

        return operator, create_access_token(str(operator.id), Role.OPERATOR)

    async def get(self, operator_id: str, db: AsyncSession) -> OperatorModel:
        operator = await db.get(OperatorModel, _parse_id(operator_id))
        if operator is None:
            raise OperatorNotFoundError(operator_id)
        return operator

    async def list_all(self, db: AsyncSession) -> list[OperatorModel]:
        result = await db.execute(select(OperatorModel).order_by(OperatorModel.created_at.desc()))
        return list(result.scalars().all())

    async def create(
        self,
        login: str,
        password: str,
        display_name: str | None,
        db: AsyncSession,
    ) -> OperatorModel:
        # DB UNIQUE constraint is the final guard
        result = await db.execute(select(OperatorModel).where(OperatorModel.login == login))
        if result.scalar_one_or_none() is not None:
            raise LoginExistsError(login)

        operator = OperatorModel(
            login=login,
            display_name=display_name,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(operator)
        await db.flush()
        await db.refresh(operator)
        return operator

    async def update(
        self,
        operator_id: str,
        db: AsyncSession,
        is_active: bool | None = None,
        display_name: str | None = None,
        password: str | None = None,
    ) -> OperatorModel:
        operator = await self.get(operator_id, db)
        if is_active is not None:
            operator.is_active = is_active
        if display_name is not None:
            operator.display_name = display_name
        if password is not None:
            operator.password_hash = hash_password(password)
        await db.flush()
        await db.refresh(operator)
        return operator

    async def delete(self, operator_id: str, db: AsyncSession) -> None:
        operator = await self.get(operator_id, db)
        await db.delete(operator)
        await db.flush()
