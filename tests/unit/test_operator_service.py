"""Unit tests for operator service (mocked DB)."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from jose import jwt

from src.pay_common.errors import (
    AccountDisabledError,
    InvalidCredentialsError,
    LoginExistsError,
    OperatorNotFoundError,
)
from src.pay_gateway.auth.password import hash_password
from src.pay_gateway.operator.db_models import OperatorModel
from src.pay_gateway.operator.service import OperatorService


def _make_operator(is_active: bool = True, password: str = "Operat0r!") -> OperatorModel:
    operator = OperatorModel()
    operator.id = uuid.uuid4()
    operator.login = "cashier"
    operator.display_name = "Cashier"
    operator.password_hash = hash_password(password)
    operator.is_active = is_active
    return operator


def _result(value: object) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def mock_db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service() -> OperatorService:
    return OperatorService()


class TestLogin:
    async def test_success_returns_operator_token(
        self, service: OperatorService, mock_db: AsyncMock
    ) -> None:
        operator = _make_operator()
        mock_db.execute = AsyncMock(return_value=_result(operator))

        found, token = await service.login("cashier", "Operat0r!", mock_db)

        assert found is operator
        claims = jwt.get_unverified_claims(token)
        assert claims["sub"] == str(operator.id)
        assert claims["role"] == "OPERATOR"

    async def test_unknown_login(self, service: OperatorService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(InvalidCredentialsError):
            await service.login("nobody", "whatever", mock_db)

    async def test_wrong_password(self, service: OperatorService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_operator()))
        with pytest.raises(InvalidCredentialsError):
            await service.login("cashier", "wrong", mock_db)

    async def test_disabled_operator(self, service: OperatorService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_operator(is_active=False)))
        with pytest.raises(AccountDisabledError):
            await service.login("cashier", "Operat0r!", mock_db)


class TestCrud:
    async def test_duplicate_login(self, service: OperatorService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_operator()))
        with pytest.raises(LoginExistsError):
            await service.create("cashier", "Operat0r!", None, mock_db)

    async def test_create_hashes_password(
        self, service: OperatorService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        mock_db.add = MagicMock()

        operator = await service.create("newbie", "Secret123", "New", mock_db)

        mock_db.add.assert_called_once_with(operator)
        assert operator.login == "newbie"
        assert operator.password_hash != "Secret123"
        mock_db.flush.assert_awaited_once()

    async def test_get_with_malformed_id(
        self, service: OperatorService, mock_db: AsyncMock
    ) -> None:
        with pytest.raises(OperatorNotFoundError):
            await service.get("not-a-uuid", mock_db)

    async def test_update_deactivates(self, service: OperatorService, mock_db: AsyncMock) -> None:
        operator = _make_operator()
        mock_db.get = AsyncMock(return_value=operator)

        updated = await service.update(str(operator.id), mock_db, is_active=False)

        assert updated.is_active is False

    async def test_delete_missing(self, service: OperatorService, mock_db: AsyncMock) -> None:
        mock_db.get = AsyncMock(return_value=None)
        with pytest.raises(OperatorNotFoundError):
            await service.delete(str(uuid.uuid4()), mock_db)
