"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session.
"""

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pay_account.infrastructure.persistence import AccountRepository
from src.pay_common.database import async_session_factory
from src.pay_common.enums import Role
from src.pay_gateway.auth.jwt_handler import create_access_token


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token('admin', Role.ADMIN)}"}


@pytest_asyncio.fixture(loop_scope="session")
async def user() -> tuple[str, dict[str, str]]:
    """A fresh Telegram account with a zero balance; returns (user_id, auth headers)."""
    telegram_id = str(uuid.uuid4().int % 10**12)
    async with async_session_factory() as db, db.begin():
        account = await AccountRepository().upsert_telegram_account(
            db, telegram_id, f"it_{telegram_id}"
        )
    token = create_access_token(account.user_id, Role.USER)
    return account.user_id, {"Authorization": f"Bearer {token}"}
