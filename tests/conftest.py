"""Shared test fixtures."""

# ruff: noqa: E402  -- settings are read at import time

import os

os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ADMIN_PASSWORD", "test-admin-password")
os.environ.setdefault("BOT_TOKEN", "")
os.environ.setdefault("CHAIN_WEBHOOK_SECRET", "test-chain-secret")
os.environ.setdefault("EXCHANGE_RATE_SOURCE", "static")

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
