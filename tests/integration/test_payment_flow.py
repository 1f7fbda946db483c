"""Integration tests for balances, payment requests and deposits (requires PG).

Run: pytest -m integration tests/integration
Pre-condition: alembic upgrade head
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient

from config.settings import settings

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


async def _fund(client: AsyncClient, admin_headers: dict, user_id: str, amount: str) -> None:
    resp = await client.post(
        f"/api/v1/admin/accounts/{user_id}/grant-deposit",
        json={"amount": amount},
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text


async def _balance(client: AsyncClient, headers: dict) -> tuple[Decimal, Decimal]:
    data = (await client.get("/api/v1/account/balance", headers=headers)).json()["data"]
    return Decimal(data["available_balance"]), Decimal(data["frozen_balance"])


def _rub_for(usdt: str) -> str:
    return str(Decimal(usdt) * settings.USDT_RUB_RATE)


class TestPaymentRequestFlow:
    async def test_submit_and_approve(self, client, admin_headers, user) -> None:
        user_id, headers = user
        await _fund(client, admin_headers, user_id, "100")

        resp = await client.post(
            "/api/v1/payment-requests", json={"amount_rub": _rub_for("40")}, headers=headers
        )
        assert resp.status_code == 201, resp.text
        request_id = resp.json()["data"]["id"]
        assert await _balance(client, headers) == (Decimal("60"), Decimal("40"))

        resp = await client.post(
            f"/api/v1/admin/payment-requests/{request_id}/approve", headers=admin_headers
        )
        assert resp.json()["data"]["status"] == "PAID"
        assert await _balance(client, headers) == (Decimal("60"), Decimal("0"))

        again = await client.post(
            f"/api/v1/admin/payment-requests/{request_id}/reject", headers=admin_headers
        )
        assert again.status_code == 409

    async def test_submit_and_cancel(self, client, admin_headers, user) -> None:
        user_id, headers = user
        await _fund(client, admin_headers, user_id, "100")
        resp = await client.post(
            "/api/v1/payment-requests", json={"amount_rub": _rub_for("40")}, headers=headers
        )
        request_id = resp.json()["data"]["id"]

        resp = await client.post(f"/api/v1/payment-requests/{request_id}/cancel", headers=headers)
        assert resp.json()["data"]["status"] == "CANCELLED"
        assert await _balance(client, headers) == (Decimal("100"), Decimal("0"))

    async def test_insufficient_funds(self, client, admin_headers, user) -> None:
        user_id, headers = user
        await _fund(client, admin_headers, user_id, "10")

        resp = await client.post(
            "/api/v1/payment-requests", json={"amount_rub": _rub_for("40")}, headers=headers
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001
        assert await _balance(client, headers) == (Decimal("10"), Decimal("0"))
        listing = await client.get("/api/v1/payment-requests", headers=headers)
        assert listing.json()["data"]["items"] == []


class TestDepositFlow:
    async def test_confirm_credits_balance(self, client, admin_headers, user) -> None:
        _, headers = user
        resp = await client.post("/api/v1/deposits", json={"amount": "77.1234"}, headers=headers)
        assert resp.status_code == 201, resp.text
        deposit = resp.json()["data"]
        assert Decimal(deposit["payable_amount"]) <= Decimal("77.1234")

        resp = await client.post(
            f"/api/v1/admin/deposits/{deposit['id']}/confirm", headers=admin_headers
        )
        assert resp.json()["data"]["status"] == "CONFIRMED"
        assert await _balance(client, headers) == (Decimal("77.1234"), Decimal("0"))
