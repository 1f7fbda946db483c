"""Current exchange rate for the mini-app's RUB → USDT preview."""

from fastapi import APIRouter, Request

from src.pay_common.response import ApiResponse, success_response
from src.pay_rates.application import providers

router = APIRouter(tags=["exchange-rate"])


@router.get("/exchange-rate")
async def get_exchange_rate(request: Request) -> ApiResponse:
    rate = await providers.rate_provider.get_usdt_rub_rate()
    return success_response({"pair": "USDT/RUB", "rate": str(rate)}, request)
