"""Exchange-rate provider tests; the CBR feed is served by httpx.MockTransport."""

from decimal import Decimal

import httpx
import pytest

from src.pay_common.errors import RateUnavailableError
from src.pay_rates.application.providers import CbrRateProvider, StaticRateProvider

FEED_URL = "https://cbr.test/daily_json.js"
FEED = '{"Date": "2026-09-14T11:30:00+03:00", "Valute": {"USD": {"CharCode": "USD", "Value": 92.5813}}}'


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestStaticRateProvider:
    async def test_returns_configured_rate(self) -> None:
        assert await StaticRateProvider(Decimal("95")).get_usdt_rub_rate() == Decimal("95")

    def test_rejects_non_positive(self) -> None:
        with pytest.raises(ValueError):
            StaticRateProvider(Decimal("0"))


class TestCbrRateProvider:
    async def test_parses_usd_value_exactly(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url)
            return httpx.Response(200, text=FEED)

        async with _client(handler) as client:
            provider = CbrRateProvider(FEED_URL, cache_seconds=600, client=client)
            assert await provider.get_usdt_rub_rate() == Decimal("92.5813")
            assert await provider.get_usdt_rub_rate() == Decimal("92.5813")

        assert len(calls) == 1

    async def test_serves_last_rate_when_refresh_fails(self) -> None:
        responses = iter([httpx.Response(200, text=FEED), httpx.Response(503)])

        async with _client(lambda request: next(responses)) as client:
            provider = CbrRateProvider(FEED_URL, cache_seconds=0, client=client)
            first = await provider.get_usdt_rub_rate()
            second = await provider.get_usdt_rub_rate()

        assert first == second == Decimal("92.5813")

    async def test_unavailable_without_cached_rate(self) -> None:
        async with _client(lambda request: httpx.Response(200, json={"Valute": {}})) as client:
            provider = CbrRateProvider(FEED_URL, cache_seconds=600, client=client)
            with pytest.raises(RateUnavailableError):
                await provider.get_usdt_rub_rate()
