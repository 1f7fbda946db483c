"""Exchange-rate providers.

StaticRateProvider: fixed USDT_RUB_RATE from settings.
CbrRateProvider: USD rate from the CBR daily JSON feed (USDT is treated as
USD-pegged), cached for EXCHANGE_RATE_CACHE_SECONDS. When a refresh fails
the last good rate is served; with no rate at all RateUnavailableError is raised.
"""

import logging
import time
from decimal import Decimal

import httpx

from config.settings import settings
from src.pay_common.errors import RateUnavailableError
from src.pay_common.money import ZERO, to_decimal, to_rate
from src.pay_rates.domain.provider import ExchangeRateProviderProtocol

logger = logging.getLogger(__name__)


class StaticRateProvider:
    def __init__(self, rate: Decimal) -> None:
        if rate <= ZERO:
            raise ValueError(f"Exchange rate must be positive, got {rate}")
        self._rate = to_rate(rate)

    async def get_usdt_rub_rate(self) -> Decimal:
        return self._rate


class CbrRateProvider:
    def __init__(
        self,
        url: str,
        cache_seconds: int,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._cache_seconds = cache_seconds
        self._client = client
        self._timeout = timeout
        self._rate: Decimal | None = None
        self._fetched_at: float | None = None

    def _is_fresh(self, now: float) -> bool:
        return (
            self._rate is not None
            and self._fetched_at is not None
            and now - self._fetched_at < self._cache_seconds
        )

    async def get_usdt_rub_rate(self) -> Decimal:
        now = time.monotonic()
        if self._is_fresh(now):
            return self._rate  # type: ignore[return-value]

        try:
            rate = await self._fetch()
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
            if self._rate is not None:
                logger.warning("CBR rate refresh failed (%s); serving last rate %s", exc, self._rate)
                return self._rate
            raise RateUnavailableError(str(exc)) from exc

        self._rate = rate
        self._fetched_at = now
        logger.info("Fetched CBR USD/RUB rate %s", rate)
        return rate

    async def _fetch(self) -> Decimal:
        if self._client is not None:
            response = await self._client.get(self._url, timeout=self._timeout)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.get(self._url, timeout=self._timeout)
        response.raise_for_status()
        # parse_float keeps the feed's decimal text exact
        payload = response.json(parse_float=Decimal)
        rate = to_rate(to_decimal(payload["Valute"]["USD"]["Value"]))
        if rate <= ZERO:
            raise ValueError(f"Non-positive rate in feed: {rate}")
        return rate


def build_provider() -> ExchangeRateProviderProtocol:
    if settings.EXCHANGE_RATE_SOURCE == "cbr":
        return CbrRateProvider(settings.CBR_DAILY_URL, settings.EXCHANGE_RATE_CACHE_SECONDS)
    return StaticRateProvider(settings.USDT_RUB_RATE)


rate_provider: ExchangeRateProviderProtocol = build_provider()
