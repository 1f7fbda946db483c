"""Exchange-rate source Protocol: RUB per 1 USDT."""

from decimal import Decimal
from typing import Protocol


class ExchangeRateProviderProtocol(Protocol):
    async def get_usdt_rub_rate(self) -> Decimal: ...
