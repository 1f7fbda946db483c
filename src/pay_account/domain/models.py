"""Domain models for pay_account: pure dataclasses, no SQLAlchemy dependency.

`Account` carries the balance rules. Only the Ledger calls the mutating
methods, always on an account row it holds locked.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pay_common.enums import FrozenFloorPolicy
from src.pay_common.errors import (
    FrozenBalanceUnderflowError,
    InsufficientFundsError,
    InvalidAmountError,
)
from src.pay_common.money import ZERO, to_usdt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceChange:
    available_delta: Decimal
    frozen_delta: Decimal
    clamped: bool = False


def _positive(amount: Decimal) -> Decimal:
    value = to_usdt(amount)
    if value <= ZERO:
        raise InvalidAmountError(f"Amount must be positive, got {amount}")
    return value


@dataclass
class Account:
    id: str
    user_id: str
    available_balance: Decimal
    frozen_balance: Decimal
    version: int
    telegram_id: str | None = None
    username: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_balance(self) -> Decimal:
        return self.available_balance + self.frozen_balance

    def freeze(self, amount: Decimal) -> BalanceChange:
        value = _positive(amount)
        if self.available_balance < value:
            raise InsufficientFundsError(value, self.available_balance)
        self.available_balance -= value
        self.frozen_balance += value
        return BalanceChange(-value, value)

    def release(self, amount: Decimal, policy: FrozenFloorPolicy) -> BalanceChange:
        value = _positive(amount)
        removed, clamped = self._take_frozen(value, policy)
        self.available_balance += value
        return BalanceChange(value, -removed, clamped)

    def settle(self, amount: Decimal, policy: FrozenFloorPolicy) -> BalanceChange:
        value = _positive(amount)
        removed, clamped = self._take_frozen(value, policy)
        return BalanceChange(ZERO, -removed, clamped)

    def credit(self, amount: Decimal) -> BalanceChange:
        value = _positive(amount)
        self.available_balance += value
        return BalanceChange(value, ZERO)

    def adjust_freeze(self, delta: Decimal, policy: FrozenFloorPolicy) -> BalanceChange:
        """Grow (delta > 0) or shrink (delta < 0) an existing reservation."""
        value = to_usdt(delta)
        if value > ZERO:
            return self.freeze(value)
        if value < ZERO:
            return self.release(-value, policy)
        return BalanceChange(ZERO, ZERO)

    def overwrite(self, available: Decimal, frozen: Decimal) -> BalanceChange:
        new_available = to_usdt(available)
        new_frozen = to_usdt(frozen)
        if new_available < ZERO or new_frozen < ZERO:
            raise InvalidAmountError("Balances must not be negative")
        change = BalanceChange(
            new_available - self.available_balance, new_frozen - self.frozen_balance
        )
        self.available_balance = new_available
        self.frozen_balance = new_frozen
        return change

    def _take_frozen(self, value: Decimal, policy: FrozenFloorPolicy) -> tuple[Decimal, bool]:
        """Remove up to `value` from frozen; returns (actually removed, clamped?)."""
        if self.frozen_balance >= value:
            self.frozen_balance -= value
            return value, False
        if policy == FrozenFloorPolicy.STRICT:
            raise FrozenBalanceUnderflowError(value, self.frozen_balance)
        removed = self.frozen_balance
        logger.warning(
            "Frozen balance floored at 0 for user %s: asked %s, had %s",
            self.user_id,
            value,
            removed,
        )
        self.frozen_balance = ZERO
        return removed, True


@dataclass
class LedgerEntry:
    id: int | None                   # BIGSERIAL, None until inserted
    user_id: str
    entry_type: str                  # LedgerEntryType value
    available_delta: Decimal
    frozen_delta: Decimal
    available_after: Decimal
    frozen_after: Decimal
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
