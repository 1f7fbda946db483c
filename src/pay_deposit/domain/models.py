"""Deposit domain model.

    PENDING ──► CONFIRMED | REJECTED | EXPIRED   (all terminal)

A deposit never touches the Ledger until it is confirmed.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pay_common.enums import DepositStatus
from src.pay_common.errors import DepositFinalizedError


@dataclass
class Deposit:
    id: str
    user_id: str
    requested_amount: Decimal
    payable_amount: Decimal
    wallet_address: str
    status: str
    expires_at: datetime
    tx_hash: str | None = None
    confirmed_amount: Decimal | None = None
    confirmed_by: str | None = None
    confirmed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == DepositStatus.PENDING.value

    def is_active(self, now: datetime) -> bool:
        return self.is_pending and self.expires_at > now

    def ensure_pending(self) -> None:
        if not self.is_pending:
            raise DepositFinalizedError(self.id, self.status)

    def ensure_active(self, now: datetime) -> None:
        """PENDING and not yet past expires_at, even if the sweep has not run."""
        self.ensure_pending()
        if self.expires_at <= now:
            raise DepositFinalizedError(self.id, DepositStatus.EXPIRED.value)
