"""PaymentRequest domain model and lifecycle rules.

    SUBMITTED ──► PROCESSING ──► PAID | REJECTED
        │             │
        ├─────────────┴──► CANCELLED
        └──► PAID | REJECTED   (direct admin decision)

PAID, REJECTED and CANCELLED are terminal. `amount_usdt` stays frozen on the
owner's account from creation until a terminal state is reached.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.pay_common.enums import PaymentStatus
from src.pay_common.errors import InvalidTransitionError, PaymentRequestFinalizedError
from src.pay_common.money import RUB_EDIT_EPSILON, rub_to_usdt, to_rub

TERMINAL_STATUSES = frozenset(
    {PaymentStatus.PAID, PaymentStatus.REJECTED, PaymentStatus.CANCELLED}
)

_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.SUBMITTED: frozenset(
        {
            PaymentStatus.PROCESSING,
            PaymentStatus.PAID,
            PaymentStatus.REJECTED,
            PaymentStatus.CANCELLED,
        }
    ),
    # PROCESSING → PROCESSING: operator edits the amount while keeping the request in work
    PaymentStatus.PROCESSING: frozenset(
        {
            PaymentStatus.PROCESSING,
            PaymentStatus.PAID,
            PaymentStatus.REJECTED,
            PaymentStatus.CANCELLED,
        }
    ),
}


@dataclass
class PaymentRequest:
    id: str
    user_id: str
    amount_rub: Decimal
    amount_usdt: Decimal
    frozen_rate: Decimal
    urgency: str
    status: str
    comment: str | None = None
    attachments: list[dict[str, Any]] = field(default_factory=list)
    receipt: dict[str, Any] | None = None
    admin_comment: str | None = None
    processed_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    processed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return PaymentStatus(self.status) in TERMINAL_STATUSES

    def ensure_can_transition(self, target: PaymentStatus) -> None:
        current = PaymentStatus(self.status)
        if current in TERMINAL_STATUSES:
            raise PaymentRequestFinalizedError(self.id, current.value)
        if target not in _TRANSITIONS[current]:
            raise InvalidTransitionError(current.value, target.value)

    def ensure_editable(self) -> None:
        if self.is_terminal:
            raise PaymentRequestFinalizedError(self.id, self.status)


@dataclass(frozen=True)
class AmountEdit:
    """Result of re-pricing a request in RUB at its frozen rate."""

    amount_rub: Decimal
    amount_usdt: Decimal
    delta_usdt: Decimal


def plan_amount_edit(request: PaymentRequest, new_amount_rub: Decimal | None) -> AmountEdit | None:
    """None when no edit was asked for or the change is within 0.01 RUB.

    The new USDT amount is always computed at `frozen_rate`, never a fresh rate.
    """
    if new_amount_rub is None:
        return None
    new_rub = to_rub(new_amount_rub)
    if abs(new_rub - request.amount_rub) <= RUB_EDIT_EPSILON:
        return None
    new_usdt = rub_to_usdt(new_rub, request.frozen_rate)
    return AmountEdit(
        amount_rub=new_rub,
        amount_usdt=new_usdt,
        delta_usdt=new_usdt - request.amount_usdt,
    )
