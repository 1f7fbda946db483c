"""Global enums: must match DB CHECK constraints exactly (see alembic/versions)."""

from enum import Enum


class PaymentStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class Urgency(str, Enum):
    STANDARD = "STANDARD"
    URGENT = "URGENT"


class DepositStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class LedgerEntryType(str, Enum):
    # Payment request reservations
    REQUEST_FREEZE = "REQUEST_FREEZE"
    REQUEST_RELEASE = "REQUEST_RELEASE"
    REQUEST_SETTLE = "REQUEST_SETTLE"
    FREEZE_ADJUST = "FREEZE_ADJUST"
    # Incoming funds
    DEPOSIT_CREDIT = "DEPOSIT_CREDIT"
    ADMIN_CREDIT = "ADMIN_CREDIT"
    # Administrative overwrite
    ADMIN_SET = "ADMIN_SET"


class ReferenceType(str, Enum):
    PAYMENT_REQUEST = "PAYMENT_REQUEST"
    DEPOSIT = "DEPOSIT"
    ADMIN = "ADMIN"


class FrozenFloorPolicy(str, Enum):
    """What release/settle do when asked to remove more than is frozen."""

    CLAMP = "CLAMP"
    STRICT = "STRICT"


class Role(str, Enum):
    USER = "USER"
    OPERATOR = "OPERATOR"
    ADMIN = "ADMIN"
