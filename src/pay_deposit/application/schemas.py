"""Pydantic schemas for pay_deposit API."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.pay_deposit.domain.models import Deposit


class CreateDepositRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=20, decimal_places=8)


class ChainConfirmRequest(BaseModel):
    payable_amount: Decimal = Field(..., gt=0, max_digits=20, decimal_places=8)
    actual_amount: Decimal = Field(..., gt=0, max_digits=20, decimal_places=8)
    tx_hash: str = Field(..., min_length=8, max_length=128)


class DepositResponse(BaseModel):
    id: str
    user_id: str
    requested_amount: Decimal
    payable_amount: Decimal
    wallet_address: str
    status: str
    expires_at: str
    tx_hash: str | None
    confirmed_amount: Decimal | None
    confirmed_by: str | None
    confirmed_at: str | None
    created_at: str

    @classmethod
    def from_domain(cls, d: Deposit) -> "DepositResponse":
        return cls(
            id=d.id,
            user_id=d.user_id,
            requested_amount=d.requested_amount,
            payable_amount=d.payable_amount,
            wallet_address=d.wallet_address,
            status=d.status,
            expires_at=d.expires_at.isoformat(),
            tx_hash=d.tx_hash,
            confirmed_amount=d.confirmed_amount,
            confirmed_by=d.confirmed_by,
            confirmed_at=d.confirmed_at.isoformat() if d.confirmed_at else None,
            created_at=d.created_at.isoformat() if d.created_at else "",
        )


class DepositListResponse(BaseModel):
    items: list[DepositResponse]
    limit: int
    offset: int
