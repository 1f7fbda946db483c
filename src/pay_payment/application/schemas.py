"""Pydantic schemas for payment requests, incl. the tagged attachment variant."""

import base64
import binascii
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import AfterValidator, BaseModel, Field, HttpUrl

from src.pay_common.enums import Urgency
from src.pay_common.id_generator import short_number
from src.pay_common.money import rub_display, usdt_display
from src.pay_payment.domain.models import PaymentRequest

MAX_FILE_BYTES = 10 * 1024 * 1024  # 10MB decoded


def _check_base64_size(value: str) -> str:
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("data must be base64 encoded") from None
    if len(raw) > MAX_FILE_BYTES:
        raise ValueError("file is larger than 10MB")
    return value


Base64File = Annotated[str, Field(min_length=1), AfterValidator(_check_base64_size)]


# ---------------------------------------------------------------------------
# Attachment / receipt: tagged by `kind`
# ---------------------------------------------------------------------------


class ImageAttachment(BaseModel):
    kind: Literal["image"]
    name: str = Field(..., min_length=1, max_length=255)
    mime_type: Literal["image/jpeg", "image/jpg", "image/png"]
    data: Base64File


class PdfAttachment(BaseModel):
    kind: Literal["pdf"]
    name: str = Field(..., min_length=1, max_length=255)
    mime_type: Literal["application/pdf"] = "application/pdf"
    data: Base64File


class LinkAttachment(BaseModel):
    kind: Literal["link"]
    url: HttpUrl
    name: str | None = Field(None, max_length=255)


Attachment = Annotated[
    Union[ImageAttachment, PdfAttachment, LinkAttachment],
    Field(discriminator="kind"),
]


def attachment_to_json(attachment: BaseModel) -> dict[str, Any]:
    return attachment.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreatePaymentRequest(BaseModel):
    amount_rub: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    urgency: Urgency = Urgency.STANDARD
    comment: str | None = Field(None, max_length=1000)
    attachments: list[Attachment] = Field(default_factory=list, max_length=5)


class ProcessPaymentRequest(BaseModel):
    status: Literal["PROCESSING", "PAID", "REJECTED"]
    amount_rub: Decimal | None = Field(None, gt=0, max_digits=14, decimal_places=2)
    receipt: Attachment | None = None
    admin_comment: str | None = Field(None, max_length=1000)


class DecisionRequest(BaseModel):
    admin_comment: str | None = Field(None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PaymentRequestResponse(BaseModel):
    id: str
    number: str
    user_id: str
    amount_rub: Decimal
    amount_rub_display: str
    amount_usdt: Decimal
    amount_usdt_display: str
    frozen_rate: Decimal
    urgency: str
    status: str
    comment: str | None
    attachments: list[dict[str, Any]]
    receipt: dict[str, Any] | None
    admin_comment: str | None
    processed_by: str | None
    created_at: str
    processed_at: str | None

    @classmethod
    def from_domain(cls, r: PaymentRequest) -> "PaymentRequestResponse":
        return cls(
            id=r.id,
            number=short_number(r.id),
            user_id=r.user_id,
            amount_rub=r.amount_rub,
            amount_rub_display=rub_display(r.amount_rub),
            amount_usdt=r.amount_usdt,
            amount_usdt_display=usdt_display(r.amount_usdt),
            frozen_rate=r.frozen_rate,
            urgency=r.urgency,
            status=r.status,
            comment=r.comment,
            attachments=r.attachments,
            receipt=r.receipt,
            admin_comment=r.admin_comment,
            processed_by=r.processed_by,
            created_at=r.created_at.isoformat() if r.created_at else "",
            processed_at=r.processed_at.isoformat() if r.processed_at else None,
        )


class PaymentRequestListResponse(BaseModel):
    items: list[PaymentRequestResponse]
    limit: int
    offset: int
