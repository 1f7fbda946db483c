"""Tests for pay_common.errors and pay_common.response."""

from decimal import Decimal

from pydantic import BaseModel

from src.pay_common.errors import (
    AlreadyFinalizedError,
    AppError,
    DepositFinalizedError,
    InsufficientFundsError,
    InvalidTransitionError,
    PaymentRequestFinalizedError,
    ValidationError,
)
from src.pay_common.response import error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500
        assert err.details is None

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_insufficient_funds_reports_shortfall(self) -> None:
        err = InsufficientFundsError(required=Decimal("40"), available=Decimal("10"))
        assert err.code == 2001
        assert err.http_status == 422
        assert err.shortfall == Decimal("30")
        assert err.details == {"required": "40", "available": "10", "shortfall": "30"}

    def test_finalized_errors_share_a_base(self) -> None:
        assert isinstance(PaymentRequestFinalizedError("1", "PAID"), AlreadyFinalizedError)
        assert isinstance(DepositFinalizedError("1", "EXPIRED"), AlreadyFinalizedError)
        assert PaymentRequestFinalizedError("1", "PAID").http_status == 409

    def test_invalid_transition_is_validation(self) -> None:
        err = InvalidTransitionError("PROCESSING", "SUBMITTED")
        assert isinstance(err, ValidationError)
        assert err.http_status == 422


class TestResponse:
    def test_success_defaults(self) -> None:
        resp = success_response({"id": 1})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": 1}
        assert resp.request_id.startswith("req_")

    def test_success_dumps_decimals_as_strings(self) -> None:
        class _Amount(BaseModel):
            value: Decimal

        resp = success_response(_Amount(value=Decimal("1.50")))
        assert resp.data == {"value": "1.50"}

    def test_error_carries_details(self) -> None:
        resp = error_response(2001, "Insufficient funds", {"shortfall": "30"})
        assert resp.code == 2001
        assert resp.data == {"shortfall": "30"}
