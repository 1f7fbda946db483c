"""Payable-amount matcher tests."""

from decimal import Decimal

import pytest

from src.pay_common.errors import AmountExhaustedError, DepositAmountOutOfRangeError
from src.pay_deposit.domain.matcher import (
    MatcherPolicy,
    pick_payable_amount,
    validate_requested_amount,
)

POLICY = MatcherPolicy()


class TestPickPayableAmount:
    def test_free_amount_used_unchanged(self) -> None:
        assert pick_payable_amount(Decimal("50"), set(), POLICY) == Decimal("50.0000")

    def test_rounds_to_policy_places(self) -> None:
        assert pick_payable_amount(Decimal("50.123456"), set(), POLICY) == Decimal("50.1235")

    def test_second_deposit_probes_down(self) -> None:
        first = pick_payable_amount(Decimal("50.0000"), set(), POLICY)
        second = pick_payable_amount(Decimal("50.0000"), {first}, POLICY)
        assert first == Decimal("50.0000")
        assert second == Decimal("49.9999")

    def test_skips_taken_candidates(self) -> None:
        taken = {Decimal("50.0000"), Decimal("49.9999"), Decimal("49.9998")}
        assert pick_payable_amount(Decimal("50"), taken, POLICY) == Decimal("49.9997")

    def test_deterministic(self) -> None:
        taken = {Decimal("10.0000"), Decimal("9.9999")}
        results = {pick_payable_amount(Decimal("10"), taken, POLICY) for _ in range(5)}
        assert results == {Decimal("9.9998")}

    def test_unrelated_active_amounts_ignored(self) -> None:
        taken = {Decimal("49.9999"), Decimal("51.0000")}
        assert pick_payable_amount(Decimal("50"), taken, POLICY) == Decimal("50.0000")

    def test_101_distinct_amounts_then_exhausted(self) -> None:
        taken: set[Decimal] = set()
        for _ in range(101):
            taken.add(pick_payable_amount(Decimal("50"), taken, POLICY))

        assert len(taken) == 101
        assert max(taken) == Decimal("50.0000")
        assert min(taken) == Decimal("49.9900")
        assert all(Decimal("50") - a <= Decimal("0.01") for a in taken)

        with pytest.raises(AmountExhaustedError):
            pick_payable_amount(Decimal("50"), taken, POLICY)

    def test_max_delta_caps_probing(self) -> None:
        policy = MatcherPolicy(max_attempts=100, max_delta=Decimal("0.0002"))
        taken = {Decimal("5.0000"), Decimal("4.9999"), Decimal("4.9998")}
        with pytest.raises(AmountExhaustedError):
            pick_payable_amount(Decimal("5"), taken, policy)

    def test_never_goes_to_zero(self) -> None:
        with pytest.raises(AmountExhaustedError):
            pick_payable_amount(Decimal("0.0001"), {Decimal("0.0001")}, POLICY)


class TestValidateRequestedAmount:
    def test_within_bounds(self) -> None:
        assert validate_requested_amount(Decimal("30"), Decimal("30"), Decimal("20000")) == Decimal(
            "30"
        )

    @pytest.mark.parametrize("amount", ["29.99", "20000.01", "NaN"])
    def test_out_of_bounds(self, amount: str) -> None:
        with pytest.raises(DepositAmountOutOfRangeError):
            validate_requested_amount(Decimal(amount), Decimal("30"), Decimal("20000"))
