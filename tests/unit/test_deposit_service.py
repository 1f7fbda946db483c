"""DepositService tests: matching, confirmation paths and expiry."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from src.pay_common.datetime_utils import utc_now
from src.pay_common.enums import Role
from src.pay_common.errors import (
    AccountNotFoundError,
    DepositAmountOutOfRangeError,
    DepositFinalizedError,
    DepositNotFoundError,
    DuplicateTransactionError,
    PayableAmountConflictError,
)
from src.pay_deposit.application.service import CHAIN_ACTOR
from src.pay_gateway.auth.dependencies import Principal


def _expire(deposits, deposit_id: str) -> None:
    deposits.deposits[deposit_id].expires_at = utc_now() - timedelta(seconds=1)


class TestCreate:
    async def test_two_deposits_get_distinct_amounts(
        self, accounts, deposits, deposit_service, db
    ) -> None:
        accounts.add("u1")
        accounts.add("u2")
        first = await deposit_service.create(db, "u1", Decimal("50.0000"))
        second = await deposit_service.create(db, "u2", Decimal("50.0000"))

        assert first.payable_amount == Decimal("50.0000")
        assert second.payable_amount == Decimal("49.9999")
        assert first.status == second.status == "PENDING"
        assert deposits.matcher_locks == 2

    async def test_create_does_not_touch_balance(
        self, accounts, deposit_service, db, notifications
    ) -> None:
        accounts.add("u1", "5")
        await deposit_service.create(db, "u1", Decimal("100"))
        assert accounts.balances("u1") == (Decimal("5"), Decimal("0"))
        assert accounts.entries == []
        assert len(notifications.messages_for("u1")) == 1

    async def test_amount_outside_bounds(self, accounts, deposits, deposit_service, db) -> None:
        accounts.add("u1")
        with pytest.raises(DepositAmountOutOfRangeError):
            await deposit_service.create(db, "u1", Decimal("1"))
        assert deposits.deposits == {}

    async def test_expired_amount_is_reusable(
        self, accounts, deposits, deposit_service, db
    ) -> None:
        accounts.add("u1")
        first = await deposit_service.create(db, "u1", Decimal("50"))
        _expire(deposits, first.id)

        again = await deposit_service.create(db, "u1", Decimal("50"))

        assert again.payable_amount == Decimal("50.0000")
        assert deposits.deposits[first.id].status == "EXPIRED"

    async def test_unique_index_violation_maps_to_conflict(
        self, accounts, deposits, deposit_service, db, monkeypatch
    ) -> None:
        accounts.add("u1")
        await deposit_service.create(db, "u1", Decimal("50"))

        async def _nothing_taken(session, now):
            return set()

        monkeypatch.setattr(deposits, "active_payable_amounts", _nothing_taken)
        with pytest.raises(PayableAmountConflictError):
            await deposit_service.create(db, "u1", Decimal("50"))
        assert len(deposits.deposits) == 1

    async def test_unknown_user_is_not_a_conflict(self, deposits, deposit_service, db) -> None:
        with pytest.raises(AccountNotFoundError):
            await deposit_service.create(db, "ghost", Decimal("50"))
        assert deposits.deposits == {}

    async def test_other_integrity_errors_propagate(
        self, accounts, deposits, deposit_service, db, monkeypatch
    ) -> None:
        accounts.add("u1")

        async def _fk_violation(session, deposit):
            raise IntegrityError(
                "INSERT INTO deposits", {}, Exception("deposits_user_id_fkey")
            )

        monkeypatch.setattr(deposits, "insert", _fk_violation)
        with pytest.raises(IntegrityError):
            await deposit_service.create(db, "u1", Decimal("50"))
        assert db.rollbacks == 1


class TestConfirm:
    async def test_manual_confirm_credits_requested_amount(
        self, accounts, deposit_service, db, notifications
    ) -> None:
        accounts.add("u1", "1")
        created = await deposit_service.create(db, "u1", Decimal("50"))

        confirmed = await deposit_service.confirm(db, created.id, "admin")

        assert confirmed.status == "CONFIRMED"
        assert confirmed.confirmed_by == "admin"
        assert confirmed.confirmed_amount == Decimal("50")
        assert accounts.balances("u1") == (Decimal("51"), Decimal("0"))
        assert accounts.entries[-1].entry_type == "DEPOSIT_CREDIT"
        assert accounts.entries[-1].reference_id == created.id
        assert "подтверждён" in notifications.messages_for("u1")[-1]

    async def test_confirm_twice_credits_once(self, accounts, deposit_service, db) -> None:
        accounts.add("u1")
        created = await deposit_service.create(db, "u1", Decimal("50"))
        await deposit_service.confirm(db, created.id, "admin")

        with pytest.raises(DepositFinalizedError):
            await deposit_service.confirm(db, created.id, "admin")
        assert accounts.balances("u1") == (Decimal("50"), Decimal("0"))

    async def test_rejected_deposit_cannot_be_confirmed(
        self, accounts, deposit_service, db
    ) -> None:
        accounts.add("u1")
        created = await deposit_service.create(db, "u1", Decimal("50"))
        rejected = await deposit_service.reject(db, created.id, "admin")

        assert rejected.status == "REJECTED"
        with pytest.raises(DepositFinalizedError):
            await deposit_service.confirm(db, created.id, "admin")
        assert accounts.balances("u1") == (Decimal("0"), Decimal("0"))

    async def test_unknown_deposit(self, deposit_service, db) -> None:
        with pytest.raises(DepositNotFoundError):
            await deposit_service.confirm(db, "missing", "admin")

    async def test_overdue_deposit_cannot_be_confirmed_before_sweep(
        self, accounts, deposits, deposit_service, db
    ) -> None:
        accounts.add("u1")
        created = await deposit_service.create(db, "u1", Decimal("50"))
        _expire(deposits, created.id)

        with pytest.raises(DepositFinalizedError):
            await deposit_service.confirm(db, created.id, "admin")
        assert deposits.deposits[created.id].status == "PENDING"
        assert accounts.balances("u1") == (Decimal("0"), Decimal("0"))


class TestChainConfirm:
    async def test_credits_actual_amount(self, accounts, deposit_service, db, sink) -> None:
        accounts.add("u1", telegram_id="42")
        accounts.add("u2")
        await deposit_service.create(db, "u2", Decimal("50"))
        created = await deposit_service.create(db, "u1", Decimal("50"))

        confirmed = await deposit_service.confirm_from_chain(
            db, Decimal("49.9999"), Decimal("49.9999"), "0xabc123def456"
        )

        assert confirmed.id == created.id
        assert confirmed.tx_hash == "0xabc123def456"
        assert confirmed.confirmed_by == CHAIN_ACTOR
        assert accounts.balances("u1") == (Decimal("49.9999"), Decimal("0"))
        assert accounts.balances("u2") == (Decimal("0"), Decimal("0"))
        assert [chat for chat, _ in sink.sent] == ["42", "42"]

    async def test_same_tx_applied_once(self, accounts, deposit_service, db) -> None:
        accounts.add("u1")
        await deposit_service.create(db, "u1", Decimal("50"))
        await deposit_service.create(db, "u1", Decimal("50"))
        await deposit_service.confirm_from_chain(db, Decimal("50"), Decimal("50"), "0xfeedbeef01")

        with pytest.raises(DuplicateTransactionError):
            await deposit_service.confirm_from_chain(
                db, Decimal("49.9999"), Decimal("49.9999"), "0xfeedbeef01"
            )
        assert accounts.balances("u1") == (Decimal("50"), Decimal("0"))

    async def test_no_matching_deposit(self, accounts, deposit_service, db) -> None:
        accounts.add("u1")
        await deposit_service.create(db, "u1", Decimal("50"))
        with pytest.raises(DepositNotFoundError):
            await deposit_service.confirm_from_chain(
                db, Decimal("12.3456"), Decimal("12.3456"), "0x0000000001"
            )

    async def test_expired_deposit_not_matched(
        self, accounts, deposits, deposit_service, db
    ) -> None:
        accounts.add("u1")
        created = await deposit_service.create(db, "u1", Decimal("50"))
        _expire(deposits, created.id)
        with pytest.raises(DepositNotFoundError):
            await deposit_service.confirm_from_chain(
                db, Decimal("50"), Decimal("50"), "0x0000000002"
            )
        assert accounts.balances("u1") == (Decimal("0"), Decimal("0"))


class TestExpiry:
    async def test_sweep_expires_only_overdue(
        self, accounts, deposits, deposit_service, db
    ) -> None:
        accounts.add("u1")
        stale = await deposit_service.create(db, "u1", Decimal("50"))
        fresh = await deposit_service.create(db, "u1", Decimal("60"))
        _expire(deposits, stale.id)

        assert await deposit_service.expire_stale(db) == 1
        assert await deposit_service.expire_stale(db) == 0
        assert deposits.deposits[stale.id].status == "EXPIRED"
        assert deposits.deposits[fresh.id].status == "PENDING"

    async def test_expired_cannot_be_confirmed(
        self, accounts, deposits, deposit_service, db
    ) -> None:
        accounts.add("u1")
        created = await deposit_service.create(db, "u1", Decimal("50"))
        _expire(deposits, created.id)
        await deposit_service.expire_stale(db)

        with pytest.raises(DepositFinalizedError):
            await deposit_service.confirm(db, created.id, "admin")


class TestReads:
    async def test_user_sees_only_own(self, accounts, deposit_service, db) -> None:
        accounts.add("u1")
        created = await deposit_service.create(db, "u1", Decimal("50"))

        own = await deposit_service.get(db, created.id, Principal(role=Role.USER, subject="u1"))
        assert own.id == created.id
        with pytest.raises(DepositNotFoundError):
            await deposit_service.get(db, created.id, Principal(role=Role.USER, subject="u2"))

    async def test_list_by_status(self, accounts, deposit_service, db) -> None:
        accounts.add("u1")
        first = await deposit_service.create(db, "u1", Decimal("50"))
        await deposit_service.create(db, "u1", Decimal("70"))
        await deposit_service.reject(db, first.id, "admin")

        pending = await deposit_service.list_deposits(db, user_id="u1", status="PENDING")
        assert [d.requested_amount for d in pending.items] == [Decimal("70")]
