"""In-memory fakes for the repository Protocols plus a session that rolls them back.

FakeSession mimics the parts of AsyncSession the services use: commit()
keeps the current state of every attached repository, rollback() restores
the state saved at the last commit.
"""

import copy
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy.exc import IntegrityError

from src.pay_account.application.ledger import Ledger
from src.pay_account.domain.models import Account, LedgerEntry
from src.pay_common.enums import DepositStatus, FrozenFloorPolicy
from src.pay_common.errors import ConcurrentUpdateError
from src.pay_deposit.application.service import DepositService
from src.pay_deposit.domain.matcher import MatcherPolicy
from src.pay_deposit.domain.models import Deposit
from src.pay_notification.application.notifier import Notifier
from src.pay_notification.domain.models import Notification
from src.pay_payment.application.service import PaymentRequestService
from src.pay_payment.domain.models import PaymentRequest
from src.pay_rates.application.providers import StaticRateProvider

TEST_RATE = Decimal("100")


class _Snapshotting:
    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self.__dict__)

    def restore(self, state: dict[str, Any]) -> None:
        self.__dict__.clear()
        self.__dict__.update(copy.deepcopy(state))


class FakeSession:
    def __init__(self, *repos: _Snapshotting) -> None:
        self._repos = repos
        self._saved = [r.snapshot() for r in repos]
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self._saved = [r.snapshot() for r in self._repos]
        self.commits += 1

    async def rollback(self) -> None:
        for repo, state in zip(self._repos, self._saved):
            repo.restore(state)
        self.rollbacks += 1


class FakeAccountRepo(_Snapshotting):
    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}
        self.entries: list[LedgerEntry] = []
        self.locks: list[str] = []

    def add(
        self,
        user_id: str,
        available: str | Decimal = "0",
        frozen: str | Decimal = "0",
        telegram_id: str | None = None,
    ) -> Account:
        account = Account(
            id=f"acc-{user_id}",
            user_id=user_id,
            available_balance=Decimal(available),
            frozen_balance=Decimal(frozen),
            version=0,
            telegram_id=telegram_id,
            created_at=datetime.now(UTC),
        )
        self.accounts[user_id] = account
        return replace(account)

    def balances(self, user_id: str) -> tuple[Decimal, Decimal]:
        account = self.accounts[user_id]
        return account.available_balance, account.frozen_balance

    async def get_account_by_user_id(self, db: Any, user_id: str) -> Account | None:
        account = self.accounts.get(user_id)
        return replace(account) if account else None

    async def lock_account(self, db: Any, user_id: str) -> Account | None:
        self.locks.append(user_id)
        return await self.get_account_by_user_id(db, user_id)

    async def save_balances(self, db: Any, account: Account) -> Account:
        stored = self.accounts[account.user_id]
        if stored.version != account.version:
            raise ConcurrentUpdateError("Account", account.user_id)
        saved = replace(account, version=account.version + 1)
        self.accounts[account.user_id] = saved
        return replace(saved)

    async def insert_ledger_entry(self, db: Any, entry: LedgerEntry) -> LedgerEntry:
        saved = replace(entry, id=len(self.entries) + 1, created_at=datetime.now(UTC))
        self.entries.append(saved)
        return saved

    async def upsert_telegram_account(
        self, db: Any, telegram_id: str, username: str | None
    ) -> Account:
        for account in self.accounts.values():
            if account.telegram_id == telegram_id:
                if username:
                    account.username = username
                return replace(account)
        account = Account(
            id=f"acc-tg-{telegram_id}",
            user_id=f"user-tg-{telegram_id}",
            available_balance=Decimal("0"),
            frozen_balance=Decimal("0"),
            version=0,
            telegram_id=telegram_id,
            username=username,
        )
        self.accounts[account.user_id] = account
        return replace(account)

    async def list_accounts(self, db: Any) -> list[Account]:
        return [replace(a) for a in self.accounts.values()]

    async def list_ledger_entries(
        self,
        db: Any,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        rows = [
            e
            for e in reversed(self.entries)
            if e.user_id == user_id
            and (cursor_id is None or (e.id or 0) < cursor_id)
            and (entry_type is None or e.entry_type == entry_type)
        ]
        return rows[:limit]


class FakePaymentRepo(_Snapshotting):
    def __init__(self) -> None:
        self.requests: dict[str, PaymentRequest] = {}

    async def insert(self, db: Any, request: PaymentRequest) -> PaymentRequest:
        now = datetime.now(UTC)
        saved = replace(request, created_at=now, updated_at=now)
        self.requests[request.id] = saved
        return replace(saved)

    async def get(self, db: Any, request_id: str) -> PaymentRequest | None:
        request = self.requests.get(request_id)
        return replace(request) if request else None

    async def lock(self, db: Any, request_id: str) -> PaymentRequest | None:
        return await self.get(db, request_id)

    async def update(self, db: Any, request: PaymentRequest) -> PaymentRequest:
        saved = replace(request, updated_at=datetime.now(UTC))
        self.requests[request.id] = saved
        return replace(saved)

    async def list(
        self,
        db: Any,
        user_id: str | None,
        status: str | None,
        urgency: str | None,
        limit: int,
        offset: int,
    ) -> list[PaymentRequest]:
        rows = [
            r
            for r in sorted(self.requests.values(), key=lambda r: r.id, reverse=True)
            if (user_id is None or r.user_id == user_id)
            and (status is None or r.status == status)
            and (urgency is None or r.urgency == urgency)
        ]
        return [replace(r) for r in rows[offset : offset + limit]]


class FakeDepositRepo(_Snapshotting):
    def __init__(self) -> None:
        self.deposits: dict[str, Deposit] = {}
        self.matcher_locks = 0

    async def acquire_matcher_lock(self, db: Any) -> None:
        self.matcher_locks += 1

    async def expire_stale(self, db: Any, now: datetime) -> int:
        count = 0
        for deposit in self.deposits.values():
            if deposit.is_pending and deposit.expires_at <= now:
                deposit.status = DepositStatus.EXPIRED.value
                count += 1
        return count

    async def active_payable_amounts(self, db: Any, now: datetime) -> set[Decimal]:
        return {d.payable_amount for d in self.deposits.values() if d.is_active(now)}

    async def insert(self, db: Any, deposit: Deposit) -> Deposit:
        for existing in self.deposits.values():
            if existing.is_pending and existing.payable_amount == deposit.payable_amount:
                raise IntegrityError("INSERT INTO deposits", {}, Exception("uq_deposits_pending_payable"))
        now = datetime.now(UTC)
        saved = replace(deposit, created_at=now, updated_at=now)
        self.deposits[deposit.id] = saved
        return replace(saved)

    async def get(self, db: Any, deposit_id: str) -> Deposit | None:
        deposit = self.deposits.get(deposit_id)
        return replace(deposit) if deposit else None

    async def lock(self, db: Any, deposit_id: str) -> Deposit | None:
        return await self.get(db, deposit_id)

    async def lock_active_by_payable_amount(
        self, db: Any, payable_amount: Decimal, now: datetime
    ) -> Deposit | None:
        matches = sorted(
            (
                d
                for d in self.deposits.values()
                if d.is_active(now) and d.payable_amount == payable_amount
            ),
            key=lambda d: d.created_at or now,
        )
        return replace(matches[0]) if matches else None

    async def find_by_tx_hash(self, db: Any, tx_hash: str) -> Deposit | None:
        for deposit in self.deposits.values():
            if deposit.tx_hash == tx_hash:
                return replace(deposit)
        return None

    async def finalize(self, db: Any, deposit: Deposit) -> Deposit | None:
        stored = self.deposits.get(deposit.id)
        if stored is None or not stored.is_pending:
            return None
        saved = replace(deposit, updated_at=datetime.now(UTC))
        self.deposits[deposit.id] = saved
        return replace(saved)

    async def list(
        self,
        db: Any,
        user_id: str | None,
        status: str | None,
        limit: int,
        offset: int,
    ) -> list[Deposit]:
        rows = [
            d
            for d in sorted(self.deposits.values(), key=lambda d: d.id, reverse=True)
            if (user_id is None or d.user_id == user_id) and (status is None or d.status == status)
        ]
        return [replace(d) for d in rows[offset : offset + limit]]


class FakeNotificationRepo(_Snapshotting):
    def __init__(self) -> None:
        self.rows: list[Notification] = []

    def messages_for(self, user_id: str) -> list[str]:
        return [n.message for n in self.rows if n.user_id == user_id]

    async def insert(self, db: Any, notification: Notification) -> Notification:
        saved = replace(notification, id=len(self.rows) + 1, created_at=datetime.now(UTC))
        self.rows.append(saved)
        return saved

    async def list_for_user(
        self, db: Any, user_id: str, limit: int, unread_only: bool
    ) -> list[Notification]:
        rows = [
            n
            for n in reversed(self.rows)
            if n.user_id == user_id and (not unread_only or not n.is_read)
        ]
        return rows[:limit]

    async def count_unread(self, db: Any, user_id: str) -> int:
        return sum(1 for n in self.rows if n.user_id == user_id and not n.is_read)

    async def mark_read(self, db: Any, user_id: str, ids: list[int] | None) -> int:
        changed = 0
        for n in self.rows:
            if n.user_id == user_id and not n.is_read and (ids is None or n.id in ids):
                n.is_read = True
                changed += 1
        return changed


class RecordingSink:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = fail

    async def send(self, chat_id: str, text: str) -> None:
        if self.fail:
            raise RuntimeError("telegram is down")
        self.sent.append((chat_id, text))

    async def close(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def accounts() -> FakeAccountRepo:
    return FakeAccountRepo()


@pytest.fixture
def payments() -> FakePaymentRepo:
    return FakePaymentRepo()


@pytest.fixture
def deposits() -> FakeDepositRepo:
    return FakeDepositRepo()


@pytest.fixture
def notifications() -> FakeNotificationRepo:
    return FakeNotificationRepo()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def db(
    accounts: FakeAccountRepo,
    payments: FakePaymentRepo,
    deposits: FakeDepositRepo,
    notifications: FakeNotificationRepo,
) -> FakeSession:
    return FakeSession(accounts, payments, deposits, notifications)


@pytest.fixture
def ledger(accounts: FakeAccountRepo) -> Ledger:
    return Ledger(accounts, FrozenFloorPolicy.CLAMP)


@pytest.fixture
def notifier(notifications: FakeNotificationRepo, sink: RecordingSink) -> Notifier:
    return Notifier(notifications, sink)


@pytest.fixture
def payment_service(
    payments: FakePaymentRepo, ledger: Ledger, notifier: Notifier
) -> PaymentRequestService:
    return PaymentRequestService(payments, ledger, StaticRateProvider(TEST_RATE), notifier)


@pytest.fixture
def deposit_service(
    deposits: FakeDepositRepo, accounts: FakeAccountRepo, ledger: Ledger, notifier: Notifier
) -> DepositService:
    return DepositService(deposits, accounts, ledger, notifier, MatcherPolicy())


@pytest.fixture
def failing_sink() -> RecordingSink:
    return RecordingSink(fail=True)
