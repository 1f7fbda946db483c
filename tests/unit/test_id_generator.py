"""Tests for pay_common.id_generator and pay_common.datetime_utils."""

from datetime import UTC, datetime, timedelta

import pytest

from src.pay_common.datetime_utils import minutes_from_now, utc_now
from src.pay_common.id_generator import SnowflakeIdGenerator, generate_id, short_number


class TestSnowflakeIdGenerator:
    def test_returns_str(self) -> None:
        assert isinstance(SnowflakeIdGenerator(worker_id=1).next_id(), str)

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(worker_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(worker_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_worker_id_bounds(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(worker_id=1024)

    def test_short_number_is_last_six_digits(self) -> None:
        request_id = generate_id()
        assert short_number(request_id) == request_id[-6:]
        assert len(short_number(request_id)) == 6


class TestUtcNow:
    def test_is_utc(self) -> None:
        now = utc_now()
        assert isinstance(now, datetime)
        assert now.tzinfo == UTC

    def test_minutes_from_now(self) -> None:
        base = utc_now()
        assert minutes_from_now(10, base) - base == timedelta(minutes=10)
