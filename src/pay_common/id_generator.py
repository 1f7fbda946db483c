"""Snowflake-style ID generator for payment request and deposit IDs.

IDs are decimal strings that grow monotonically within a process, so
"newest first" listings can page by `id < :cursor` and the last six
digits double as a short human-readable request number.
"""

import threading
import time


class SnowflakeIdGenerator:
    """Layout (64 bits): 41 bits ms timestamp, 10 bits worker, 12 bits sequence."""

    _EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
    _WORKER_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, worker_id: int = 0) -> None:
        if not (0 <= worker_id < (1 << self._WORKER_BITS)):
            raise ValueError(f"worker_id must be 0-{(1 << self._WORKER_BITS) - 1}")
        self._worker_id = worker_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now_ms = self._clock_ms()
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    now_ms = self._wait_until_after(now_ms)
            else:
                self._sequence = 0
            self._last_ms = now_ms
            value = (
                ((now_ms - self._EPOCH_MS) << (self._WORKER_BITS + self._SEQUENCE_BITS))
                | (self._worker_id << self._SEQUENCE_BITS)
                | self._sequence
            )
            return str(value)

    def _clock_ms(self) -> int:
        return int(time.time() * 1000)

    def _wait_until_after(self, last_ms: int) -> int:
        now_ms = self._clock_ms()
        while now_ms <= last_ms:
            now_ms = self._clock_ms()
        return now_ms


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    return _default_generator.next_id()


def short_number(entity_id: str) -> str:
    """Last six characters, shown to users as the request number."""
    return entity_id[-6:]
