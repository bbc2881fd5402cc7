"""Snowflake-style 64-bit unique ID generation."""

import threading
import time
from collections.abc import Callable
from typing import Optional

__all__ = [
    "Snowflake",
    "TWEPOCH",
    "WORKER_ID_BITS",
    "SEQUENCE_BITS",
    "MAX_WORKER_ID",
    "SEQUENCE_MASK",
    "WORKER_ID_SHIFT",
    "TIMESTAMP_SHIFT",
]

TWEPOCH = 1483228800000
WORKER_ID_BITS = 10
SEQUENCE_BITS = 12
MAX_WORKER_ID = (1 << WORKER_ID_BITS) - 1
SEQUENCE_MASK = (1 << SEQUENCE_BITS) - 1
WORKER_ID_SHIFT = SEQUENCE_BITS
TIMESTAMP_SHIFT = SEQUENCE_BITS + WORKER_ID_BITS


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


class Snowflake:
    """Thread-safe generator of IDs made of timestamp, worker id and sequence."""

    def __init__(self, worker_id: int, clock: Optional[Callable[[], int]] = None) -> None:
        if not 0 <= worker_id <= MAX_WORKER_ID:
            raise ValueError(f"worker_id must be between 0 and {MAX_WORKER_ID}")
        self.worker_id = worker_id
        self._clock = clock or _now_millis
        self._lock = threading.Lock()
        self._timestamp = 0
        self._sequence = 0

    def generate(self) -> int:
        """Return the next unique ID."""
        with self._lock:
            now = self._clock()
            if self._timestamp == now:
                self._sequence = (self._sequence + 1) & SEQUENCE_MASK
                if self._sequence == 0:
                    while now <= self._timestamp:
                        now = self._clock()
            else:
                self._sequence = 0
            self._timestamp = now
            return (
                ((now - TWEPOCH) << TIMESTAMP_SHIFT)
                | (self.worker_id << WORKER_ID_SHIFT)
                | self._sequence
            )