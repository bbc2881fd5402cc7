"""Single-process sliding-window rate limiting."""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Optional

__all__ = ["LimitQueue", "seconds_until_midnight", "start_daily_reset"]

log = logging.getLogger(__name__)


class LimitQueue:
    """Per-key queues of access times for sliding-window limiting."""

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or (lambda: int(time.time()))
        self._lock = threading.Lock()
        self._queues: dict[str, deque[int]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._queues)

    def __contains__(self, queue_name: object) -> bool:
        with self._lock:
            return queue_name in self._queues

    def allow(self, queue_name: str, count: int, time_window: int) -> bool:
        """Return whether an access under ``queue_name`` may go ahead now.

        At most ``count`` accesses are let through per ``time_window`` seconds;
        the first access to a new queue only creates it.
        """
        now = self._clock()
        with self._lock:
            queue = self._queues.get(queue_name)
            if queue is None:
                self._queues[queue_name] = deque()
                return True
            if len(queue) < count:
                queue.append(now)
                return True
            if now - queue[0] <= time_window:
                return False
            queue.popleft()
            queue.append(now)
            return True

    def clear(self) -> None:
        """Forget every queue."""
        with self._lock:
            self._queues.clear()


def seconds_until_midnight(now: datetime) -> float:
    """Return the seconds from ``now`` to the start of the next day."""
    tomorrow = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return (tomorrow - now).total_seconds()


def start_daily_reset(limiter: LimitQueue) -> threading.Thread:
    """Clear ``limiter`` now and then every midnight in a daemon thread."""

    def _run() -> None:
        while True:
            log.info("clearing rate limit queues")
            limiter.clear()
            time.sleep(seconds_until_midnight(datetime.now().astimezone()))

    thread = threading.Thread(target=_run, name="limit-queue-reset", daemon=True)
    thread.start()
    return thread