import time
from datetime import datetime

from livechat.ratelimit import LimitQueue, seconds_until_midnight, start_daily_reset


class _Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_first_access_creates_queue():
    limiter = LimitQueue(clock=_Clock(100))
    assert "k" not in limiter
    assert limiter.allow("k", 1, 2) is True
    assert "k" in limiter


def test_sliding_window_blocks_then_releases():
    clock = _Clock(100)
    limiter = LimitQueue(clock=clock)
    assert limiter.allow("k", 1, 2)
    assert limiter.allow("k", 1, 2)
    clock.now = 102
    assert limiter.allow("k", 1, 2) is False
    clock.now = 103
    assert limiter.allow("k", 1, 2) is True
    assert limiter.allow("k", 1, 2) is False


def test_count_allows_several_in_window():
    limiter = LimitQueue(clock=_Clock(10))
    results = [limiter.allow("q", 2, 5) for _ in range(4)]
    assert results == [True, True, True, False]


def test_queues_are_independent():
    limiter = LimitQueue(clock=_Clock(10))
    for _ in range(3):
        limiter.allow("a", 1, 60)
    assert limiter.allow("a", 1, 60) is False
    assert limiter.allow("b", 1, 60) is True


def test_clear_forgets_queues():
    limiter = LimitQueue(clock=_Clock(10))
    limiter.allow("a", 1, 60)
    limiter.allow("b", 1, 60)
    assert len(limiter) == 2
    limiter.clear()
    assert len(limiter) == 0
    assert "a" not in limiter


def test_seconds_until_midnight_late_evening():
    assert seconds_until_midnight(datetime(2024, 1, 1, 23, 0, 0)) == 3600


def test_seconds_until_midnight_at_midnight():
    assert seconds_until_midnight(datetime(2024, 3, 5)) == 86400


def test_seconds_until_midnight_within_a_day():
    value = seconds_until_midnight(datetime(2024, 12, 31, 12, 34, 56, 789))
    assert 0 < value <= 86400


def test_start_daily_reset_clears_immediately():
    limiter = LimitQueue(clock=_Clock(10))
    limiter.allow("a", 1, 60)
    thread = start_daily_reset(limiter)
    deadline = time.monotonic() + 2
    while len(limiter) and time.monotonic() < deadline:
        time.sleep(0.01)
    assert len(limiter) == 0
    assert thread.daemon is True