"""Tests for the exponential backoff policy."""

import random

import pytest

from rsyslog_cron.backoff import ExponentialBackoff


class TestExponentialBackoff:
    def test_doubles_until_cap(self):
        backoff = ExponentialBackoff(initial=0.1, maximum=1.0, jitter=0)
        delays = [backoff.next_delay() for _ in range(7)]
        assert delays == pytest.approx([0.1, 0.2, 0.4, 0.8, 1.0, 1.0, 1.0])

    def test_reset(self):
        backoff = ExponentialBackoff(initial=0.1, maximum=5.0, jitter=0)
        backoff.next_delay()
        backoff.next_delay()
        backoff.reset()
        assert backoff.attempt == 0
        assert backoff.next_delay() == pytest.approx(0.1)

    def test_jitter_range(self):
        backoff = ExponentialBackoff(initial=1.0, maximum=1.0, jitter=0.2, rng=random.Random(1))
        delays = [backoff.next_delay() for _ in range(100)]
        assert all(0.8 <= d <= 1.2 for d in delays)
        assert len(set(delays)) > 1

    def test_never_zero(self):
        backoff = ExponentialBackoff()
        assert all(backoff.next_delay() > 0 for _ in range(50))

    def test_long_outage_does_not_overflow(self):
        backoff = ExponentialBackoff(initial=0.1, maximum=5.0, jitter=0)
        for _ in range(5000):
            delay = backoff.next_delay()
        assert delay == pytest.approx(5.0)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            ExponentialBackoff(initial=0)
        with pytest.raises(ValueError):
            ExponentialBackoff(jitter=1.5)
