# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Unit tests for the fixed-window rate limiter."""

from __future__ import annotations

import pytest

from servercat.security.rate_limit import RateLimiter


@pytest.fixture
def limiter(clock) -> RateLimiter:
    return RateLimiter(60, 3, clock=clock)


class TestAdmission:
    def test_max_allowed_then_rejected(self, limiter: RateLimiter) -> None:
        decisions = [limiter.check_and_increment("1.2.3.4") for _ in range(3)]
        assert all(d.allowed for d in decisions)
        assert [d.remaining for d in decisions] == [2, 1, 0]

        rejected = limiter.check_and_increment("1.2.3.4")
        assert not rejected.allowed
        assert rejected.remaining == 0
        assert 0 < rejected.retry_after <= 60

    def test_retry_after_counts_down(self, limiter: RateLimiter, clock) -> None:
        for _ in range(3):
            limiter.check_and_increment("c")
        clock.advance(10.5)
        assert limiter.check_and_increment("c").retry_after == 50

    def test_clients_are_independent(self, limiter: RateLimiter) -> None:
        for _ in range(4):
            limiter.check_and_increment("a")
        assert limiter.check_and_increment("b").allowed

    def test_window_resets_after_elapsing(self, limiter: RateLimiter, clock) -> None:
        for _ in range(4):
            limiter.check_and_increment("c")
        clock.advance(61)
        decision = limiter.check_and_increment("c")
        assert decision.allowed
        assert decision.remaining == 2

    def test_window_not_reset_at_exact_boundary(self, limiter: RateLimiter, clock) -> None:
        for _ in range(3):
            limiter.check_and_increment("c")
        clock.advance(60)
        assert not limiter.check_and_increment("c").allowed

    def test_invalid_configuration(self) -> None:
        with pytest.raises(ValueError):
            RateLimiter(0, 5)
        with pytest.raises(ValueError):
            RateLimiter(60, 0)


class TestSweep:
    def test_sweep_discards_stale_windows(self, limiter: RateLimiter, clock) -> None:
        limiter.check_and_increment("old")
        clock.advance(30)
        limiter.check_and_increment("fresh")
        clock.advance(31)

        assert limiter.sweep() == 1
        assert len(limiter) == 1

    def test_sweep_keeps_active_windows(self, limiter: RateLimiter) -> None:
        limiter.check_and_increment("a")
        assert limiter.sweep() == 0
        assert len(limiter) == 1
