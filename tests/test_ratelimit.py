"""Tests for wakeup.ratelimit: edge-triggered window, clock failures, atomicity."""

from __future__ import annotations

import threading

import pytest

from wakeup.models import RateLimitState
from wakeup.ratelimit import allow, check

T0 = 1_700_000_000.0


class TestAllow:
    def test_first_call_permits(self) -> None:
        state = RateLimitState()
        assert allow(state, T0, 60) is True
        assert state.last_allowed == T0

    @pytest.mark.parametrize("delta", [0.0, 0.5, 59.999, 60.0])
    def test_within_window_suppresses(self, delta: float) -> None:
        state = RateLimitState()
        allow(state, T0, 60)
        assert allow(state, T0 + delta, 60) is False
        assert state.last_allowed == T0

    @pytest.mark.parametrize("delta", [60.5, 61.0, 3600.0])
    def test_after_window_permits_and_moves_window(self, delta: float) -> None:
        state = RateLimitState()
        allow(state, T0, 60)
        assert allow(state, T0 + delta, 60) is True
        assert state.last_allowed == T0 + delta

    def test_suppressed_calls_do_not_extend_window(self) -> None:
        state = RateLimitState()
        allow(state, T0, 10)
        assert allow(state, T0 + 5, 10) is False
        assert allow(state, T0 + 9, 10) is False
        # Measured from T0, not from the last suppressed call
        assert allow(state, T0 + 11, 10) is True

    def test_clock_going_backwards_suppresses(self) -> None:
        state = RateLimitState()
        allow(state, T0, 60)
        assert allow(state, T0 - 100, 60) is False
        assert state.last_allowed == T0

    def test_reset_forgets_last_permit(self) -> None:
        state = RateLimitState()
        allow(state, T0, 60)
        state.reset()
        assert allow(state, T0 + 1, 60) is True


class TestCheck:
    def test_uses_clock(self) -> None:
        state = RateLimitState()
        assert check(state, 60, clock=lambda: T0) is True
        assert check(state, 60, clock=lambda: T0 + 1) is False

    def test_clock_failure_suppresses_without_mutating(self) -> None:
        state = RateLimitState(last_allowed=None)

        def broken_clock() -> float:
            raise OSError("clock unavailable")

        assert check(state, 60, clock=broken_clock) is False
        assert state.last_allowed is None


class TestConcurrency:
    def test_only_one_of_many_racing_threads_is_permitted(self) -> None:
        state = RateLimitState()
        barrier = threading.Barrier(16)
        results: list[bool] = []
        results_lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            permitted = allow(state, T0, 60)
            with results_lock:
                results.append(permitted)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert len(results) == 16
