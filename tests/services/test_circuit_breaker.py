# tests/services/test_circuit_breaker.py
"""Tests for the circuit breaker guarding market data calls."""

import threading

import pytest

from app.services.circuit_breaker import CircuitBreaker, CircuitBreakerOpen, CircuitState
from app.services.exceptions import TickerNotFoundError


class FakeClock:

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _fail(breaker: CircuitBreaker, times: int = 1) -> None:
    for _ in range(times):
        with pytest.raises(RuntimeError):
            with breaker:
                raise RuntimeError("boom")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def breaker(clock) -> CircuitBreaker:
    return CircuitBreaker(
        name="test",
        failure_threshold=3,
        recovery_timeout=30.0,
        half_open_max_calls=1,
        excluded_exceptions=(TickerNotFoundError,),
        clock=clock,
    )


class TestCircuitBreakerInit:
    """Tests for circuit breaker initialization."""

    def test_default_values(self):
        breaker = CircuitBreaker(name="defaults")

        assert breaker.failure_threshold == 5
        assert breaker.recovery_timeout == 60.0
        assert breaker.half_open_max_calls == 3
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.parametrize("kwargs", [
        {"failure_threshold": 0},
        {"recovery_timeout": -1},
        {"half_open_max_calls": 0},
    ])
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            CircuitBreaker(name="bad", **kwargs)


class TestCircuitBreakerClosedState:

    def test_allows_calls_when_closed(self, breaker):
        with breaker:
            pass

        assert breaker.state == CircuitState.CLOSED

    def test_opens_after_threshold_failures(self, breaker):
        _fail(breaker, 2)
        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 2

        _fail(breaker)
        assert breaker.is_open

    def test_success_resets_failure_count(self, breaker):
        _fail(breaker, 2)

        with breaker:
            pass

        assert breaker.failure_count == 0

    def test_excluded_exceptions_dont_trip_circuit(self, breaker):
        for _ in range(5):
            with pytest.raises(TickerNotFoundError):
                with breaker:
                    raise TickerNotFoundError(symbol="NOPE", provider="test")

        assert breaker.state == CircuitState.CLOSED


class TestCircuitBreakerOpenState:

    def test_rejects_calls_when_open(self, breaker, clock):
        _fail(breaker, 3)
        clock.now = 10.0

        with pytest.raises(CircuitBreakerOpen) as exc_info:
            with breaker:
                pass

        assert exc_info.value.breaker_name == "test"
        assert exc_info.value.time_remaining == pytest.approx(20.0)

    def test_transitions_to_half_open_after_timeout(self, breaker, clock):
        _fail(breaker, 3)
        clock.now = 30.0

        assert breaker.state == CircuitState.HALF_OPEN


class TestCircuitBreakerHalfOpenState:

    def test_closes_on_success(self, breaker, clock):
        _fail(breaker, 3)
        clock.now = 30.0

        with breaker:
            pass

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    def test_reopens_on_failure(self, breaker, clock):
        _fail(breaker, 3)
        clock.now = 30.0

        _fail(breaker)

        assert breaker.is_open

    def test_limits_trial_calls(self, breaker, clock):
        _fail(breaker, 3)
        clock.now = 30.0

        with breaker:
            # The single trial call is in flight: a second caller is rejected
            with pytest.raises(CircuitBreakerOpen):
                with breaker:
                    pass


class TestCircuitBreakerManualControl:

    def test_manual_reset(self, breaker):
        _fail(breaker, 3)

        breaker.reset()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0


class TestCircuitBreakerThreadSafety:

    def test_concurrent_failures_counted(self):
        breaker = CircuitBreaker(name="threads", failure_threshold=1000)

        def worker():
            for _ in range(50):
                try:
                    with breaker:
                        raise RuntimeError("boom")
                except RuntimeError:
                    pass

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert breaker.failure_count == 400
