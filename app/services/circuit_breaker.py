# app/services/circuit_breaker.py
"""
Circuit breaker guarding calls to external market data providers.

Once a provider keeps failing, further calls are rejected immediately
instead of each request waiting out its own deadline and retries.

States:
    CLOSED    - Calls pass through, failures are counted
    OPEN      - Calls rejected with CircuitBreakerOpen
    HALF_OPEN - A limited number of trial calls pass through

Transitions:
    CLOSED -> OPEN: consecutive failures reach failure_threshold
    OPEN -> HALF_OPEN: recovery_timeout elapsed since the last failure
    HALF_OPEN -> CLOSED: a trial call succeeds
    HALF_OPEN -> OPEN: a trial call fails

Usage:
    breaker = CircuitBreaker(name="yahoo-finance")

    with breaker:
        df = yf.Ticker(symbol).history(...)
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """
    Raised when the breaker rejects a call.

    Attributes:
        breaker_name: Name of the circuit breaker
        time_remaining: Seconds until a trial call will be allowed
    """

    def __init__(self, breaker_name: str, time_remaining: float) -> None:
        self.breaker_name = breaker_name
        self.time_remaining = time_remaining
        super().__init__(
            f"Circuit breaker '{breaker_name}' is open. "
            f"Retry in {time_remaining:.1f} seconds."
        )


class CircuitBreaker:
    """
    Thread-safe consecutive-failure circuit breaker.

    Exceptions listed in ``excluded_exceptions`` (e.g. "symbol not found")
    say nothing about provider health and count as successes.
    """

    def __init__(
            self,
            name: str,
            failure_threshold: int = 5,
            recovery_timeout: float = 60.0,
            half_open_max_calls: int = 3,
            excluded_exceptions: tuple[type[BaseException], ...] = (),
            clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if recovery_timeout < 0:
            raise ValueError("recovery_timeout cannot be negative")
        if half_open_max_calls < 1:
            raise ValueError("half_open_max_calls must be at least 1")

        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.half_open_max_calls = half_open_max_calls
        self.excluded_exceptions = excluded_exceptions
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = 0.0
        self._half_open_calls = 0
        self._lock = threading.RLock()

        logger.info(
            f"CircuitBreaker '{name}' initialized: "
            f"threshold={failure_threshold}, recovery_timeout={recovery_timeout}s"
        )

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._refresh_state()
            return self._state

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    def _refresh_state(self) -> None:
        """Move OPEN to HALF_OPEN once the recovery timeout has elapsed. Caller holds the lock."""
        if self._state == CircuitState.OPEN and self._time_until_recovery() <= 0:
            self._transition_to(CircuitState.HALF_OPEN)

    def _time_until_recovery(self) -> float:
        return max(0.0, self.recovery_timeout - (self._clock() - self._opened_at))

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        if new_state == CircuitState.OPEN:
            self._opened_at = self._clock()
        elif new_state == CircuitState.HALF_OPEN:
            self._half_open_calls = 0
        else:
            self._failure_count = 0

        logger.info(
            f"CircuitBreaker '{self.name}' state change: "
            f"{old_state.value} -> {new_state.value}"
        )

    def __enter__(self) -> "CircuitBreaker":
        with self._lock:
            self._refresh_state()
            if self._state == CircuitState.OPEN:
                raise CircuitBreakerOpen(self.name, self._time_until_recovery())
            if self._state == CircuitState.HALF_OPEN:
                if self._half_open_calls >= self.half_open_max_calls:
                    raise CircuitBreakerOpen(self.name, 0.0)
                self._half_open_calls += 1
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> bool:
        with self._lock:
            if exc_val is None or isinstance(exc_val, self.excluded_exceptions):
                if self._state == CircuitState.HALF_OPEN:
                    self._transition_to(CircuitState.CLOSED)
                self._failure_count = 0
            elif self._state == CircuitState.HALF_OPEN:
                self._transition_to(CircuitState.OPEN)
            else:
                self._failure_count += 1
                if self._failure_count >= self.failure_threshold:
                    logger.warning(
                        f"CircuitBreaker '{self.name}' opening after "
                        f"{self._failure_count} consecutive failures"
                    )
                    self._transition_to(CircuitState.OPEN)
        return False

    def reset(self) -> None:
        """Manually close the breaker."""
        with self._lock:
            self._transition_to(CircuitState.CLOSED)
