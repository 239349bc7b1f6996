"""
Circuit breaker guarding calls to an unresponsive board.
"""
import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

class CircuitBreakerState(Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"

class CircuitBreakerOpenError(Exception):
    """
    Raised when a call is attempted while the breaker is OPEN.
    `remaining_time` is the approximate number of seconds until a trial call is allowed.
    """
    def __init__(self, message: str = "Circuit breaker is OPEN. Call rejected.", remaining_time: float = 0):
        super().__init__(message)
        self.remaining_time = remaining_time

class CircuitBreaker:
    """
    Asynchronous circuit breaker.

    CLOSED counts consecutive failures and opens at `failure_threshold`.
    OPEN rejects calls until `recovery_timeout_seconds` have elapsed, then the next
    call runs as a HALF_OPEN trial. `half_open_max_successes` trial successes close
    the circuit; any trial failure opens it again.
    """
    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout_seconds: float = 30.0,
        half_open_max_successes: int = 1,
        name: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ValueError("Failure threshold must be at least 1.")
        if recovery_timeout_seconds <= 0:
            raise ValueError("Recovery timeout must be positive.")
        if half_open_max_successes < 1:
            raise ValueError("Half-open max successes must be at least 1.")

        self.failure_threshold = failure_threshold
        self.recovery_timeout_seconds = recovery_timeout_seconds
        self.half_open_max_successes = half_open_max_successes
        self.name = name or f"cb-{id(self)}"
        self._clock = clock

        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._opened_at: float | None = None
        self._half_open_success_count = 0

        self._lock = asyncio.Lock()
        self.logger = logger.bind(circuit_breaker_name=self.name)

    @property
    def state(self) -> CircuitBreakerState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    # Transition helpers expect self._lock to be held.
    def _set_open(self) -> None:
        self._state = CircuitBreakerState.OPEN
        self._opened_at = self._clock()
        self._half_open_success_count = 0
        self.logger.warning("Circuit breaker OPENED.", failure_count=self._failure_count)

    def _set_closed(self) -> None:
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._half_open_success_count = 0
        self._opened_at = None
        self.logger.info("Circuit breaker CLOSED.")

    def _remaining_open_time(self) -> float:
        elapsed = self._clock() - (self._opened_at or 0)
        return max(0.0, self.recovery_timeout_seconds - elapsed)

    async def _before_call(self) -> None:
        async with self._lock:
            if self._state != CircuitBreakerState.OPEN:
                return
            remaining = self._remaining_open_time()
            if remaining > 0:
                raise CircuitBreakerOpenError(remaining_time=remaining)
            self._state = CircuitBreakerState.HALF_OPEN
            self._half_open_success_count = 0
            self.logger.info("Circuit breaker recovery timeout expired, moving to HALF_OPEN.")

    async def _record_success(self) -> None:
        async with self._lock:
            if self._state == CircuitBreakerState.HALF_OPEN:
                self._half_open_success_count += 1
                if self._half_open_success_count >= self.half_open_max_successes:
                    self._set_closed()
            elif self._failure_count:
                self._failure_count = 0

    async def _record_failure(self) -> None:
        async with self._lock:
            if self._state == CircuitBreakerState.HALF_OPEN:
                self.logger.warning("Trial call failed in HALF_OPEN state.")
                self._set_open()
            elif self._state == CircuitBreakerState.CLOSED:
                self._failure_count += 1
                if self._failure_count >= self.failure_threshold:
                    self._set_open()

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """
        Awaits `func(*args, **kwargs)` unless the circuit is open.
        Any exception raised by `func` counts as a failure and is re-raised.
        """
        await self._before_call()
        try:
            result = await func(*args, **kwargs)
        except Exception:
            await self._record_failure()
            raise
        await self._record_success()
        return result
