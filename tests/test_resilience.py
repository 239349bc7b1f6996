"""
Unit tests for the CircuitBreaker.
"""
import pytest

from arduino_netwatch.utils.resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    CircuitBreakerState,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


async def ok():
    return "ok"

async def fail():
    raise ConnectionError("down")


@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def breaker(clock):
    return CircuitBreaker(failure_threshold=2, recovery_timeout_seconds=10, half_open_max_successes=1, name="test", clock=clock)


@pytest.mark.parametrize("kwargs", [
    {"failure_threshold": 0},
    {"recovery_timeout_seconds": 0},
    {"half_open_max_successes": 0},
])
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(ValueError):
        CircuitBreaker(**kwargs)


@pytest.mark.asyncio
async def test_success_passes_through(breaker):
    assert await breaker.call(ok) == "ok"
    assert breaker.state == CircuitBreakerState.CLOSED


@pytest.mark.asyncio
async def test_opens_at_threshold_and_rejects(breaker):
    for _ in range(2):
        with pytest.raises(ConnectionError):
            await breaker.call(fail)
    assert breaker.state == CircuitBreakerState.OPEN

    with pytest.raises(CircuitBreakerOpenError) as exc_info:
        await breaker.call(ok)
    assert exc_info.value.remaining_time == pytest.approx(10)


@pytest.mark.asyncio
async def test_success_resets_failure_count(breaker):
    with pytest.raises(ConnectionError):
        await breaker.call(fail)
    await breaker.call(ok)
    assert breaker.failure_count == 0
    with pytest.raises(ConnectionError):
        await breaker.call(fail)
    assert breaker.state == CircuitBreakerState.CLOSED


@pytest.mark.asyncio
async def test_half_open_trial_success_closes(breaker, clock):
    for _ in range(2):
        with pytest.raises(ConnectionError):
            await breaker.call(fail)

    clock.now += 11
    assert await breaker.call(ok) == "ok"
    assert breaker.state == CircuitBreakerState.CLOSED
    assert breaker.failure_count == 0


@pytest.mark.asyncio
async def test_half_open_trial_failure_reopens(breaker, clock):
    for _ in range(2):
        with pytest.raises(ConnectionError):
            await breaker.call(fail)

    clock.now += 11
    with pytest.raises(ConnectionError):
        await breaker.call(fail)
    assert breaker.state == CircuitBreakerState.OPEN

    with pytest.raises(CircuitBreakerOpenError):
        await breaker.call(ok)
