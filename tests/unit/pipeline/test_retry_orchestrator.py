"""Single-attempt orchestration around the breaker and governor."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from casegen.exceptions import (
    RateLimitExceeded,
    UpstreamError,
    UpstreamThrottled,
    UpstreamTimeout,
)
from casegen.pipeline.circuit_breaker import CircuitBreaker
from casegen.pipeline.rate_governor import RateGovernor
from casegen.pipeline.retry import RetryOrchestrator


@pytest.fixture
def orchestrator(quota, fake_clock):
    governor = RateGovernor(
        quota,
        max_requests_per_minute=50,
        min_delay_ms=0,
        daily_cap=200,
        safety_buffer_ms=5000,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )
    breaker = CircuitBreaker(
        quota, max_consecutive_throttle_errors=3, cooldown_ms=300_000, clock=fake_clock
    )
    return RetryOrchestrator(breaker, governor)


@pytest.mark.asyncio
async def test_success_returns_value_and_resets_breaker(orchestrator, quota):
    quota.circuit.consecutive_failures = 2
    call = AsyncMock(return_value="reply")

    assert await orchestrator.execute(call) == "reply"
    call.assert_awaited_once()
    assert quota.circuit.consecutive_failures == 0
    assert quota.window.daily_count == 1


@pytest.mark.asyncio
async def test_throttle_is_recorded_and_not_retried(orchestrator, quota):
    call = AsyncMock(side_effect=UpstreamThrottled(retry_after_s=10))

    with pytest.raises(UpstreamThrottled):
        await orchestrator.execute(call)

    assert call.await_count == 1
    assert quota.circuit.consecutive_failures == 1


@pytest.mark.asyncio
async def test_other_failures_propagate_unchanged(orchestrator, quota):
    error = UpstreamError(503)
    call = AsyncMock(side_effect=error)

    with pytest.raises(UpstreamError) as exc_info:
        await orchestrator.execute(call)

    assert exc_info.value is error
    assert quota.circuit.consecutive_failures == 0


@pytest.mark.asyncio
async def test_open_circuit_skips_the_call(orchestrator):
    for _ in range(3):
        with pytest.raises(UpstreamThrottled):
            await orchestrator.execute(AsyncMock(side_effect=UpstreamThrottled()))

    call = AsyncMock(return_value="never")
    with pytest.raises(RateLimitExceeded):
        await orchestrator.execute(call)
    call.assert_not_awaited()


@pytest.mark.asyncio
async def test_deadline_expiry_raises_timeout_without_tripping(orchestrator, quota):
    orchestrator.deadline_s = 0.01

    async def slow():
        await asyncio.sleep(1)
        return "late"

    with pytest.raises(UpstreamTimeout):
        await orchestrator.execute(slow)

    assert quota.circuit.consecutive_failures == 0
