"""Single-attempt call orchestration around the breaker and governor.

Throttling is never retried here: a throttled call is reported to the
breaker and re-raised so callers do not multiply load on a service that is
already refusing it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging

from casegen.exceptions import UpstreamThrottled, UpstreamTimeout

from .circuit_breaker import CircuitBreaker
from .rate_governor import RateGovernor

log = logging.getLogger(__name__)


class RetryOrchestrator:
    """Runs exactly one upstream attempt per call."""

    def __init__(
        self,
        breaker: CircuitBreaker,
        governor: RateGovernor,
        *,
        deadline_s: float | None = None,
    ) -> None:
        self.breaker = breaker
        self.governor = governor
        self.deadline_s = deadline_s

    async def execute[T](self, call: Callable[[], Awaitable[T]]) -> T:
        """Check the breaker, wait for a slot, check again, then call once.

        Raises:
            RateLimitExceeded: If the circuit is open or the daily cap is reached.
            UpstreamThrottled: If the service throttles the call.
            UpstreamTimeout: If the optional deadline expires first.
        """
        self.breaker.before_call()
        await self.governor.await_slot()
        # The circuit may have opened while this caller waited for its slot.
        self.breaker.before_call()
        try:
            if self.deadline_s is None:
                result = await call()
            else:
                try:
                    result = await asyncio.wait_for(call(), timeout=self.deadline_s)
                except TimeoutError:
                    log.warning("Upstream call exceeded its %.1fs deadline", self.deadline_s)
                    raise UpstreamTimeout() from None
        except UpstreamThrottled as e:
            self.breaker.on_failure(e)
            raise
        self.breaker.on_success()
        return result
