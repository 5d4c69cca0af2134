"""Circuit breaker that pauses calls after repeated upstream throttling."""

from __future__ import annotations

import logging
import time

from casegen.exceptions import RateLimitExceeded, RateLimitReason, UpstreamThrottled

from .quota import QuotaState
from .rate_governor import Clock

log = logging.getLogger(__name__)


class CircuitBreaker:
    """Opens for a fixed cooldown after consecutive throttling responses.

    Only `UpstreamThrottled` counts as a failure. Timeouts, transport errors
    and unreadable replies leave the counter untouched.
    """

    def __init__(
        self,
        state: QuotaState,
        *,
        max_consecutive_throttle_errors: int,
        cooldown_ms: int,
        clock: Clock = time.time,
    ) -> None:
        self._state = state
        self._threshold = max_consecutive_throttle_errors
        self._cooldown_s = cooldown_ms / 1000
        self._clock = clock

    def before_call(self) -> None:
        """Refuse the call while open; re-arm once the cooldown has elapsed.

        Raises:
            RateLimitExceeded: With reason CIRCUIT_OPEN and the remaining
                cooldown while the circuit is open.
        """
        now = self._clock()
        with self._state.lock:
            circuit = self._state.circuit
            if circuit.cooldown_until is None:
                return
            if now < circuit.cooldown_until:
                remaining = circuit.cooldown_until - now
                log.debug("Circuit open; %.1fs of cooldown remaining", remaining)
                raise RateLimitExceeded(
                    RateLimitReason.CIRCUIT_OPEN, retry_after_s=remaining
                )
            circuit.cooldown_until = None
            circuit.consecutive_failures = 0
        log.info("Circuit cooldown elapsed; accepting calls again")

    def on_success(self) -> None:
        with self._state.lock:
            self._state.circuit.consecutive_failures = 0

    def on_failure(self, error: BaseException) -> None:
        """Record a failed call. Only throttling moves the breaker."""
        if not isinstance(error, UpstreamThrottled):
            return
        now = self._clock()
        with self._state.lock:
            circuit = self._state.circuit
            if circuit.is_open_at(now):
                # A call admitted before the trip; the cooldown stays as set.
                log.debug("Throttle reported while the circuit is already open")
                return
            circuit.consecutive_failures += 1
            failures = circuit.consecutive_failures
            if failures < self._threshold:
                tripped = False
            else:
                circuit.cooldown_until = now + self._cooldown_s
                tripped = True
        if tripped:
            log.warning(
                "Circuit opened after %d consecutive throttling responses; "
                "pausing calls for %.0fs",
                failures,
                self._cooldown_s,
            )
        else:
            log.warning(
                "Upstream throttled the request (%d/%d before the circuit opens)",
                failures,
                self._threshold,
            )

    @property
    def is_open(self) -> bool:
        now = self._clock()
        with self._state.lock:
            return self._state.circuit.is_open_at(now)

    def remaining_cooldown(self) -> float:
        """Seconds until the circuit closes, 0.0 when it is not open."""
        now = self._clock()
        with self._state.lock:
            until = self._state.circuit.cooldown_until
            if until is None or now >= until:
                return 0.0
            return until - now
