"""Pacing of outbound calls under per-minute, spacing and daily quotas."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import date
import logging
import time

from casegen.constants import RATE_WINDOW_SECONDS
from casegen.exceptions import RateLimitExceeded, RateLimitReason

from .quota import QuotaSnapshot, QuotaState

log = logging.getLogger(__name__)

type Clock = Callable[[], float]
type Sleep = Callable[[float], Awaitable[None]]


class RateGovernor:
    """Reserves request slots so every call respects the configured quotas.

    A slot is reserved under the quota lock at the earliest time that keeps
    the minimum spacing, the one-minute window cap and the daily cap. The
    caller then sleeps until that time with the lock released, so concurrent
    callers each get a distinct slot and no lock is held across an await.
    """

    def __init__(
        self,
        state: QuotaState,
        *,
        max_requests_per_minute: int,
        min_delay_ms: int,
        daily_cap: int,
        safety_buffer_ms: int,
        clock: Clock = time.time,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._state = state
        self._max_per_window = max_requests_per_minute
        self._min_delay_s = min_delay_ms / 1000
        self._daily_cap = daily_cap
        self._safety_buffer_s = safety_buffer_ms / 1000
        self._clock = clock
        self._sleep = sleep

    async def await_slot(self) -> float:
        """Wait for the next permitted slot and return the delay in seconds.

        Raises:
            RateLimitExceeded: When the daily cap is reached. Nothing is
                recorded in that case.
        """
        now = self._clock()
        slot = self._reserve(now)
        delay = max(0.0, slot - now)
        if delay > 0:
            log.debug("Rate governor delaying request by %.3fs", delay)
            await self._sleep(delay)
        return delay

    def _reserve(self, now: float) -> float:
        state = self._state
        with state.lock:
            window = state.window
            today = date.fromtimestamp(now)
            if window.daily_reset_date != today:
                if window.daily_reset_date is not None:
                    log.debug("New day %s, resetting daily request count", today)
                window.daily_count = 0
                window.daily_reset_date = today

            if window.daily_count >= self._daily_cap:
                log.warning(
                    "Daily request cap of %d reached; refusing call", self._daily_cap
                )
                raise RateLimitExceeded(RateLimitReason.DAILY_CAP_REACHED)

            slot = now
            if window.last_request_at is not None:
                slot = max(slot, window.last_request_at + self._min_delay_s)

            self._prune(slot)
            if len(window.timestamps) >= self._max_per_window:
                oldest = window.timestamps[0]
                slot = max(slot, oldest + RATE_WINDOW_SECONDS + self._safety_buffer_s)
                log.warning(
                    "Per-minute cap of %d reached; next slot in %.1fs",
                    self._max_per_window,
                    slot - now,
                )
                self._prune(slot)

            window.timestamps.append(slot)
            window.last_request_at = slot
            window.daily_count += 1
            return slot

    def _prune(self, at: float) -> None:
        timestamps = self._state.window.timestamps
        while timestamps and timestamps[0] <= at - RATE_WINDOW_SECONDS:
            timestamps.popleft()

    def snapshot(self) -> QuotaSnapshot:
        """Report current window occupancy and remaining daily quota."""
        now = self._clock()
        state = self._state
        with state.lock:
            window = state.window
            circuit = state.circuit
            cutoff = now - RATE_WINDOW_SECONDS
            occupancy = sum(1 for t in window.timestamps if t > cutoff)
            daily_count = (
                window.daily_count if window.daily_reset_date == date.fromtimestamp(now) else 0
            )
            circuit_open = circuit.is_open_at(now)
            remaining = (
                circuit.cooldown_until - now
                if circuit_open and circuit.cooldown_until is not None
                else 0.0
            )
            return QuotaSnapshot(
                window_occupancy=occupancy,
                daily_count=daily_count,
                daily_remaining=max(0, self._daily_cap - daily_count),
                consecutive_failures=circuit.consecutive_failures,
                circuit_open=circuit_open,
                cooldown_remaining_s=remaining,
            )
