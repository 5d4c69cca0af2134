"""Shared mutable quota state for the rate governor and circuit breaker.

One `QuotaState` guards both the sliding request window and the breaker
counters with a single `threading.Lock`. Components receive the state
explicitly; `get_process_quota()` returns the process-wide instance used when
the caller does not supply one.
"""

from __future__ import annotations

from collections import deque
import dataclasses
from datetime import date
import threading


@dataclasses.dataclass(slots=True)
class RateWindow:
    """Request timestamps (epoch seconds) in the trailing window plus the day count."""

    timestamps: deque[float] = dataclasses.field(default_factory=deque)
    last_request_at: float | None = None
    daily_count: int = 0
    daily_reset_date: date | None = None


@dataclasses.dataclass(slots=True)
class CircuitState:
    consecutive_failures: int = 0
    cooldown_until: float | None = None

    def is_open_at(self, now: float) -> bool:
        return self.cooldown_until is not None and now < self.cooldown_until


@dataclasses.dataclass(frozen=True, slots=True)
class QuotaSnapshot:
    """Point-in-time view of quota usage."""

    window_occupancy: int
    daily_count: int
    daily_remaining: int
    consecutive_failures: int
    circuit_open: bool
    cooldown_remaining_s: float


class QuotaState:
    """Window and breaker state behind one mutex.

    Callers must hold `lock` for every read-check-update sequence on
    `window` or `circuit`.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.window = RateWindow()
        self.circuit = CircuitState()

    def reset(self) -> None:
        with self.lock:
            self.window = RateWindow()
            self.circuit = CircuitState()


_process_quota = QuotaState()


def get_process_quota() -> QuotaState:
    """Return the quota state shared by every generator in this process."""
    return _process_quota
