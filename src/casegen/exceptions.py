"""Exceptions raised by the case generation pipeline.

Messages for upstream and extraction failures are deliberately generic so they
can be shown to end users; details live in attributes and in the logs.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from casegen.pipeline.extraction import ExtractionDiagnostics


class CasegenError(Exception):
    """Base exception for case generation errors"""


class ConfigurationError(CasegenError):
    """Raised when configuration is invalid or a required credential is missing"""


class ValidationError(CasegenError):
    """Raised when a generation request is malformed"""


class RateLimitReason(str, Enum):
    """Why a call was refused before reaching the completion service."""

    DAILY_CAP_REACHED = "daily_cap_reached"
    CIRCUIT_OPEN = "circuit_open"


class RateLimitExceeded(CasegenError):
    """Raised when local quota governance refuses a call."""

    def __init__(
        self, reason: RateLimitReason, *, retry_after_s: float | None = None
    ) -> None:
        self.reason = reason
        self.retry_after_s = retry_after_s
        if reason is RateLimitReason.DAILY_CAP_REACHED:
            message = "Daily generation limit reached. Try again tomorrow."
        else:
            message = "Generation is temporarily paused after repeated rate limiting."
        if retry_after_s is not None:
            message += f" Retry in {retry_after_s:.0f} seconds."
        super().__init__(message)


class UpstreamThrottled(CasegenError):
    """Raised when the completion service explicitly signals rate limiting."""

    def __init__(self, *, retry_after_s: float | None = None) -> None:
        self.retry_after_s = retry_after_s
        super().__init__("The completion service is rate limiting requests.")


class UpstreamError(CasegenError):
    """Raised for any other non-success outcome from the completion service."""

    def __init__(self, status: int | None = None, message: str | None = None) -> None:
        self.status = status
        if message is None:
            message = "The completion service request failed"
            if status is not None:
                message += f" (status {status})"
            message += "."
        super().__init__(message)


class UpstreamTimeout(UpstreamError):
    """Raised when the completion service does not answer before the deadline"""

    def __init__(self) -> None:
        super().__init__(None, "The completion service did not respond in time.")


class ExtractionFailure(CasegenError):
    """Raised when no structured value could be recovered from a reply."""

    def __init__(self, diagnostics: ExtractionDiagnostics | None = None) -> None:
        self.diagnostics = diagnostics
        super().__init__("Could not read structured data from the model response.")
