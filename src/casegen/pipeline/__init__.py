"""Pipeline stages: pacing, protection, prompting, execution and extraction."""

from .circuit_breaker import CircuitBreaker
from .classifier import classify, explain
from .extraction import (
    ExtractionAttempt,
    ExtractionDiagnostics,
    ResponseExtractor,
    extract,
)
from .mock_responder import MockResponder
from .prompt_compiler import PromptCompiler, compile_prompt
from .quota import QuotaSnapshot, QuotaState, get_process_quota
from .rate_governor import RateGovernor
from .retry import RetryOrchestrator

__all__ = [
    "CircuitBreaker",
    "ExtractionAttempt",
    "ExtractionDiagnostics",
    "MockResponder",
    "PromptCompiler",
    "QuotaSnapshot",
    "QuotaState",
    "RateGovernor",
    "ResponseExtractor",
    "RetryOrchestrator",
    "classify",
    "compile_prompt",
    "explain",
    "extract",
    "get_process_quota",
]
