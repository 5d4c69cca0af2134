"""Structured case-study generation from a large-language-model completion service."""

import importlib.metadata
import logging

from casegen.exceptions import (
    CasegenError,
    ConfigurationError,
    ExtractionFailure,
    RateLimitExceeded,
    RateLimitReason,
    UpstreamError,
    UpstreamThrottled,
    UpstreamTimeout,
    ValidationError,
)
from casegen.config import FrozenConfig, ResolvedConfig, resolve_config
from casegen.core.profiles import PROFILES, GenerationProfile, TaskProfile, get_profile
from casegen.core.types import CompletionPayload, GenerationRequest, GenerationResult
from casegen.generator import CaseGenerator, create_generator
from casegen.pipeline.classifier import classify, explain
from casegen.pipeline.extraction import extract
from casegen.telemetry import SimpleReporter, TelemetryContext, TelemetryReporter

try:
    __version__ = importlib.metadata.version("casegen")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Library logging stays silent unless the application configures handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Entry points
    "CaseGenerator",
    "create_generator",
    "classify",
    "explain",
    "extract",
    # Data types
    "GenerationRequest",
    "GenerationResult",
    "CompletionPayload",
    "GenerationProfile",
    "TaskProfile",
    "PROFILES",
    "get_profile",
    # Configuration
    "resolve_config",
    "ResolvedConfig",
    "FrozenConfig",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    "SimpleReporter",
    # Exceptions
    "CasegenError",
    "ConfigurationError",
    "ValidationError",
    "RateLimitExceeded",
    "RateLimitReason",
    "UpstreamThrottled",
    "UpstreamError",
    "UpstreamTimeout",
    "ExtractionFailure",
]
