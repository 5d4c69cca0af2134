"""Core data types and the generation profile table."""

from .profiles import PROFILES, GenerationProfile, TaskProfile, get_profile
from .types import CompletionPayload, GenerationRequest, GenerationResult, JSONValue

__all__ = [
    "PROFILES",
    "CompletionPayload",
    "GenerationProfile",
    "GenerationRequest",
    "GenerationResult",
    "JSONValue",
    "TaskProfile",
    "get_profile",
]
