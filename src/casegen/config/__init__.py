"""Configuration management for the case generation pipeline.

Resolve-once, freeze-then-flow:
- ResolvedConfig: post-resolution configuration with audit metadata
- FrozenConfig: immutable configuration consumed by the pipeline
- SourceMap: where each value came from
"""

from .api import (
    check_environment,
    get_effective_profile,
    list_available_profiles,
    resolve_config,
)
from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver
from .schema import CasegenSettings
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

__all__ = [  # noqa: RUF022
    # Main API
    "resolve_config",
    "list_available_profiles",
    "get_effective_profile",
    "check_environment",
    # Core types
    "ResolvedConfig",
    "FrozenConfig",
    "SourceMap",
    "ConfigOrigin",
    # Advanced usage
    "CasegenSettings",
    "ConfigResolver",
    "FileConfigLoader",
    "ConfigFileError",
]
