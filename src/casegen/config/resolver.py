"""Configuration resolution with precedence handling.

Merges configuration from every source in the documented order:
Programmatic > Environment > Project file > Home file > Defaults
"""

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from casegen.exceptions import ConfigurationError

from .env_loader import EnvironmentConfigLoader
from .file_loader import FileConfigLoader
from .schema import CasegenSettings
from .types import ConfigOrigin, ResolvedConfig

log = logging.getLogger(__name__)

PROFILE_ENV = "CASEGEN_PROFILE"


class ConfigResolver:
    """Resolves configuration from multiple sources with proper precedence."""

    def __init__(self) -> None:
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        profile: str | None = None,
        use_env_file: str | Path | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources with proper precedence.

        Args:
            programmatic: Programmatic overrides (highest precedence).
            profile: Profile name to load from files.
            use_env_file: Optional .env file to load.
            project_root: Directory to search for pyproject.toml.

        Returns:
            ResolvedConfig with merged values and source tracking.

        Raises:
            ConfigurationError: If validation fails or environment values are invalid.
            ConfigFileError: If configuration files are malformed.
        """
        merged: dict[str, Any] = {}
        origin: dict[str, ConfigOrigin] = {}

        if profile is None:
            profile = self.get_effective_profile()
        if profile is not None:
            self._require_profile(profile, project_root)

        # Defaults come from the schema, never from a settings instance,
        # so the environment is only read once below.
        for name, field_info in CasegenSettings.model_fields.items():
            merged[name] = field_info.get_default(call_default_factory=True)
            origin[name] = "default"

        def apply(values: dict[str, Any], source: ConfigOrigin) -> None:
            for name, value in values.items():
                if name in merged:
                    merged[name] = value
                    origin[name] = source
                else:
                    log.debug("Ignoring unknown %s config field %r", source, name)

        apply(self.file_loader.load_home_config(profile=profile), "file")
        apply(
            self.file_loader.load_project_config(
                project_root=project_root, profile=profile
            ),
            "file",
        )

        try:
            env_config = self.env_loader.load_env_config(env_file=use_env_file)
        except (ValueError, FileNotFoundError) as e:
            raise ConfigurationError(f"Environment configuration error: {e}") from e
        apply(env_config, "env")

        if programmatic:
            apply(programmatic, "programmatic")

        # model_validate skips the settings sources, so the environment is
        # not consulted a second time and cannot outrank programmatic values.
        try:
            validated = CasegenSettings.model_validate(merged)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        return ResolvedConfig(values=validated.to_dict(), origin=origin)

    def get_effective_profile(self) -> str | None:
        """Profile name from CASEGEN_PROFILE, or None."""
        return os.getenv(PROFILE_ENV) or None

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        return self.file_loader.list_available_profiles(project_root)

    def _require_profile(self, profile: str, project_root: Path | None) -> None:
        available = self.list_available_profiles(project_root)
        if profile not in available["project"] and profile not in available["home"]:
            names = sorted({*available["project"], *available["home"]})
            raise ConfigurationError(
                f"Profile '{profile}' not found. Available profiles: {names}"
            )
