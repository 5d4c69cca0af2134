"""File-based configuration loading with profile support.

Reads `[tool.casegen]` from the project's pyproject.toml and the home-level
~/.config/casegen.toml, each optionally narrowed to a named profile.
"""

import os
from pathlib import Path
import tomllib
from typing import Any

PYPROJECT_PATH_ENV = "CASEGEN_PYPROJECT_PATH"
CONFIG_HOME_ENV = "CASEGEN_CONFIG_HOME"


class ConfigFileError(Exception):
    """Raised when configuration file loading fails."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


class FileConfigLoader:
    """Loads configuration from TOML files with profile support."""

    def load_project_config(
        self, project_root: Path | None = None, profile: str | None = None
    ) -> dict[str, Any]:
        """Load configuration from pyproject.toml.

        Args:
            project_root: Directory to search for pyproject.toml. If None,
                searches the current directory and its parents.
            profile: Optional profile name from [tool.casegen.profiles.<name>],
                layered over the section's base values.

        Returns:
            Configuration values, or an empty dict when there is no file or
            no casegen section.

        Raises:
            ConfigFileError: If the file cannot be parsed.
        """
        pyproject_path = self._find_pyproject_toml(project_root)
        if not pyproject_path:
            return {}

        data = self._read_toml(pyproject_path)
        section = data.get("tool", {}).get("casegen", {})
        if not section:
            return {}
        return self._select_profile(pyproject_path, section, profile)

    def load_home_config(self, profile: str | None = None) -> dict[str, Any]:
        """Load configuration from the home config file.

        Raises:
            ConfigFileError: If the file cannot be parsed.
        """
        home_config_path = self._get_home_config_path()
        if not home_config_path.exists():
            return {}
        data = self._read_toml(home_config_path)
        return self._select_profile(home_config_path, data, profile)

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        """List profile names defined in the project and home files."""
        profiles: dict[str, list[str]] = {"project": [], "home": []}

        pyproject_path = self._find_pyproject_toml(project_root)
        if pyproject_path:
            try:
                data = self._read_toml(pyproject_path)
                section = data.get("tool", {}).get("casegen", {})
                profiles["project"] = list(section.get("profiles", {}))
            except ConfigFileError:
                pass

        home_config_path = self._get_home_config_path()
        if home_config_path.exists():
            try:
                data = self._read_toml(home_config_path)
                profiles["home"] = list(data.get("profiles", {}))
            except ConfigFileError:
                pass

        return profiles

    def _read_toml(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(mode="rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigFileError(path, f"Failed to parse TOML: {e}", cause=e) from e

    def _select_profile(
        self, path: Path, section: dict[str, Any], profile: str | None
    ) -> dict[str, Any]:
        config = dict(section)
        profiles = config.pop("profiles", {})
        if not isinstance(profiles, dict):
            raise ConfigFileError(path, "'profiles' must be a table")
        # Profile values layer over the file's base values. A profile may
        # live in only one of the two files.
        if profile:
            config.update(profiles.get(profile, {}))
        return config

    def _find_pyproject_toml(self, start_dir: Path | None = None) -> Path | None:
        """Find pyproject.toml by searching up the directory tree."""
        if override := os.getenv(PYPROJECT_PATH_ENV):
            path = Path(override)
            return path if path.exists() else None

        current = Path(start_dir or Path.cwd()).resolve()
        while current != current.parent:
            pyproject_path = current / "pyproject.toml"
            if pyproject_path.exists():
                return pyproject_path
            current = current.parent
        return None

    def _get_home_config_path(self) -> Path:
        if override := os.getenv(CONFIG_HOME_ENV):
            return Path(override)
        return Path.home() / ".config" / "casegen.toml"
