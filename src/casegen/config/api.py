"""Public API for the configuration system."""

from pathlib import Path
from typing import Any

from .resolver import ConfigResolver
from .types import ResolvedConfig

# Global resolver instance for efficient reuse
_resolver = ConfigResolver()


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    profile: str | None = None,
    use_env_file: str | Path | None = None,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Precedence: Programmatic > Environment > Project file > Home file > Defaults

    Args:
        programmatic: Programmatic overrides (highest precedence). Unknown
            fields are ignored.
        profile: Profile name to load from configuration files. If None,
            uses CASEGEN_PROFILE if set.
        use_env_file: Optional .env file loaded before reading the environment.
        project_root: Directory to search for pyproject.toml. If None,
            searches the current directory and its parents.

    Returns:
        ResolvedConfig with merged values and source tracking for audit.

    Raises:
        ConfigurationError: If validation fails, a required credential is
            missing, or environment variables contain invalid values.
        ConfigFileError: If configuration files exist but are malformed.

    Example:
        config = resolve_config({"daily_cap": 50}, profile="classroom")
        print(config.audit())
    """
    return _resolver.resolve(
        programmatic=programmatic,
        profile=profile,
        use_env_file=use_env_file,
        project_root=project_root,
    )


def list_available_profiles(project_root: Path | None = None) -> dict[str, list[str]]:
    """List profile names from the project ('project') and home ('home') files."""
    return _resolver.list_available_profiles(project_root)


def get_effective_profile() -> str | None:
    return _resolver.get_effective_profile()


def check_environment() -> dict[str, str]:
    """Currently set casegen environment variables, credentials redacted."""
    return _resolver.env_loader.get_env_summary()
