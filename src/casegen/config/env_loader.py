"""Environment variable configuration loading.

Reads CASEGEN_* variables (and the TOGETHER_API_KEY credential), optionally
after loading a .env file, and coerces them to the `CasegenSettings` field types.
"""

import os
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .schema import CasegenSettings

# Checked in order; the first variable present wins for a field.
ENV_VARS: tuple[tuple[str, str], ...] = (
    ("CASEGEN_API_KEY", "api_key"),
    ("TOGETHER_API_KEY", "api_key"),
    *(
        (f"CASEGEN_{name.upper()}", name)
        for name in CasegenSettings.model_fields
        if name != "api_key"
    ),
)


class EnvironmentConfigLoader:
    """Loads configuration from environment variables."""

    def load_env_config(self, env_file: str | Path | None = None) -> dict[str, Any]:
        """Load configuration from environment variables.

        Args:
            env_file: Optional .env file loaded into the environment first.
                Existing variables are not overridden.

        Returns:
            Only the fields actually set in the environment, coerced to their
            field types.

        Raises:
            ValueError: If environment variables contain invalid values.
        """
        if env_file:
            self._load_env_file(env_file)

        raw: dict[str, str] = {}
        sources: dict[str, str] = {}
        for env_var, field_name in ENV_VARS:
            if field_name not in raw and env_var in os.environ:
                raw[field_name] = os.environ[env_var]
                sources[field_name] = env_var

        if not raw:
            return {}

        # Type coercion only; range and cross-field rules run after the merge.
        coerced: dict[str, Any] = {}
        for field_name, value in raw.items():
            annotation = CasegenSettings.model_fields[field_name].annotation
            try:
                coerced[field_name] = TypeAdapter(annotation).validate_python(value)
            except PydanticValidationError as e:
                shown = "<redacted>" if field_name == "api_key" else value
                raise ValueError(
                    f"Invalid environment variable {sources[field_name]}={shown}: {e}"
                ) from e
        return coerced

    def _load_env_file(self, env_file: str | Path) -> None:
        """Load KEY=VALUE lines from a .env file into os.environ.

        Raises:
            FileNotFoundError: If the .env file doesn't exist.
            ValueError: If a line is not KEY=VALUE.
        """
        env_path = Path(env_file)
        if not env_path.exists():
            raise FileNotFoundError(f"Environment file not found: {env_path}")

        with env_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    raise ValueError(
                        f"Invalid format at line {line_num}: expected KEY=VALUE."
                    )
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()
                if (value.startswith('"') and value.endswith('"')) or (
                    value.startswith("'") and value.endswith("'")
                ):
                    value = value[1:-1]
                if key not in os.environ:
                    os.environ[key] = value

    def get_env_summary(self) -> dict[str, str]:
        """Current casegen-related environment variables, credentials redacted."""
        summary = {}
        for env_var, field_name in ENV_VARS:
            if env_var in os.environ:
                summary[env_var] = (
                    "<redacted>" if field_name == "api_key" else os.environ[env_var]
                )
        return summary
