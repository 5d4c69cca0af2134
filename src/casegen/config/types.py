"""Core configuration data types for the casegen pipeline.

Follows the resolve-once, freeze-then-flow pattern: `ResolvedConfig` carries
audit metadata, `FrozenConfig` is what the pipeline consumes.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Literal, NamedTuple

# --- Source Tracking Types ---

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]

_SENSITIVE_FIELDS = frozenset({"api_key"})


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration attached to a generator.

    Every numeric pacing and breaker constant lives here so no component
    hardcodes its own copy.
    """

    api_key: str | None
    model: str
    base_url: str
    request_timeout_s: float
    call_deadline_s: float | None
    use_real_api: bool
    debug_mock: bool
    mock_delay_ms: int
    max_requests_per_minute: int
    min_delay_ms: int
    daily_cap: int
    safety_buffer_ms: int
    max_consecutive_throttle_errors: int
    cooldown_ms: int

    @property
    def credential_present(self) -> bool:
        return bool(self.api_key)

    @property
    def mock_mode(self) -> bool:
        """True when calls are answered by the mock responder."""
        return self.debug_mock or not self.credential_present

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        parts = []
        for f in fields(self):
            value: Any = getattr(self, f.name)
            if f.name in _SENSITIVE_FIELDS and value:
                value = "[REDACTED]"
            parts.append(f"{f.name}={value!r}")
        return f"FrozenConfig({', '.join(parts)})"

    def __repr__(self) -> str:
        return self.__str__()


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing."""

    values: Mapping[str, Any]
    origin: SourceMap

    def __getattr__(self, name: str) -> Any:
        try:
            return self.values[name]
        except KeyError:
            raise AttributeError(name) from None

    def __str__(self) -> str:
        redacted = {
            k: ("[REDACTED]" if k in _SENSITIVE_FIELDS and v else v)
            for k, v in self.values.items()
        }
        return f"ResolvedConfig({redacted!r}, origin={dict(self.origin)!r})"

    def __repr__(self) -> str:
        return self.__str__()

    def to_frozen(self) -> FrozenConfig:
        """Convert to the immutable configuration used in the pipeline."""
        return FrozenConfig(**self.values)

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Create a new ResolvedConfig with programmatic overrides applied.

        Unknown fields are ignored. Overrides are not re-validated.
        """
        new_values = dict(self.values)
        new_origin = dict(self.origin)
        for field, value in overrides.items():
            if field in new_values:
                new_values[field] = value
                new_origin[field] = "programmatic"
        return ResolvedConfig(values=new_values, origin=new_origin)

    def audit(self) -> str:
        """Redacted report of each field's value and where it came from."""
        lines = []
        for field, value in self.values.items():
            origin = self.origin.get(field, "default")
            if field in _SENSITIVE_FIELDS:
                shown = "<redacted>" if value else "None"
            elif origin == "env":
                shown = f"CASEGEN_{field.upper()}={value}"
            else:
                shown = str(value)
            lines.append(f"{field}: {origin}:{shown}")
        return "\n".join(lines)

    def audit_dict(self) -> dict[str, dict[str, Any]]:
        """JSON-friendly variant of `audit()`."""
        report: dict[str, dict[str, Any]] = {}
        for field, value in self.values.items():
            if field in _SENSITIVE_FIELDS:
                value = "<redacted>" if value else None
            report[field] = {
                "value": value,
                "origin": self.origin.get(field, "default"),
            }
        return report
