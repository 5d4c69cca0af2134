"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces configuration
values from various sources (environment, files, programmatic) into the correct
types with proper defaults.
"""

from typing import Any

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from casegen import constants


class CasegenSettings(BaseSettings):
    """Pydantic settings schema for the generation pipeline.

    Handles validation, type coercion, and default values for all
    configuration fields. Environment variables use the CASEGEN_ prefix; the
    credential is also read from TOGETHER_API_KEY.
    """

    model_config = SettingsConfigDict(
        env_prefix="CASEGEN_",
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars for forward compatibility
        populate_by_name=True,
    )

    # --- Upstream ---

    api_key: str | None = Field(
        default=None,
        description="Bearer credential for the completion service",
        validation_alias=AliasChoices("CASEGEN_API_KEY", "TOGETHER_API_KEY"),
    )

    model: str = Field(
        default=constants.DEFAULT_MODEL,
        description="Model identifier sent with every request",
        min_length=1,
    )

    base_url: str = Field(
        default=constants.DEFAULT_BASE_URL,
        description="Base URL of the OpenAI-compatible completion API",
        min_length=1,
    )

    request_timeout_s: float = Field(
        default=constants.DEFAULT_REQUEST_TIMEOUT_S,
        description="HTTP timeout for a single upstream request",
        gt=0,
    )

    call_deadline_s: float | None = Field(
        default=None,
        description="Optional overall deadline for one upstream attempt",
        gt=0,
    )

    use_real_api: bool = Field(
        default=False,
        description="Require the real service; never fall back to the mock",
    )

    debug_mock: bool = Field(
        default=False,
        description="Force the mock responder even when a credential is set",
    )

    mock_delay_ms: int = Field(
        default=constants.DEFAULT_MOCK_DELAY_MS,
        description="Artificial latency of the mock responder",
        ge=0,
    )

    # --- Rate governance ---

    max_requests_per_minute: int = Field(
        default=constants.DEFAULT_MAX_REQUESTS_PER_MINUTE,
        description="Sliding one-minute request cap",
        ge=1,
    )

    min_delay_ms: int = Field(
        default=constants.DEFAULT_MIN_DELAY_MS,
        description="Minimum spacing between consecutive requests",
        ge=0,
    )

    daily_cap: int = Field(
        default=constants.DEFAULT_DAILY_CAP,
        description="Requests allowed per calendar day",
        ge=1,
    )

    safety_buffer_ms: int = Field(
        default=constants.DEFAULT_SAFETY_BUFFER_MS,
        description="Extra wait after the oldest request leaves a full window",
        ge=0,
    )

    # --- Circuit breaker ---

    max_consecutive_throttle_errors: int = Field(
        default=constants.DEFAULT_MAX_CONSECUTIVE_THROTTLE_ERRORS,
        description="Consecutive throttling responses that open the circuit",
        ge=1,
    )

    cooldown_ms: int = Field(
        default=constants.DEFAULT_COOLDOWN_MS,
        description="How long the circuit stays open",
        ge=0,
    )

    # --- Validation Rules ---

    @model_validator(mode="after")
    def validate_mode_flags(self) -> "CasegenSettings":
        """Ensure api_key is present when use_real_api is True."""
        if self.use_real_api and self.debug_mock:
            raise ValueError("use_real_api and debug_mock cannot both be enabled.")
        if self.use_real_api and not self.api_key:
            raise ValueError(
                "api_key is required when use_real_api=True. "
                "Set CASEGEN_API_KEY or TOGETHER_API_KEY, provide it in a config "
                "file, or pass it programmatically."
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary keyed by field name."""
        return {name: getattr(self, name) for name in type(self).model_fields}
