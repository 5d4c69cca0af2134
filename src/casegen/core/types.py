"""Core data types that flow through the generation pipeline.

A request is validated once at construction; every later stage receives
immutable values and produces new ones.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
import typing
import uuid

from casegen.exceptions import ValidationError

from .profiles import TaskProfile

type JSONValue = dict[str, typing.Any] | list[typing.Any]


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValidationError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def _new_correlation_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationRequest:
    """A prompt plus the structural schema its answer must follow.

    `schema` is either JSON-Schema style (a `properties` mapping) or a plain
    `{field: type-or-description}` mapping. `task_profile` accepts a
    `TaskProfile` or its string value; when omitted the classifier picks one.
    """

    prompt: str
    schema: Mapping[str, typing.Any]
    task_profile: TaskProfile | None = None
    correlation_id: str = dataclasses.field(default_factory=_new_correlation_id)

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.prompt, str) and self.prompt.strip() != "",
            message="must be a non-empty str",
            field_name="prompt",
        )
        _require(
            condition=isinstance(self.schema, Mapping),
            message=f"must be a mapping, got {type(self.schema).__name__}",
            field_name="schema",
        )
        # Shallow copy so later caller mutation cannot change the request.
        object.__setattr__(self, "schema", dict(self.schema))

        if self.task_profile is not None and not isinstance(
            self.task_profile, TaskProfile
        ):
            try:
                profile = TaskProfile(self.task_profile)
            except ValueError:
                valid = [p.value for p in TaskProfile]
                raise ValidationError(
                    f"task_profile: must be one of {valid}, got {self.task_profile!r}"
                ) from None
            object.__setattr__(self, "task_profile", profile)

        _require(
            condition=isinstance(self.correlation_id, str)
            and self.correlation_id.strip() != "",
            message="must be a non-empty str",
            field_name="correlation_id",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class CompletionPayload:
    """Final request to the completion service for one generation."""

    model: str
    system: str
    user: str
    temperature: float
    max_tokens: int
    top_p: float
    frequency_penalty: float
    presence_penalty: float
    profile: TaskProfile

    def to_request_body(self) -> dict[str, typing.Any]:
        """Render the OpenAI-compatible chat-completions body."""
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system},
                {"role": "user", "content": self.user},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationResult:
    """A recovered structured value and how it was produced."""

    value: JSONValue
    profile: TaskProfile
    strategy: str
    correlation_id: str
    used_mock: bool
    duration_s: float
