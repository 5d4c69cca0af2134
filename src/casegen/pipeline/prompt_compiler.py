"""Assembly of the final completion request for a generation."""

from __future__ import annotations

import json

from casegen.core.profiles import GenerationProfile
from casegen.core.schema import required_fields
from casegen.core.types import CompletionPayload, GenerationRequest

JSON_OUTPUT_RULES = """\
OUTPUT FORMAT REQUIREMENTS:
- Start the response immediately with "{" (or "[" when the schema is a list)
- End the response with the matching closing "}" or "]"
- No explanatory text before or after the JSON
- No markdown code fences
- No comments or additional content

DATA REQUIREMENTS:
- Include every required field listed below
- Use correct data types: numbers as numbers, never as strings
- Arrays must contain the number of elements the task asks for"""


def compile_prompt(
    request: GenerationRequest, profile: GenerationProfile, *, model: str
) -> CompletionPayload:
    """Build the completion payload for a request under a profile.

    The system message is the profile's role preamble. The user message is
    the caller prompt followed by the output rules, the required top-level
    fields and the schema as indented JSON.
    """
    sections = [request.prompt.strip(), JSON_OUTPUT_RULES]

    required = required_fields(request.schema)
    if required:
        sections.append(
            "REQUIRED TOP-LEVEL FIELDS:\n" + "\n".join(f"- {name}" for name in required)
        )

    schema_json = json.dumps(request.schema, indent=2, ensure_ascii=False, default=str)
    sections.append(f"REQUIRED JSON SCHEMA:\n{schema_json}")
    sections.append("OUTPUT ONLY THE JSON:")

    return CompletionPayload(
        model=model,
        system=profile.role_preamble,
        user="\n\n".join(sections),
        temperature=profile.temperature,
        max_tokens=profile.max_output_tokens,
        top_p=profile.top_p,
        frequency_penalty=profile.frequency_penalty,
        presence_penalty=profile.presence_penalty,
        profile=profile.name,
    )


class PromptCompiler:
    """Binds the configured model identifier to `compile_prompt`."""

    def __init__(self, model: str) -> None:
        self.model = model

    def compile(
        self, request: GenerationRequest, profile: GenerationProfile
    ) -> CompletionPayload:
        return compile_prompt(request, profile, model=self.model)
