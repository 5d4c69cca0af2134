"""Named generation profiles.

Each profile fixes the sampling parameters and the role preamble used for one
kind of generation task. The table is read-only for the process lifetime.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from types import MappingProxyType
import typing

from casegen.exceptions import ValidationError


class TaskProfile(str, Enum):
    """Kinds of generation task."""

    SCENARIO = "scenario"
    FULL_MODEL = "full-model"
    TEMPLATE = "template"


FINANCIAL_EXPERT_ROLE = """\
You are a financial modeling expert with deep experience in DCF valuation, \
SaaS metrics and institutional-quality financial analysis, having built models \
for investment banks and private equity firms.

Your strengths:
- DCF modeling with realistic, defensible assumptions
- SaaS business dynamics (ARR, churn, ARPU)
- Review to the standard a VP or MD would apply
- Exact compliance with a requested JSON schema

Always answer with valid JSON that matches the requested schema exactly, and \
keep every calculation realistic and internally consistent."""

CASE_INSTRUCTOR_ROLE = """\
You are a financial modeling instructor writing realistic SaaS DCF case \
studies for classroom and institutional use. Every case must be financially \
plausible and resemble a typical growing SaaS business that could be \
presented to an investment committee.

- Keep the financials coherent from one figure to the next
- Draw on the patterns of real SaaS companies
- Apply standard valuation methodology"""

TEMPLATE_DESIGNER_ROLE = """\
You are a financial modeling template designer producing spreadsheet-ready \
model layouts for students. Templates must be clearly organized into sheets, \
sections and labeled rows, with input cells separated from formula cells and \
formulas written so they can be entered directly into Excel.

Always answer with valid JSON that matches the requested schema exactly."""


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationProfile:
    """Sampling parameters and role for one task profile."""

    name: TaskProfile
    temperature: float
    max_output_tokens: int
    top_p: float
    frequency_penalty: float
    presence_penalty: float
    role_preamble: str
    expected_latency_s: float
    description: str


PROFILES: typing.Mapping[TaskProfile, GenerationProfile] = MappingProxyType(
    {
        TaskProfile.SCENARIO: GenerationProfile(
            name=TaskProfile.SCENARIO,
            temperature=0.3,
            max_output_tokens=6000,
            top_p=0.95,
            frequency_penalty=0.1,
            presence_penalty=0.1,
            role_preamble=CASE_INSTRUCTOR_ROLE,
            expected_latency_s=8.0,
            description="Realistic SaaS case scenarios with sound business logic",
        ),
        TaskProfile.FULL_MODEL: GenerationProfile(
            name=TaskProfile.FULL_MODEL,
            temperature=0.15,
            max_output_tokens=8000,
            top_p=0.9,
            frequency_penalty=0.02,
            presence_penalty=0.0,
            role_preamble=FINANCIAL_EXPERT_ROLE,
            expected_latency_s=12.0,
            description="Detailed three-statement models with DCF valuation",
        ),
        TaskProfile.TEMPLATE: GenerationProfile(
            name=TaskProfile.TEMPLATE,
            temperature=0.25,
            max_output_tokens=4000,
            top_p=0.92,
            frequency_penalty=0.1,
            presence_penalty=0.05,
            role_preamble=TEMPLATE_DESIGNER_ROLE,
            expected_latency_s=6.0,
            description="Excel-compatible model templates",
        ),
    }
)


def get_profile(name: TaskProfile | str) -> GenerationProfile:
    """Look up a profile by enum member or string value.

    Raises:
        ValidationError: If the name is not a known profile.
    """
    try:
        return PROFILES[TaskProfile(name)]
    except ValueError:
        valid = [p.value for p in TaskProfile]
        raise ValidationError(
            f"Unknown task profile {name!r}; expected one of {valid}"
        ) from None
