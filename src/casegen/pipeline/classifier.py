"""Rule-based selection of a generation profile for a request.

Rules are tried in order and the first match wins. Every rule is a pure
predicate over the prompt and the schema.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import dataclasses
import re
import typing

from casegen.core.profiles import TaskProfile
from casegen.core.schema import declared_fields

STATEMENT_FIELDS = frozenset(
    {
        "income_statement",
        "balance_sheet",
        "cash_flow_statement",
        "revenue_buildup",
        "depreciation_schedule",
        "debt_schedule",
        "dcf_valuation",
        "final_metrics",
        "projections",
    }
)

TEMPLATE_FIELDS = frozenset(
    {"template", "template_structure", "sheets", "worksheets", "excel_template"}
)

TEMPLATE_KEYWORDS = ("spreadsheet", "excel", "template", "worksheet", "workbook")

FULL_MODEL_KEYWORDS = (
    "3-statement",
    "three-statement",
    "three statement",
    "financial model",
    "dcf model",
    "integrated model",
)


def _keyword_pattern(keywords: typing.Iterable[str]) -> re.Pattern[str]:
    # Plural forms count as well ("templates", "spreadsheets").
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"(?<![\w-])(?:{alternatives})s?(?![\w-])", re.IGNORECASE)


_TEMPLATE_RE = _keyword_pattern(TEMPLATE_KEYWORDS)
_FULL_MODEL_RE = _keyword_pattern(FULL_MODEL_KEYWORDS)


def _fields(schema: Mapping[str, typing.Any]) -> set[str]:
    return {name.lower() for name in declared_fields(schema)}


def _has_statement_field(prompt: str, schema: Mapping[str, typing.Any]) -> bool:
    return not STATEMENT_FIELDS.isdisjoint(_fields(schema))


def _wants_template(prompt: str, schema: Mapping[str, typing.Any]) -> bool:
    return (
        not TEMPLATE_FIELDS.isdisjoint(_fields(schema))
        or _TEMPLATE_RE.search(prompt) is not None
    )


def _mentions_full_model(prompt: str, schema: Mapping[str, typing.Any]) -> bool:
    return _FULL_MODEL_RE.search(prompt) is not None


def _always(prompt: str, schema: Mapping[str, typing.Any]) -> bool:
    return True


@dataclasses.dataclass(frozen=True, slots=True)
class ClassificationRule:
    name: str
    predicate: Callable[[str, Mapping[str, typing.Any]], bool]
    profile: TaskProfile


RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("statement_schema", _has_statement_field, TaskProfile.FULL_MODEL),
    ClassificationRule("template_request", _wants_template, TaskProfile.TEMPLATE),
    ClassificationRule("full_model_prompt", _mentions_full_model, TaskProfile.FULL_MODEL),
    ClassificationRule("default", _always, TaskProfile.SCENARIO),
)


def _match(prompt: str, schema: Mapping[str, typing.Any]) -> ClassificationRule:
    for rule in RULES:
        if rule.predicate(prompt, schema):
            return rule
    # The final rule always matches.
    raise AssertionError("classification rule table has no default")


def classify(prompt: str, schema: Mapping[str, typing.Any]) -> TaskProfile:
    """Select the profile for a prompt and schema."""
    return _match(prompt, schema).profile


def explain(prompt: str, schema: Mapping[str, typing.Any]) -> str:
    """Name of the rule that decides the profile for a prompt and schema."""
    return _match(prompt, schema).name
