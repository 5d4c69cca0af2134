"""Deterministic canned replies used when no real completion call is made.

The reply is picked from the schema's declared top-level fields, then
conformed to that field set so callers always receive the shape they asked
for. It is returned as JSON text and goes through the same extraction path
as a real reply.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
import copy
import json
import logging
import typing

from casegen.constants import DEFAULT_MOCK_DELAY_MS
from casegen.core.schema import declared_fields, field_spec, field_type

from .classifier import STATEMENT_FIELDS
from .rate_governor import Sleep

if typing.TYPE_CHECKING:
    from casegen.core.types import GenerationRequest

log = logging.getLogger(__name__)

_PROJECTIONS = [
    {
        "year": year,
        "revenue": revenue,
        "operating_expenses": opex,
        "ebitda": ebitda,
        "free_cash_flow": fcf,
    }
    for year, revenue, opex, ebitda, fcf in (
        (1, 7250000, 5075000, 2175000, 1950000),
        (2, 9787500, 6406875, 3380625, 3042562),
        (3, 12234375, 7792969, 4441406, 3997266),
        (4, 14681250, 9215625, 5465625, 4919062),
        (5, 17617500, 10758750, 6858750, 6172875),
    )
]

CANNED_FULL_MODEL: dict[str, typing.Any] = {
    "projections": _PROJECTIONS,
    "income_statement": [
        {
            "year": p["year"],
            "revenue": p["revenue"],
            "operating_expenses": p["operating_expenses"],
            "ebitda": p["ebitda"],
        }
        for p in _PROJECTIONS
    ],
    "cash_flow_statement": [
        {"year": p["year"], "free_cash_flow": p["free_cash_flow"]}
        for p in _PROJECTIONS
    ],
    "balance_sheet": [],
    "terminal_value": 82345000,
    "enterprise_value": 95678000,
    "equity_value": 89456000,
}

CANNED_SCENARIO: dict[str, typing.Any] = {
    "company_name": "TechFlow Solutions",
    "company_description": (
        "TechFlow Solutions is a rapidly growing SaaS platform that provides "
        "workflow automation tools for mid-market companies. Founded in 2019, "
        "the company has grown through strong product-market fit and an "
        "efficient sales motion."
    ),
    "starting_point": {
        "current_arr": 5000000,
        "current_customers": 2500,
        "current_arpu": 2000,
        "gross_margin_percent": 82,
    },
    "assumptions": {
        "growth_rate_year_1": 0.45,
        "growth_rate_year_2": 0.35,
        "growth_rate_year_3": 0.25,
        "churn_rate": 0.08,
        "wacc": 0.12,
    },
}

CANNED_ACKNOWLEDGEMENT: dict[str, typing.Any] = {
    "success": True,
    "message": "LLM processing completed",
}

_TYPE_DEFAULTS: dict[str, typing.Any] = {
    "string": "",
    "number": 0,
    "integer": 0,
    "boolean": False,
    "array": [],
    "object": {},
    "null": None,
}


def default_for(spec: typing.Any) -> typing.Any:
    """Empty value matching a field declaration's type."""
    return copy.deepcopy(_TYPE_DEFAULTS.get(field_type(spec) or "", None))


def select_canned(schema: Mapping[str, typing.Any]) -> dict[str, typing.Any]:
    """Pick the canned value for a schema, before conforming it."""
    fields = set(declared_fields(schema))
    if not STATEMENT_FIELDS.isdisjoint(fields):
        return copy.deepcopy(CANNED_FULL_MODEL)
    if "company_name" in fields:
        return copy.deepcopy(CANNED_SCENARIO)
    return copy.deepcopy(CANNED_ACKNOWLEDGEMENT)


def conform(
    value: dict[str, typing.Any], schema: Mapping[str, typing.Any]
) -> dict[str, typing.Any]:
    """Restrict `value` to the schema's declared fields, filling gaps.

    A schema that declares no fields leaves the value unchanged.
    """
    fields = declared_fields(schema)
    if not fields:
        return value
    return {
        name: value[name] if name in value else default_for(field_spec(schema, name))
        for name in fields
    }


class MockResponder:
    """Answers requests with canned, schema-shaped JSON after a fixed delay."""

    def __init__(
        self,
        *,
        delay_ms: int = DEFAULT_MOCK_DELAY_MS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.delay_ms = delay_ms
        self._sleep = sleep

    def build(self, schema: Mapping[str, typing.Any]) -> dict[str, typing.Any]:
        return conform(select_canned(schema), schema)

    async def respond(self, request: GenerationRequest) -> str:
        value = self.build(request.schema)
        if self.delay_ms:
            await self._sleep(self.delay_ms / 1000)
        log.debug(
            "Mock reply for %s with fields %s",
            request.correlation_id,
            sorted(value),
        )
        return json.dumps(value)
