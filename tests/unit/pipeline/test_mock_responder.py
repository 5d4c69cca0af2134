"""Canned, schema-shaped replies from the mock responder."""

import json

import pytest

from casegen.core.types import GenerationRequest
from casegen.pipeline.mock_responder import MockResponder, conform, select_canned


@pytest.fixture
def responder(fake_clock):
    return MockResponder(delay_ms=2000, sleep=fake_clock.sleep)


@pytest.mark.asyncio
async def test_scenario_schema_gets_techflow_case(responder, fake_clock):
    schema = {
        "type": "object",
        "properties": {
            "company_name": {"type": "string"},
            "company_description": {"type": "string"},
            "starting_point": {"type": "object"},
            "assumptions": {"type": "object"},
        },
    }

    reply = json.loads(await responder.respond(GenerationRequest("p", schema)))

    assert reply["company_name"] == "TechFlow Solutions"
    assert reply["company_description"].startswith("TechFlow Solutions is")
    assert reply["starting_point"]["current_arr"] == 5000000
    assert reply["assumptions"]["wacc"] == 0.12
    assert fake_clock.sleeps == [2.0]


@pytest.mark.unit
def test_undeclared_canned_fields_are_dropped():
    schema = {"properties": {"company_name": {"type": "string"}}}

    assert select_canned(schema)["company_description"]
    assert conform(select_canned(schema), schema) == {
        "company_name": "TechFlow Solutions"
    }


@pytest.mark.asyncio
async def test_statement_schema_gets_full_model(responder):
    schema = {
        "properties": {
            "projections": {"type": "array"},
            "enterprise_value": {"type": "number"},
            "wacc_bridge": {"type": "object"},
        }
    }

    reply = json.loads(await responder.respond(GenerationRequest("p", schema)))

    assert [p["year"] for p in reply["projections"]] == [1, 2, 3, 4, 5]
    assert reply["projections"][4]["free_cash_flow"] == 6172875
    assert reply["enterprise_value"] == 95678000
    assert reply["wacc_bridge"] == {}


@pytest.mark.unit
def test_other_schemas_get_acknowledgement():
    assert select_canned({}) == {"success": True, "message": "LLM processing completed"}


@pytest.mark.unit
def test_conform_fills_type_defaults_for_plain_schema():
    schema = {
        "company_name": "string",
        "headcount": "int",
        "ratios": ["number"],
        "is_public": "boolean",
        "notes": "free-form commentary",
    }

    value = conform({"company_name": "Acme", "ignored": 1}, schema)

    assert value == {
        "company_name": "Acme",
        "headcount": 0,
        "ratios": [],
        "is_public": False,
        "notes": None,
    }


@pytest.mark.unit
def test_empty_schema_keeps_canned_value():
    assert conform({"success": True}, {}) == {"success": True}


@pytest.mark.unit
def test_canned_values_are_not_shared_between_replies():
    first = select_canned({"company_name": "string"})
    first["assumptions"]["wacc"] = 0.5

    assert select_canned({"company_name": "string"})["assumptions"]["wacc"] == 0.12
