"""Helpers for reading the top-level shape of a caller schema.

Two styles are accepted: JSON-Schema style (`{"type": "object",
"properties": {...}, "required": [...]}`) and a plain mapping of field name
to a type name or description.
"""

from __future__ import annotations

from collections.abc import Mapping
import typing

_TYPE_SYNONYMS = {
    "str": "string",
    "text": "string",
    "int": "integer",
    "float": "number",
    "decimal": "number",
    "bool": "boolean",
    "list": "array",
    "dict": "object",
}


def is_json_schema(schema: Mapping[str, typing.Any]) -> bool:
    return isinstance(schema.get("properties"), Mapping)


def declared_fields(schema: Mapping[str, typing.Any]) -> tuple[str, ...]:
    """Top-level field names the schema declares, in declaration order."""
    if is_json_schema(schema):
        return tuple(schema["properties"])
    return tuple(schema)


def required_fields(schema: Mapping[str, typing.Any]) -> tuple[str, ...]:
    """Fields the answer must contain.

    JSON-Schema style uses its `required` list when present; otherwise every
    declared field is required.
    """
    if is_json_schema(schema):
        required = schema.get("required")
        if isinstance(required, list | tuple):
            return tuple(str(name) for name in required)
    return declared_fields(schema)


def field_spec(schema: Mapping[str, typing.Any], name: str) -> typing.Any:
    """The declaration for one top-level field, or None."""
    if is_json_schema(schema):
        return schema["properties"].get(name)
    return schema.get(name)


def field_type(spec: typing.Any) -> str | None:
    """Best-effort JSON type name for a field declaration.

    Handles `{"type": "array"}` style declarations, bare type names such as
    "number" or "string", nested mappings (objects) and lists (arrays).
    """
    if isinstance(spec, Mapping):
        declared = spec.get("type")
        if isinstance(declared, str):
            return declared
        if isinstance(declared, list) and declared:
            return str(declared[0])
        if "properties" in spec:
            return "object"
        if "items" in spec:
            return "array"
        return "object"
    if isinstance(spec, list):
        return "array"
    if isinstance(spec, str):
        words = spec.strip().lower().split(maxsplit=1)
        if not words:
            return None
        word = words[0].rstrip(",.:;")
        return _TYPE_SYNONYMS.get(word, word)
    return None
