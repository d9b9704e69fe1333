"""Schema keyword validator for the OpenAPI 3.0 schema-object profile.

``walk_schema`` visits a schema and every sub-schema reachable through
``items``, ``properties``, ``additionalItems``, ``additionalProperties``,
``not`` and the ``allOf``/``anyOf``/``oneOf`` lists.  Reference nodes are
checked for shape only and never followed.  After a top-level root has been
walked it is also checked against the JSON-Schema draft-04 meta-schema.
"""

from __future__ import annotations

import re
from typing import Any, Iterator, Mapping

from oas_audit.contracts.structural import check_schema_object
from oas_audit.core.context import RunState
from oas_audit.core.refs import is_ref, validate_reference_node, validate_url
from oas_audit.model import ObjectKind

SCHEMA_KEYWORDS = frozenset({
    "type", "items", "format", "properties", "required", "minimum", "maximum",
    "exclusiveMinimum", "exclusiveMaximum", "enum", "default", "description",
    "title", "readOnly", "writeOnly", "anyOf", "allOf", "oneOf", "not",
    "discriminator", "maxItems", "minItems", "additionalItems",
    "additionalProperties", "example", "maxLength", "minLength", "pattern",
    "uniqueItems", "xml", "externalDocs", "nullable", "deprecated",
    "minProperties", "maxProperties", "multipleOf",
})

SCHEMA_TYPES = ("integer", "number", "string", "boolean", "object", "array")

STRING_FORMATS = frozenset({
    "date-time", "email", "hostname", "ipv4", "ipv6", "uri", "uriref",
    "byte", "binary", "date", "password",
})
INTEGER_FORMATS = frozenset({"int32", "int64"})
FLOAT_FORMATS = frozenset({"float", "double"})

_BOOLEAN_KEYWORDS = (
    "exclusiveMinimum", "exclusiveMaximum", "uniqueItems", "nullable",
    "readOnly", "writeOnly", "deprecated",
)
_COUNT_KEYWORDS = (
    "maxLength", "minLength", "maxItems", "minItems", "maxProperties", "minProperties",
)
_LIST_COMBINERS = ("allOf", "anyOf", "oneOf")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return "null"


def _children(schema: Mapping[str, Any]) -> Iterator[tuple[tuple[Any, ...], Any]]:
    if isinstance(schema.get("items"), Mapping):
        yield ("items",), schema["items"]
    for name, sub in (schema.get("properties") or {}).items():
        yield ("properties", name), sub
    for kw in ("additionalItems", "additionalProperties", "not"):
        if isinstance(schema.get(kw), Mapping):
            yield (kw,), schema[kw]
    for kw in _LIST_COMBINERS:
        if isinstance(schema.get(kw), list):
            for i, sub in enumerate(schema[kw]):
                yield (kw, i), sub


def check_keywords(schema: Mapping[str, Any], state: RunState) -> None:
    """Apply the keyword rules to a single (non-reference) schema node."""
    for key in schema:
        if not str(key).startswith("x-"):
            state.require(
                key in SCHEMA_KEYWORDS,
                f"Schema object cannot have additionalProperty: {key}",
            )

    if "multipleOf" in schema:
        state.require(_is_number(schema["multipleOf"]), "multipleOf must be a number")
        state.require(schema["multipleOf"] > 0, "multipleOf must be greater than 0")
    for kw in ("maximum", "minimum"):
        if kw in schema:
            state.require(_is_number(schema[kw]), f"{kw} must be a number")
    for kw in _BOOLEAN_KEYWORDS:
        if kw in schema:
            state.require(isinstance(schema[kw], bool), f"{kw} must be a boolean")
    for kw in _COUNT_KEYWORDS:
        if kw in schema:
            state.require(_is_number(schema[kw]), f"{kw} must be a number")
            state.require(schema[kw] >= 0, f"{kw} must not be negative")

    if schema.get("pattern"):
        try:
            re.compile(schema["pattern"])
        except (re.error, TypeError):
            state.fail("pattern is not a valid regular expression")

    if "items" in schema:
        state.require(isinstance(schema["items"], Mapping), "items must be a schema object")
    for kw in ("additionalItems", "additionalProperties"):
        if kw in schema:
            state.require(
                isinstance(schema[kw], (bool, Mapping)),
                f"{kw} must be a boolean or schema",
            )
    if "required" in schema:
        required = schema["required"]
        state.require(isinstance(required, list), "required must be an array")
        state.require(len(required) > 0, "required must not be empty")
        state.require(
            len(set(map(str, required))) == len(required),
            "required items must be unique",
        )
    if "properties" in schema:
        state.require(isinstance(schema["properties"], Mapping), "properties must be an object")
    state.require("patternProperties" not in schema, "patternProperties is not allowed")

    if "enum" in schema:
        state.require(isinstance(schema["enum"], list), "enum must be an array")
        state.require(len(schema["enum"]) > 0, "enum must not be empty")
    for kw in _LIST_COMBINERS:
        if kw in schema:
            state.require(isinstance(schema[kw], list), f"{kw} must be an array")
            state.require(len(schema[kw]) > 0, f"{kw} must not be empty")
    if "not" in schema:
        state.require(isinstance(schema["not"], Mapping), "not must be a schema object")

    schema_type = schema.get("type")
    if "type" in schema:
        state.require(isinstance(schema_type, str), "type must be a string")
        state.require(schema_type in SCHEMA_TYPES, f"Invalid schema type {schema_type}")
        if schema_type == "array":
            state.require("items" in schema, "Schema of type array must have items")

    for kw in ("title", "description"):
        if kw in schema:
            state.require(isinstance(schema[kw], str), f"{kw} must be a string")

    if "default" in schema:
        state.require("type" in schema, "default requires a type")
        default = schema["default"]
        if default is None:
            state.require(schema.get("nullable") is True, "default of null requires nullable: true")
        else:
            expected = "number" if schema_type == "integer" else schema_type
            actual = _json_type(default)
            state.require(
                expected == actual,
                f"default type {actual} does not match schema type {schema_type}",
            )

    if "format" in schema:
        fmt = schema["format"]
        state.require(isinstance(fmt, str), "format must be a string")
        if schema_type:
            message = f"Invalid type {schema_type} for format {fmt}"
            if fmt in STRING_FORMATS:
                state.require(schema_type == "string", message)
            elif fmt in INTEGER_FORMATS:
                state.require(schema_type in ("integer", "string", "number"), message)
            elif fmt in FLOAT_FORMATS:
                state.require(schema_type in ("number", "string"), message)

    if "readOnly" in schema and "writeOnly" in schema:
        state.fail("readOnly and writeOnly are mutually exclusive")

    if "discriminator" in schema:
        disc = schema["discriminator"]
        state.require(isinstance(disc, Mapping), "discriminator must be an object")
        state.require("propertyName" in disc, "discriminator must have a propertyName")
    if "xml" in schema:
        state.require(isinstance(schema["xml"], Mapping), "xml must be an object")

    if "externalDocs" in schema:
        docs = schema["externalDocs"]
        with state.at("externalDocs"):
            state.require(isinstance(docs, Mapping), "externalDocs must be an object")
            state.require("url" in docs, "externalDocs must have a url")
            validate_url(docs["url"], state.document.get("servers"), state, "externalDocs.url")
            state.lint(ObjectKind.EXTERNAL_DOCS, docs, "externalDocs")


def _walk(schema: Any, state: RunState, ancestors: set[int]) -> None:
    state.lint(ObjectKind.SCHEMA, schema, "schema")
    state.require(isinstance(schema, Mapping), "Schema must be an object")
    if is_ref(schema):
        validate_reference_node(schema, state)
        state.lint(ObjectKind.REFERENCE, schema, "$ref")
        return
    check_keywords(schema, state)
    if id(schema) in ancestors:
        return
    ancestors.add(id(schema))
    for segments, child in _children(schema):
        with state.at(*segments):
            _walk(child, state, ancestors)
    ancestors.discard(id(schema))


def walk_schema(schema: Any, state: RunState, *, top_level: bool = True) -> None:
    """Validate *schema* and all its sub-schemas at the current path.

    With *top_level*, a non-reference root is additionally checked against
    the draft-04 meta-schema (raises ``StructuralError``).
    """
    _walk(schema, state, set())
    if top_level and not is_ref(schema):
        check_schema_object(schema, state.current_path())
