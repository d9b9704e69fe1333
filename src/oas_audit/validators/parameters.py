"""Parameter object validation."""

from __future__ import annotations

from typing import Any, Mapping

from oas_audit.core.context import RunState
from oas_audit.core.refs import is_ref, resolve_node
from oas_audit.core.schema_walk import walk_schema
from oas_audit.model import ObjectKind
from oas_audit.validators.common import (
    PARAMETER_TYPE_PROPERTIES,
    Servers,
    forbid_keys,
    require_mapping,
    require_type,
)
from oas_audit.validators.content import check_content, check_examples

PARAMETER_LOCATIONS = ("query", "header", "path", "cookie")

# styles that are invalid (or the only valid one) per location
_FORBIDDEN_STYLES = {
    "path": ("form", "spaceDelimited", "pipeDelimited", "deepObject"),
    "query": ("matrix", "label", "simple"),
}
_REQUIRED_STYLE = {"header": "simple", "cookie": "form"}

_SERIALIZATION_KEYS = ("style", "explode", "allowReserved", "example", "examples")


def parameter_key(param: Mapping[str, Any]) -> str:
    return f"{param.get('in')}:{param.get('name')}"


def _check_style(param: Mapping[str, Any], state: RunState) -> None:
    style = param["style"]
    location = param["in"]
    state.require(isinstance(style, str), "style must be a string")
    if location in _FORBIDDEN_STYLES:
        state.require(
            style not in _FORBIDDEN_STYLES[location],
            f"style {style} is not allowed for {location} parameters",
        )
    if location in _REQUIRED_STYLE:
        expected = _REQUIRED_STYLE[location]
        state.require(style == expected, f"style of {location} parameters must be {expected}")


def check_parameter_body(param: Any, path: str | None, servers: Servers, state: RunState) -> None:
    """Validate an already-dereferenced parameter.

    *path* is the template the parameter is used under; ``None`` for
    ``#/components/parameters`` entries, which are checked where used.
    """
    require_mapping(param, state, "Parameter")
    state.require("name" in param, "Parameter must have a name")
    state.require(isinstance(param["name"], str), "Parameter name must be a string")
    state.require("in" in param, "Parameter must have an in property")
    location = param["in"]
    state.require(isinstance(location, str), "Parameter in must be a string")
    state.require(location != "body", "Parameter type body is no-longer valid")
    state.require(location != "formData", "Parameter type formData is no-longer valid")
    state.require(location in PARAMETER_LOCATIONS, f"Invalid parameter location {location}")

    if location == "path":
        state.require(
            param.get("required") is True,
            "Path parameters must have an explicit required:true",
        )
        if path:
            state.require(
                "{" + param["name"] + "}" in path,
                "path parameters must appear in the path",
            )
    require_type(param, "required", bool, state)
    forbid_keys(param, ("items", "collectionFormat", "type"), state, "Parameter")
    forbid_keys(param, PARAMETER_TYPE_PROPERTIES, state, "Parameter")
    require_type(param, "description", str, state)
    require_type(param, "deprecated", bool, state)

    has_schema = "schema" in param
    has_content = "content" in param
    state.require(has_schema or has_content, "Parameter should have schema or content")
    state.require(not (has_schema and has_content), "Parameter cannot have both schema and content")

    if has_schema:
        if "style" in param:
            _check_style(param, state)
        require_type(param, "explode", bool, state)
        require_type(param, "allowReserved", bool, state)
        if "example" in param:
            state.require("examples" not in param, "Parameter cannot have both example and examples")
        if "examples" in param:
            check_examples(param["examples"], servers, state)
        with state.at("schema"):
            walk_schema(param["schema"], state)
    else:
        forbid_keys(param, _SERIALIZATION_KEYS, state, "Parameter with content")
        content = param["content"]
        state.require(
            isinstance(content, Mapping) and len(content) == 1,
            "Parameter content must have only one entry",
        )
        check_content(content, servers, state)


def check_parameter(
    param: Any, key: Any, path: str | None, servers: Servers, state: RunState
) -> Mapping[str, Any]:
    """Validate *param* at the current path and return it, dereferenced."""
    if is_ref(param):
        state.lint(ObjectKind.REFERENCE, param, "$ref")
    resolved = resolve_node(param, state)
    check_parameter_body(resolved, path, servers, state)
    state.lint(ObjectKind.PARAMETER, resolved, key)
    return resolved


def check_parameter_list(
    params: Any, path: str | None, servers: Servers, state: RunState, level: str
) -> dict[str, Mapping[str, Any]]:
    """Validate a ``parameters`` list, rejecting duplicates by ``in:name``."""
    seen: dict[str, Mapping[str, Any]] = {}
    with state.at("parameters"):
        state.require(isinstance(params, list), "parameters must be an array")
        for i, param in enumerate(params):
            with state.at(i):
                resolved = check_parameter(param, i, path, servers, state)
            key = parameter_key(resolved)
            if key in seen:
                state.fail(f"Duplicate {level}-level parameter {resolved['name']}")
            seen[key] = resolved
    return seen
