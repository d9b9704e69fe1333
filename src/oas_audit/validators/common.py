"""Small checks shared by several object validators."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from oas_audit.core.context import RunState
from oas_audit.core.refs import validate_url
from oas_audit.model import ObjectKind

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "head", "options", "trace")

# Swagger 2.0 parameter/header fields with no place in OpenAPI 3.0
PARAMETER_TYPE_PROPERTIES = (
    "format", "minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum",
    "minLength", "maxLength", "multipleOf", "minItems", "maxItems", "uniqueItems",
    "minProperties", "maxProperties", "additionalProperties", "pattern", "enum",
    "default",
)

Servers = Sequence[Any] | None


def require_mapping(node: Any, state: RunState, what: str) -> None:
    state.require(isinstance(node, Mapping), f"{what} must be an object")


def require_type(node: Mapping[str, Any], key: str, kind: type | tuple, state: RunState) -> None:
    """If *key* is present its value must be an instance of *kind*."""
    if key in node:
        names = kind.__name__ if isinstance(kind, type) else "/".join(k.__name__ for k in kind)
        state.require(isinstance(node[key], kind), f"{key} must be of type {names}")


def restrict_keys(node: Mapping[str, Any], allowed: Iterable[str], state: RunState, what: str) -> None:
    allowed = frozenset(allowed)
    for key in node:
        if not str(key).startswith("x-"):
            state.require(key in allowed, f"{what} cannot have additionalProperty: {key}")


def forbid_keys(node: Mapping[str, Any], keys: Iterable[str], state: RunState, what: str) -> None:
    for key in keys:
        state.require(key not in node, f"{what} must not have property {key}")


def innermost_servers(*levels: Any) -> Servers:
    """Last non-empty server list among *levels* (document, path item, operation)."""
    found = None
    for servers in levels:
        if isinstance(servers, list) and servers:
            found = servers
    return found


def check_external_docs(docs: Any, servers: Servers, state: RunState) -> None:
    with state.at("externalDocs"):
        require_mapping(docs, state, "externalDocs")
        state.require("url" in docs, "externalDocs must have a url")
        require_type(docs, "description", str, state)
        validate_url(docs["url"], servers, state, "externalDocs.url")
        state.lint(ObjectKind.EXTERNAL_DOCS, docs, "externalDocs")
