"""Responses, headers and links."""

from __future__ import annotations

from typing import Any

from oas_audit.core.context import RunState
from oas_audit.core.refs import is_ref, resolve_node, validate_header_name
from oas_audit.core.schema_walk import walk_schema
from oas_audit.model import ObjectKind
from oas_audit.validators.common import (
    PARAMETER_TYPE_PROPERTIES,
    Servers,
    forbid_keys,
    require_mapping,
    require_type,
)
from oas_audit.validators.content import check_content
from oas_audit.validators.servers import check_server


def _deref(node: Any, state: RunState) -> Any:
    if is_ref(node):
        state.lint(ObjectKind.REFERENCE, node, "$ref")
    return resolve_node(node, state)


def check_header(header: Any, servers: Servers, state: RunState) -> None:
    header = _deref(header, state)
    require_mapping(header, state, "Header")
    forbid_keys(header, ("name", "in", "type"), state, "Header")
    forbid_keys(header, PARAMETER_TYPE_PROPERTIES, state, "Header")
    has_schema = "schema" in header
    has_content = "content" in header
    state.require(has_schema or has_content, "Header should have schema or content")
    state.require(not (has_schema and has_content), "Header cannot have both schema and content")
    if has_schema:
        if "style" in header:
            state.require(header["style"] == "simple", "Header style must be simple")
        require_type(header, "explode", bool, state)
        require_type(header, "allowReserved", bool, state)
        with state.at("schema"):
            walk_schema(header["schema"], state)
    else:
        forbid_keys(
            header,
            ("style", "explode", "allowReserved", "example", "examples"),
            state,
            "Header with content",
        )
        check_content(header["content"], servers, state)
    state.lint(ObjectKind.HEADER, header, "header")


def check_link(link: Any, state: RunState) -> None:
    link = _deref(link, state)
    require_mapping(link, state, "Link")
    has_id = "operationId" in link
    has_ref = "operationRef" in link
    state.require(has_id != has_ref, "Link must have exactly one of operationId or operationRef")
    require_type(link, "operationId", str, state)
    require_type(link, "operationRef", str, state)
    if "parameters" in link:
        require_mapping(link["parameters"], state, "Link parameters")
    require_type(link, "description", str, state)
    if "server" in link:
        with state.at("server"):
            check_server(link["server"], state)
    state.lint(ObjectKind.LINK, link, "link")


def check_response(response: Any, servers: Servers, state: RunState) -> None:
    state.require(response is not None, "Response must not be null")
    response = _deref(response, state)
    require_mapping(response, state, "Response")
    state.require("description" in response, "Response must have a description")
    state.require(
        isinstance(response["description"], str),
        "response description should be of type string",
    )
    forbid_keys(response, ("examples", "schema"), state, "Response")

    if response.get("headers"):
        with state.at("headers"):
            require_mapping(response["headers"], state, "Response headers")
            for name, header in response["headers"].items():
                with state.at(name):
                    state.require(
                        validate_header_name(str(name)),
                        "Header doesn't match RFC7230 pattern",
                    )
                    check_header(header, servers, state)

    if response.get("content"):
        check_content(response["content"], servers, state)

    if "links" in response:
        with state.at("links"):
            require_mapping(response["links"], state, "Response links")
            for name, link in response["links"].items():
                with state.at(name):
                    check_link(link, state)
    state.lint(ObjectKind.RESPONSE, response, "response")


def check_responses(responses: Any, servers: Servers, state: RunState) -> None:
    with state.at("responses"):
        require_mapping(responses, state, "responses")
        state.require(len(responses) > 0, "responses must not be empty")
        for code, response in responses.items():
            if str(code).startswith("x-"):
                continue
            with state.at(code):
                check_response(response, servers, state)
