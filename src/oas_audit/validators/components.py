"""Reusable components.

``check_components_root`` runs early (before paths) and covers the
components object itself plus ``securitySchemes``; operations need the
schemes to be sound.  ``check_component_sections`` covers everything else
once paths have been walked.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from oas_audit.core.context import RunState
from oas_audit.core.refs import is_ref, validate_component_name, validate_reference_node
from oas_audit.core.schema_walk import walk_schema
from oas_audit.model import ObjectKind
from oas_audit.validators.common import Servers, require_mapping, require_type
from oas_audit.validators.content import check_content, check_example
from oas_audit.validators.parameters import check_parameter
from oas_audit.validators.paths import check_callback
from oas_audit.validators.responses import check_header, check_link, check_response
from oas_audit.validators.security import check_security_scheme

ANONYMOUS_REQUEST_BODY_PREFIX = "requestBody"


def _lint_reference(node: Any, state: RunState) -> bool:
    """Lint a reference entry; True when *node* was one."""
    if not is_ref(node):
        return False
    validate_reference_node(node, state)
    state.lint(ObjectKind.REFERENCE, node, "$ref")
    return True


def _each_entry(
    components: Mapping[str, Any],
    section: str,
    state: RunState,
    check: Callable[[str, Any], None],
) -> None:
    if section not in components:
        return
    entries = components[section]
    with state.at("components", section):
        require_mapping(entries, state, f"components.{section}")
        for name, node in entries.items():
            with state.at(name):
                validate_component_name(str(name), state)
                check(str(name), node)


def check_components_root(components: Any, servers: Servers, state: RunState) -> None:
    with state.at("components"):
        require_mapping(components, state, "components")
        state.lint(ObjectKind.COMPONENTS, components, "components")

    def scheme(_name: str, node: Any) -> None:
        if not _lint_reference(node, state):
            check_security_scheme(node, servers, state)

    _each_entry(components, "securitySchemes", state, scheme)


def check_request_body_component(name: str, body: Any, servers: Servers, state: RunState) -> None:
    if name.startswith(ANONYMOUS_REQUEST_BODY_PREFIX):
        state.warn(f"Anonymous requestBody: {name}")
    if _lint_reference(body, state):
        return
    require_mapping(body, state, "requestBody")
    state.require("content" in body, "requestBody must have content")
    require_type(body, "description", str, state)
    require_type(body, "required", bool, state)
    check_content(body["content"], servers, state)
    state.lint(ObjectKind.REQUEST_BODY, body, name)


def check_component_sections(components: Mapping[str, Any], servers: Servers, state: RunState) -> None:
    """Validate every reusable section except ``securitySchemes``."""

    def parameter(name: str, node: Any) -> None:
        check_parameter(node, name, None, servers, state)

    def schema(_name: str, node: Any) -> None:
        walk_schema(node, state)

    def response(_name: str, node: Any) -> None:
        check_response(node, servers, state)

    def header(_name: str, node: Any) -> None:
        check_header(node, servers, state)

    def request_body(name: str, node: Any) -> None:
        check_request_body_component(name, node, servers, state)

    def example(_name: str, node: Any) -> None:
        if not _lint_reference(node, state):
            check_example(node, servers, state)

    def callback(_name: str, node: Any) -> None:
        check_callback(node, state)

    def link(_name: str, node: Any) -> None:
        if not _lint_reference(node, state):
            check_link(node, state)

    _each_entry(components, "parameters", state, parameter)
    _each_entry(components, "schemas", state, schema)
    _each_entry(components, "responses", state, response)
    _each_entry(components, "headers", state, header)
    _each_entry(components, "requestBodies", state, request_body)
    _each_entry(components, "examples", state, example)
    _each_entry(components, "callbacks", state, callback)
    _each_entry(components, "links", state, link)
