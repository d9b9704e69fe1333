"""Paths, path items, operations and callbacks.

Operations and callbacks recurse into each other: a callback is a map of
runtime expressions to path items, validated with ``RunState.in_callback``
set so rules marked ``skip: isCallback`` stay quiet.
"""

from __future__ import annotations

from typing import Any, Mapping

from oas_audit.core.context import RunState
from oas_audit.core.refs import classify, is_ref, validate_reference_node
from oas_audit.model import ObjectKind, RefKind
from oas_audit.utils.path_template import (
    CALLBACK_EXPRESSION_PREFIX,
    has_mismatched_braces,
    normalize_path_template,
    template_placeholders,
)
from oas_audit.validators.common import (
    HTTP_METHODS,
    Servers,
    check_external_docs,
    innermost_servers,
    require_mapping,
    require_type,
)
from oas_audit.validators.content import check_content
from oas_audit.validators.parameters import check_parameter_list
from oas_audit.validators.responses import check_responses
from oas_audit.validators.security import check_security
from oas_audit.validators.servers import check_servers

PATH_ITEM_KEYS = frozenset({"$ref", "summary", "description", "servers", "parameters"})


def check_request_body(body: Any, servers: Servers, state: RunState) -> None:
    with state.at("requestBody"):
        state.require(body is not None, "requestBody must not be null")
        if is_ref(body):
            validate_reference_node(body, state)
            state.lint(ObjectKind.REFERENCE, body, "$ref")
            return
        require_mapping(body, state, "requestBody")
        require_type(body, "description", str, state)
        require_type(body, "required", bool, state)
        if "content" in body:
            check_content(body["content"], servers, state)
        state.lint(ObjectKind.REQUEST_BODY, body, "requestBody")


def check_callbacks(callbacks: Any, state: RunState) -> None:
    with state.at("callbacks"):
        require_mapping(callbacks, state, "callbacks")
        for name, callback in callbacks.items():
            with state.at(name):
                check_callback(callback, state)


def check_callback(callback: Any, state: RunState) -> None:
    """A callback map; reference entries are linted, not followed."""
    if is_ref(callback):
        validate_reference_node(callback, state)
        state.lint(ObjectKind.REFERENCE, callback, "$ref")
        return
    require_mapping(callback, state, "Callback")
    with state.callback():
        for expression, path_item in callback.items():
            if str(expression).startswith("x-"):
                continue
            with state.at(expression):
                check_path_item(path_item, str(expression), state)
    state.lint(ObjectKind.CALLBACK, callback, "callback")


def check_operation(
    method: str,
    op: Any,
    template: str,
    path_params: Mapping[str, Mapping[str, Any]],
    servers: Servers,
    state: RunState,
) -> None:
    require_mapping(op, state, "Operation")
    for legacy in ("consumes", "produces", "schemes"):
        state.require(legacy not in op, f"Operation must not have property {legacy}")
    state.require("responses" in op, "Operation must have responses")
    require_type(op, "summary", str, state)
    require_type(op, "description", str, state)
    if "operationId" in op:
        state.require(isinstance(op["operationId"], str), "operationId must be a string")
        state.claim_operation_id(op["operationId"])

    if "servers" in op:
        with state.at("servers"):
            check_servers(op["servers"], state)
        servers = innermost_servers(servers, op["servers"])

    if "tags" in op:
        with state.at("tags"):
            state.require(isinstance(op["tags"], list), "tags must be an array")
            for tag in op["tags"]:
                state.require(isinstance(tag, str), "tags must be strings")

    if "requestBody" in op:
        check_request_body(op["requestBody"], servers, state)

    check_responses(op["responses"], servers, state)

    merged = dict(path_params)
    if "parameters" in op:
        op_params = check_parameter_list(op["parameters"], template, servers, state, "operation")
        merged.update(op_params)

    for name in template_placeholders(template):
        if name.startswith(CALLBACK_EXPRESSION_PREFIX):
            continue
        state.require(f"path:{name}" in merged, f"Templated parameter {name} not found")

    require_type(op, "deprecated", bool, state)
    if "externalDocs" in op:
        check_external_docs(op["externalDocs"], servers, state)
    if op.get("callbacks"):
        check_callbacks(op["callbacks"], state)
    if "security" in op:
        check_security(op["security"], state)
    state.lint(ObjectKind.OPERATION, op, method)


def check_path_item(path_item: Any, template: str, state: RunState) -> None:
    require_mapping(path_item, state, "PathItem")
    servers = innermost_servers(state.document.get("servers"), path_item.get("servers"))

    path_params: dict[str, Mapping[str, Any]] = {}
    if "parameters" in path_item:
        path_params = check_parameter_list(path_item["parameters"], template, servers, state, "path")

    for key, value in path_item.items():
        with state.at(key):
            if key == "$ref":
                state.require(isinstance(value, str) and value != "", "PathItem $ref must be a string")
                state.require(
                    classify(value) is RefKind.EXTERNAL,
                    f"PathItem $refs must be external ({value})",
                )
                state.lint(ObjectKind.REFERENCE, path_item, "$ref")
            elif key == "servers":
                check_servers(value, state)
            elif key in ("summary", "description"):
                state.require(isinstance(value, str), f"{key} must be a string")
            elif key in HTTP_METHODS:
                check_operation(key, value, template, path_params, servers, state)
            elif key != "parameters" and not str(key).startswith("x-"):
                state.fail(f"PathItem should not have additional property {key}")
    state.lint(ObjectKind.PATH_ITEM, path_item, template)


def check_paths(paths: Any, state: RunState, section: str = "paths") -> None:
    """Validate ``paths`` (or ``x-ms-paths``) including template identity.

    Positionally equivalent templates (``/a/{x}`` and ``/a/{y}``) are
    rejected unless the document sets ``x-hasEquivalentPaths``.  Templates
    under ``x-ms-paths`` are not claimed.
    """
    with state.at(section):
        require_mapping(paths, state, section)
        for template, path_item in paths.items():
            template = str(template)
            if template.startswith("x-"):
                continue
            with state.at(template):
                state.require(template.startswith("/"), "Path must start with /")
                state.require("?" not in template, "Path must not contain a query string")
                if section == "paths":
                    state.require(not has_mismatched_braces(template), "Mismatched {} in path template")
                    state.claim_path_template(normalize_path_template(template), template)
                check_path_item(path_item, template, state)
                state.lint(ObjectKind.PATHS, path_item, template)
