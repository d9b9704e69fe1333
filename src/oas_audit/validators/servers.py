"""Server and server-variable validation."""

from __future__ import annotations

from typing import Any, Mapping

from oas_audit.core.context import RunState
from oas_audit.core.refs import validate_url
from oas_audit.model import ObjectKind
from oas_audit.utils.path_template import template_placeholders
from oas_audit.validators.common import require_mapping, require_type


def check_server_variable(name: str, variable: Any, state: RunState) -> None:
    with state.at(name):
        require_mapping(variable, state, "Server variable")
        state.require("default" in variable, f"Server variable {name} must have a default")
        state.require(isinstance(variable["default"], str), "Server variable default must be a string")
        if "enum" in variable:
            enum = variable["enum"]
            with state.at("enum"):
                state.require(isinstance(enum, list), "Server variable enum must be an array")
                state.require(len(enum) > 0, "Server variables enum should not be empty")
                for i, value in enumerate(enum):
                    with state.at(i):
                        state.require(isinstance(value, str), "Server variable enum values must be strings")
        require_type(variable, "description", str, state)
        state.lint(ObjectKind.SERVER_VARIABLE, variable, name)


def check_server(server: Any, state: RunState) -> None:
    require_mapping(server, state, "Server")
    state.require("url" in server, "Server must have a url")
    validate_url(server["url"], None, state, "server.url")
    require_type(server, "description", str, state)

    placeholders = template_placeholders(server["url"])
    variables = server.get("variables")
    for name in placeholders:
        state.require(
            isinstance(variables, Mapping) and name in variables,
            f"Server url variable {name} is not defined in variables",
        )
    if "variables" in server:
        with state.at("variables"):
            require_mapping(variables, state, "Server variables")
            for name, variable in variables.items():
                check_server_variable(name, variable, state)
            state.require(
                len(variables) == len(set(placeholders)),
                "Server variables must match the url placeholders",
            )
    state.lint(ObjectKind.SERVER, server, "server")


def check_servers(servers: Any, state: RunState) -> None:
    """Validate a ``servers`` list; the caller pushes the ``servers`` segment."""
    state.require(isinstance(servers, list), "servers must be an array")
    for i, server in enumerate(servers):
        with state.at(i):
            check_server(server, state)
