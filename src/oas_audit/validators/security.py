"""Security requirements and security schemes."""

from __future__ import annotations

from typing import Any, Mapping

from oas_audit.core.context import OAUTH2_FLOWS, RunState, escape_segment
from oas_audit.core.refs import NOT_FOUND, resolve_internal, resolve_node, validate_url
from oas_audit.model import ObjectKind
from oas_audit.validators.common import Servers, require_mapping

SCHEME_TYPES = ("apiKey", "http", "oauth2", "openIdConnect")
API_KEY_LOCATIONS = ("query", "header", "cookie")

_AUTHORIZATION_URL_FLOWS = ("implicit", "authorizationCode")
_TOKEN_URL_FLOWS = ("password", "clientCredentials", "authorizationCode")


def check_security(security: Any, state: RunState) -> None:
    """Validate a list of security requirement objects."""
    with state.at("security"):
        state.require(isinstance(security, list), "security must be an array")
        for i, requirement in enumerate(security):
            with state.at(i):
                require_mapping(requirement, state, "Security requirement")
                for name, scopes in requirement.items():
                    _check_requirement(str(name), scopes, state)
                state.lint(ObjectKind.SECURITY, requirement, i)


def _check_requirement(name: str, scopes: Any, state: RunState) -> None:
    state.require(isinstance(scopes, list), f"Security requirement {name} must be an array of scopes")
    scheme = resolve_internal(state.document, "#/components/securitySchemes/" + escape_segment(name))
    state.require(scheme is not NOT_FOUND, f"Could not dereference securityScheme {name}")
    scheme = resolve_node(scheme, state)
    state.require(isinstance(scheme, Mapping), f"Could not dereference securityScheme {name}")
    scheme_type = scheme.get("type")
    if scheme_type == "openIdConnect":
        return
    if scheme_type != "oauth2":
        state.require(not scopes, f"Security scheme {name} of type {scheme_type} must not list scopes")
        return
    declared = state.scopes_for(name, scheme)
    for scope in scopes:
        state.require(isinstance(scope, str), f"Scope {scope!r} of security scheme {name} must be a string")
        state.require(scope in declared, f"Scope {scope} is not declared by security scheme {name}")


def _check_flow(flow_name: str, flow: Any, servers: Servers, state: RunState) -> None:
    with state.at(flow_name):
        state.require(flow_name in OAUTH2_FLOWS, f"Unknown flow type: {flow_name}")
        require_mapping(flow, state, "OAuth flow")
        if flow_name in _AUTHORIZATION_URL_FLOWS:
            state.require("authorizationUrl" in flow, f"{flow_name} flow must have an authorizationUrl")
            validate_url(flow["authorizationUrl"], servers, state, "authorizationUrl")
        else:
            state.require("authorizationUrl" not in flow, f"{flow_name} flow must not have an authorizationUrl")
        if flow_name in _TOKEN_URL_FLOWS:
            state.require("tokenUrl" in flow, f"{flow_name} flow must have a tokenUrl")
            validate_url(flow["tokenUrl"], servers, state, "tokenUrl")
        else:
            state.require("tokenUrl" not in flow, f"{flow_name} flow must not have a tokenUrl")
        if "refreshUrl" in flow:
            validate_url(flow["refreshUrl"], servers, state, "refreshUrl")
        state.require("scopes" in flow, f"{flow_name} flow must have scopes")
        require_mapping(flow["scopes"], state, "scopes")


def check_security_scheme(scheme: Any, servers: Servers, state: RunState) -> None:
    require_mapping(scheme, state, "Security scheme")
    state.require("type" in scheme, "Security scheme must have a type")
    scheme_type = scheme["type"]
    state.require(isinstance(scheme_type, str), "Security scheme type must be a string")
    state.require(scheme_type != "basic", "Security scheme basic should be http with scheme basic")
    state.require(scheme_type in SCHEME_TYPES, f"Invalid security scheme type {scheme_type}")

    if scheme_type == "http":
        state.require("scheme" in scheme, "http security scheme must have a scheme")
        state.require(isinstance(scheme["scheme"], str), "scheme must be a string")
        if scheme["scheme"] != "bearer":
            state.require("bearerFormat" not in scheme, "bearerFormat is only valid with scheme bearer")
    else:
        state.require("scheme" not in scheme, "scheme is only valid for http security schemes")
        state.require("bearerFormat" not in scheme, "bearerFormat is only valid for http security schemes")

    if scheme_type == "apiKey":
        state.require("name" in scheme, "apiKey security scheme must have a name")
        state.require(isinstance(scheme["name"], str), "name must be a string")
        state.require("in" in scheme, "apiKey security scheme must have an in property")
        state.require(scheme["in"] in API_KEY_LOCATIONS, f"Invalid apiKey location {scheme['in']}")
    else:
        state.require("name" not in scheme, "name is only valid for apiKey security schemes")
        state.require("in" not in scheme, "in is only valid for apiKey security schemes")

    if scheme_type == "oauth2":
        state.require("flow" not in scheme, "oauth2 security scheme must use flows, not flow")
        state.require("flows" in scheme, "oauth2 security scheme must have flows")
        with state.at("flows"):
            require_mapping(scheme["flows"], state, "flows")
            for flow_name, flow in scheme["flows"].items():
                _check_flow(str(flow_name), flow, servers, state)
    else:
        state.require("flows" not in scheme, "flows is only valid for oauth2 security schemes")

    if scheme_type == "openIdConnect":
        state.require("openIdConnectUrl" in scheme, "openIdConnect security scheme must have an openIdConnectUrl")
        validate_url(scheme["openIdConnectUrl"], servers, state, "openIdConnectUrl")
    else:
        state.require("openIdConnectUrl" not in scheme, "openIdConnectUrl is only valid for openIdConnect")
    state.lint(ObjectKind.SECURITY_SCHEME, scheme, "securityScheme")
