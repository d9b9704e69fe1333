"""Object-graph validators, one per OpenAPI object kind.

``check(kind, node, state, **kw)`` dispatches through a closed table keyed by
``ObjectKind``.  Keyword arguments carry the context a kind needs:

    servers   server list in scope (URL base for relative URLs)
    template  path template (path items, parameters)
    name      key the node was reached under (the method, for operations)

The document root (``ObjectKind.OPENAPI``) is driven by ``core.runner``.
"""

from __future__ import annotations

from typing import Any, Callable

from oas_audit.core.context import RunState
from oas_audit.core.refs import validate_reference_node
from oas_audit.core.schema_walk import walk_schema
from oas_audit.model import ObjectKind
from oas_audit.validators.common import check_external_docs
from oas_audit.validators.components import check_components_root, check_request_body_component
from oas_audit.validators.content import check_content, check_example
from oas_audit.validators.info import check_contact, check_info, check_license, check_tags
from oas_audit.validators.parameters import check_parameter
from oas_audit.validators.paths import check_callback, check_operation, check_path_item, check_paths
from oas_audit.validators.responses import check_header, check_link, check_response
from oas_audit.validators.security import check_security, check_security_scheme
from oas_audit.validators.servers import check_server, check_server_variable

Validator = Callable[..., Any]

_TABLE: dict[ObjectKind, Validator] = {
    ObjectKind.INFO: lambda node, state, servers=None, **_: check_info(node, servers, state),
    ObjectKind.LICENSE: lambda node, state, servers=None, **_: check_license(node, servers, state),
    ObjectKind.CONTACT: lambda node, state, servers=None, **_: check_contact(node, servers, state),
    ObjectKind.TAG: lambda node, state, servers=None, **_: check_tags(node, servers, state),
    ObjectKind.EXTERNAL_DOCS: lambda node, state, servers=None, **_: check_external_docs(node, servers, state),
    ObjectKind.SERVER: lambda node, state, **_: check_server(node, state),
    ObjectKind.SERVER_VARIABLE: lambda node, state, name="", **_: check_server_variable(name, node, state),
    ObjectKind.PATHS: lambda node, state, **_: check_paths(node, state),
    ObjectKind.PATH_ITEM: lambda node, state, template="", **_: check_path_item(node, template, state),
    ObjectKind.OPERATION: lambda node, state, name="get", template="", servers=None, **_: check_operation(
        name, node, template, {}, servers, state
    ),
    ObjectKind.PARAMETER: lambda node, state, template=None, servers=None, name="", **_: check_parameter(
        node, name, template, servers, state
    ),
    ObjectKind.REQUEST_BODY: lambda node, state, name="", servers=None, **_: check_request_body_component(
        name, node, servers, state
    ),
    ObjectKind.CONTENT: lambda node, state, servers=None, **_: check_content(node, servers, state),
    ObjectKind.EXAMPLE: lambda node, state, servers=None, **_: check_example(node, servers, state),
    ObjectKind.RESPONSE: lambda node, state, servers=None, **_: check_response(node, servers, state),
    ObjectKind.HEADER: lambda node, state, servers=None, **_: check_header(node, servers, state),
    ObjectKind.LINK: lambda node, state, **_: check_link(node, state),
    ObjectKind.CALLBACK: lambda node, state, **_: check_callback(node, state),
    ObjectKind.SCHEMA: lambda node, state, **_: walk_schema(node, state),
    ObjectKind.REFERENCE: lambda node, state, **_: validate_reference_node(node, state),
    ObjectKind.SECURITY: lambda node, state, **_: check_security(node, state),
    ObjectKind.SECURITY_SCHEME: lambda node, state, servers=None, **_: check_security_scheme(node, servers, state),
    ObjectKind.COMPONENTS: lambda node, state, servers=None, **_: check_components_root(node, servers, state),
}


def check(kind: ObjectKind, node: Any, state: RunState, **kw: Any) -> Any:
    """Validate *node* as an object of *kind* at the current path."""
    try:
        validator = _TABLE[ObjectKind(kind)]
    except KeyError:
        raise ValueError(f"no validator for object kind {kind!r}") from None
    return validator(node, state, **kw)


__all__ = ["check"]
