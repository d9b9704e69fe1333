"""Runner: drives one validation run over a whole document."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from oas_audit.contracts import structural
from oas_audit.core.config import ValidationOptions
from oas_audit.core.context import RunState
from oas_audit.core.external import Loader, resolve_external
from oas_audit.core.refs import sweep_references
from oas_audit.errors import DocumentVersionError
from oas_audit.lint.engine import Linter
from oas_audit.lint.rules import load_rules
from oas_audit.model import ObjectKind
from oas_audit.model.run_result import ValidationResult
from oas_audit.validators import check
from oas_audit.validators.common import check_external_docs, innermost_servers
from oas_audit.validators.components import check_component_sections
from oas_audit.validators.paths import check_paths
from oas_audit.validators.security import check_security
from oas_audit.validators.servers import check_servers

_logger = logging.getLogger(__name__)

LEGACY_ROOT_KEYS = (
    "host", "basePath", "schemes", "definitions", "parameters", "responses",
    "securityDefinitions", "produces", "consumes",
)
ROOT_KEYS = frozenset({
    "openapi", "info", "servers", "security", "externalDocs", "tags", "paths", "components",
})


def check_version(document: Any) -> None:
    """Raise ``DocumentVersionError`` unless *document* is OpenAPI 3.0.x."""
    if not isinstance(document, Mapping):
        raise DocumentVersionError("Document must be an object")
    if "swagger" in document:
        raise DocumentVersionError("Swagger 2.0 documents are not supported; convert to OpenAPI 3.0 first")
    version = document.get("openapi")
    if not isinstance(version, str) or not version.startswith("3.0."):
        raise DocumentVersionError(f"Must be an OpenAPI 3.0.x document (openapi: {version!r})")


def _check_root(document: Mapping[str, Any], state: RunState) -> None:
    for key in LEGACY_ROOT_KEYS:
        state.require(key not in document, f"OpenAPI 3.0 documents cannot have property {key}")
    for key in document:
        if not str(key).startswith("x-"):
            state.require(key in ROOT_KEYS, f"OpenAPI object cannot have additionalProperty: {key}")
    state.require("paths" in document, "OpenAPI document must have paths")
    state.require("info" in document, "OpenAPI document must have info")


def validate_semantics(document: Mapping[str, Any], state: RunState) -> None:
    """The semantic pass; fails fast with ``SemanticError``."""
    _check_root(document, state)
    servers = innermost_servers(document.get("servers"))

    if "servers" in document:
        with state.at("servers"):
            check_servers(document["servers"], state)
    check(ObjectKind.INFO, document["info"], state, servers=servers)
    if "externalDocs" in document:
        check_external_docs(document["externalDocs"], servers, state)
    if "tags" in document:
        check(ObjectKind.TAG, document["tags"], state, servers=servers)
    if "security" in document:
        check_security(document["security"], state)
    components = document.get("components")
    if components is not None:
        check(ObjectKind.COMPONENTS, components, state, servers=servers)

    refs = sweep_references(state)
    _logger.debug("checked %d reference(s)", refs)

    check_paths(document["paths"], state)
    if "x-ms-paths" in document:
        check_paths(document["x-ms-paths"], state, section="x-ms-paths")

    if isinstance(components, Mapping):
        check_component_sections(components, servers, state)
    state.lint(ObjectKind.OPENAPI, document, "openapi")


def build_linter(options: ValidationOptions) -> Linter | None:
    if not options.lint:
        return None
    return Linter(load_rules(options.lint_rules))


def validate(
    document: Any,
    options: ValidationOptions | None = None,
    *,
    linter: Linter | None = None,
    loader: Loader | None = None,
) -> ValidationResult:
    """Validate a parsed OpenAPI 3.0 document.

    Runs, in order: the version check, the optional external-reference phase,
    the structural pass (``before``), the semantic pass, and the structural
    pass (``after``).  Raises ``DocumentVersionError``, ``StructuralError``
    or ``SemanticError``; lint findings and warnings are returned.
    """
    options = options or ValidationOptions()
    check_version(document)

    if options.resolve:
        document = resolve_external(document, options.source, loader)

    if options.schema_pass.runs_before:
        _logger.debug("structural pass (before)")
        structural.check_document(document, options)

    if linter is None:
        linter = build_linter(options)
    state = RunState.for_document(document, options, linter)

    _logger.info("semantic pass starting (lint=%s)", linter is not None)
    validate_semantics(document, state)
    _logger.info(
        "semantic pass done: %d warning(s), %d lint finding(s)",
        len(state.warnings),
        len(state.findings),
    )

    if options.schema_pass.runs_after:
        _logger.debug("structural pass (after)")
        structural.check_document(document, options)

    return ValidationResult(
        valid=True,
        warnings=list(state.warnings),
        findings=list(state.findings),
        context=list(state.context),
        state=state,
    )
