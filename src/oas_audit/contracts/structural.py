"""Structural pass: JSON-Schema validation of whole documents and schema roots.

The OpenAPI 3.0 meta-schema comes from ``openapi-spec-validator``; a
replacement can be supplied through ``ValidationOptions.openapi_schema``.
Compiled validators are cached per schema source and never mutated.

Unlike the semantic pass, errors here are aggregated: every violation is
collected and reported, sorted by path, in one ``StructuralError``.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

import jsonschema
from openapi_spec_validator.schemas import schema_v30

from oas_audit.contracts.load import load_schema_file
from oas_audit.core.config import ValidationOptions
from oas_audit.errors import StructuralError, StructuralViolation

_logger = logging.getLogger(__name__)


def _pointer(parts: Iterable[Any]) -> str:
    segments = [str(p).replace("~", "~0").replace("/", "~1") for p in parts]
    return "#/" + "/".join(segments) if segments else "#"


@lru_cache(maxsize=None)
def _openapi_validator(schema_path: Path | None = None) -> jsonschema.Draft4Validator:
    schema = load_schema_file(schema_path) if schema_path else dict(schema_v30)
    _logger.debug("compiled OpenAPI meta-schema from %s", schema_path or "openapi-spec-validator")
    return jsonschema.Draft4Validator(schema)


@lru_cache(maxsize=None)
def _draft4_meta_validator() -> jsonschema.Draft4Validator:
    return jsonschema.Draft4Validator(jsonschema.Draft4Validator.META_SCHEMA)


def collect_violations(
    validator: jsonschema.protocols.Validator, instance: Any
) -> list[StructuralViolation]:
    """Every error *validator* reports for *instance*, in a stable order."""
    violations = [
        StructuralViolation(
            path=_pointer(err.absolute_path),
            message=err.message,
            validator=str(err.validator),
        )
        for err in validator.iter_errors(instance)
    ]
    violations.sort(key=lambda v: (v.path, v.validator, v.message))
    return violations


def check_document(document: Any, options: ValidationOptions | None = None) -> None:
    """Validate a whole document against the OpenAPI 3.0 meta-schema."""
    options = options or ValidationOptions()
    violations = collect_violations(_openapi_validator(options.openapi_schema), document)
    if violations:
        _logger.info("structural pass found %d violation(s)", len(violations))
        raise StructuralError("Document does not match the OpenAPI 3.0 schema", violations)


def check_schema_object(schema: Any, path: str = "#") -> None:
    """Validate a schema object against the JSON-Schema draft-04 meta-schema."""
    violations = collect_violations(_draft4_meta_validator(), schema)
    if violations:
        raise StructuralError(f"Schema object at {path} is not valid draft-04", violations)
