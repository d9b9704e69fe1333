"""
oas_audit.api
=============

Programmatic entrypoints for using oas_audit as a library.

Goals:
  - No argparse / CLI dependencies
  - Plain-dict inputs (already parsed JSON/YAML) or a path to read
  - Exceptions for fatal outcomes, a ``ValidationResult`` otherwise

Usage::

    from oas_audit.api import validate_document, validate_file

    result = validate_document(doc, lint=True)
    result = validate_file("openapi.yaml", resolve=True)
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from oas_audit.core.config import ValidationOptions
from oas_audit.core.external import Loader
from oas_audit.core.runner import validate
from oas_audit.lint.engine import Linter
from oas_audit.model.run_result import ValidationResult


def _to_path(p: str | Path) -> Path:
    return p if isinstance(p, Path) else Path(p)


def _options(options: ValidationOptions | None, overrides: dict[str, Any]) -> ValidationOptions:
    if options is None:
        return ValidationOptions(**overrides)
    if overrides:
        return replace(options, **overrides)
    return options


def load_document(path: str | Path) -> Any:
    """Read a JSON or YAML OpenAPI document from disk.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    yaml.YAMLError
        If the text cannot be parsed.
    """
    path = _to_path(path)
    if not path.exists():
        raise FileNotFoundError(f"load_document: file does not exist: {path}")
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def validate_document(
    document: Mapping[str, Any],
    options: ValidationOptions | None = None,
    *,
    linter: Linter | None = None,
    loader: Loader | None = None,
    **overrides: Any,
) -> ValidationResult:
    """Validate an in-memory document.

    Parameters
    ----------
    document:
        Parsed OpenAPI 3.0 document. It is never modified.
    options:
        Run configuration; keyword *overrides* (``lint=True`` etc.) are
        applied on top of it.
    linter:
        Pre-built linter, reused across runs.
    loader:
        Replacement loader for external references (``resolve=True``).

    Raises
    ------
    DocumentVersionError, StructuralError, SemanticError
        On the first fatal outcome.
    """
    return validate(document, _options(options, overrides), linter=linter, loader=loader)


def validate_file(
    path: str | Path,
    options: ValidationOptions | None = None,
    **overrides: Any,
) -> ValidationResult:
    """Read *path* and validate it; relative external refs resolve against it."""
    path = _to_path(path)
    document = load_document(path)
    opts = _options(options, overrides)
    if opts.source is None:
        opts = _options(opts, {"source": str(path)})
    return validate(document, opts)
