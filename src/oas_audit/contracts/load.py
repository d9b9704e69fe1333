"""Load bundled internal schemas and validate configuration data against them.

Usage::

    from oas_audit.contracts.load import validate_internal

    validate_internal(rule_file_dict, "lint_rules.schema.json")
"""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema
import yaml

INTERNAL_SCHEMA_DIR = "data/internal_schemas"


def _internal_schema_path(name: str) -> Path:
    """Resolve an internal schema from package data or the source tree."""
    canonical = Path(__file__).resolve().parents[1] / INTERNAL_SCHEMA_DIR / name
    if canonical.exists():
        return canonical
    with resources.as_file(resources.files("oas_audit") / INTERNAL_SCHEMA_DIR / name) as p:
        return p


@lru_cache(maxsize=None)
def _internal_validator(name: str) -> jsonschema.protocols.Validator:
    schema = json.loads(_internal_schema_path(name).read_text(encoding="utf-8"))
    cls = jsonschema.validators.validator_for(schema)
    cls.check_schema(schema)
    return cls(schema)


def validate_internal(instance: Any, schema_name: str) -> None:
    """Validate *instance* against an internal schema.

    Raises ``jsonschema.ValidationError`` on failure (the most relevant error
    when there are several).
    """
    validator = _internal_validator(schema_name)
    error = jsonschema.exceptions.best_match(validator.iter_errors(instance))
    if error is not None:
        raise error


def load_schema_file(path: Path) -> dict[str, Any]:
    """Load a user-supplied JSON or YAML schema file."""
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: schema file must contain a mapping")
    return data
