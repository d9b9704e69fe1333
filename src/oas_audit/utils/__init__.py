"""Shared utilities for oas_audit."""

from oas_audit.utils.exit_codes import ExitCode
from oas_audit.utils.json_norm import stable_json_dump, stable_json_dumps
from oas_audit.utils.path_template import (
    has_mismatched_braces,
    normalize_path_template,
    template_placeholders,
)

__all__ = [
    "ExitCode",
    "has_mismatched_braces",
    "normalize_path_template",
    "stable_json_dump",
    "stable_json_dumps",
    "template_placeholders",
]
