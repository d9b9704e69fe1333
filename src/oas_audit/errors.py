"""Exception hierarchy raised by the validation engine.

Three fatal outcomes are kept distinct:

* ``StructuralError``: the document (or a schema object) fails the
  generic meta-schema check.  Every violation is collected and reported
  together.
* ``SemanticError``: a single OpenAPI-specific rule was violated.
  Raised at the first failure, with the JSON Pointer of the failing node.
* ``DocumentVersionError``: the input is not an OpenAPI 3.0.x document.

Lint findings and warnings are never raised; they accumulate on the run state.
"""

from __future__ import annotations

from dataclasses import dataclass


class OasAuditError(Exception):
    """Base class for every error raised by oas_audit."""


@dataclass(frozen=True, slots=True)
class StructuralViolation:
    """One meta-schema violation reported by the structural pass."""

    path: str
    message: str
    validator: str

    def to_dict(self) -> dict:
        return {"path": self.path, "message": self.message, "validator": self.validator}


class StructuralError(OasAuditError):
    def __init__(self, message: str, violations: list[StructuralViolation]) -> None:
        super().__init__(message)
        self.message = message
        self.violations = list(violations)

    def __str__(self) -> str:
        lines = [self.message]
        for v in self.violations:
            lines.append(f"  {v.path}: {v.message}")
        return "\n".join(lines)


class SemanticError(OasAuditError):
    """A document-specific rule was violated at *path*."""

    def __init__(self, message: str, path: str = "#") -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class DocumentVersionError(OasAuditError):
    """The document is not parseable as an OpenAPI 3.0.x definition."""


class RuleSetError(OasAuditError):
    """A lint rule file is malformed."""
