"""oas_audit: semantic validator and linter for OpenAPI 3.0 documents."""

__all__ = [
    "__version__",
    "validate",
    "validate_document",
    "validate_file",
    "ValidationOptions",
    "ValidationResult",
    "DocumentVersionError",
    "OasAuditError",
    "RuleSetError",
    "SemanticError",
    "StructuralError",
]
__version__ = "0.1.0"

from oas_audit.errors import (  # noqa: E402, F401
    DocumentVersionError,
    OasAuditError,
    RuleSetError,
    SemanticError,
    StructuralError,
)
from oas_audit.core.config import ValidationOptions  # noqa: E402, F401
from oas_audit.core.runner import validate  # noqa: E402, F401
from oas_audit.model.run_result import ValidationResult  # noqa: E402, F401
from oas_audit.api import validate_document, validate_file  # noqa: E402, F401
