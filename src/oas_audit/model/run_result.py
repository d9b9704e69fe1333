"""ValidationResult: what a successful run hands back."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from oas_audit import __version__
from oas_audit.model.finding import LintFinding

if TYPE_CHECKING:
    from oas_audit.core.context import RunState


@dataclass(slots=True)
class ValidationResult:
    """Outcome of a run that raised no fatal error.

    ``context`` is the path stack at the end of the run (empty when the
    stack was balanced); ``state`` keeps the accumulators for callers that
    want operation ids, tags or scope tables.
    """

    valid: bool = True
    warnings: list[str] = field(default_factory=list)
    findings: list[LintFinding] = field(default_factory=list)
    context: list[str] = field(default_factory=list)
    state: RunState | None = None
    tool_version: str = __version__

    def to_dict(self) -> dict[str, Any]:
        by_rule: dict[str, int] = {}
        for f in self.findings:
            by_rule[f.rule] = by_rule.get(f.rule, 0) + 1
        return {
            "schema_version": "validation_result_v1",
            "tool_version": self.tool_version,
            "valid": self.valid,
            "warnings": list(self.warnings),
            "summary": {
                "warnings_total": len(self.warnings),
                "findings_total": len(self.findings),
                "by_rule": by_rule,
            },
            "findings": [f.to_dict() for f in self.findings],
        }
