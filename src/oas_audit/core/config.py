"""Validation options dataclass."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

from oas_audit.model import SchemaPass

ENV_PREFIX = "OAS_AUDIT_"


@dataclass(frozen=True)
class ValidationOptions:
    """Immutable per-run configuration.

    Environment variables named ``OAS_AUDIT_<FIELD>`` (upper case) override
    defaults when built through :meth:`from_env`.
    """

    resolve: bool = False           # load external $refs before validating
    source: str | None = None       # location of the document, for relative external refs
    schema_pass: SchemaPass = SchemaPass.BOTH
    lint: bool = False
    lint_rules: Path | None = None  # None = bundled catalog
    origin: str | None = None       # base URL for relative URLs
    lax_urls: bool = False
    lenient_media_types: bool = True
    strict_refs: bool = False       # fail on non-extension siblings of $ref
    deep_cycles: bool = False       # follow multi-hop $ref chains
    openapi_schema: Path | None = None  # replacement OpenAPI meta-schema (JSON or YAML)

    def __post_init__(self) -> None:
        if not isinstance(self.schema_pass, SchemaPass):
            object.__setattr__(self, "schema_pass", SchemaPass(str(self.schema_pass).lower()))
        if self.lint_rules is not None and not isinstance(self.lint_rules, Path):
            object.__setattr__(self, "lint_rules", Path(self.lint_rules))
        if self.openapi_schema is not None and not isinstance(self.openapi_schema, Path):
            object.__setattr__(self, "openapi_schema", Path(self.openapi_schema))

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides) -> "ValidationOptions":
        """Build options from ``OAS_AUDIT_*`` variables, then apply *overrides*."""
        env = os.environ if environ is None else environ
        values: dict = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            default = getattr(cls, f.name, None)
            if isinstance(default, bool):
                values[f.name] = raw.lower() in ("true", "1", "yes", "on")
            else:
                values[f.name] = raw
        return replace(cls(**values), **overrides)
