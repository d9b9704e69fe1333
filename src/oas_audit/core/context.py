"""RunState: context stack and per-run accumulators for one validation.

Every validator receives the ``RunState`` explicitly.  Nothing here is shared
between runs: a fresh instance is built by :meth:`RunState.for_document`.

The context stack holds JSON Pointer segments.  Use :meth:`RunState.at` so
the stack is rebalanced on every exit path::

    with state.at("paths", "/pets", "get"):
        ...
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from oas_audit.core.config import ValidationOptions
from oas_audit.errors import SemanticError
from oas_audit.lint.engine import Linter
from oas_audit.model import ObjectKind
from oas_audit.model.finding import LintFinding

_logger = logging.getLogger(__name__)

OAUTH2_FLOWS = ("implicit", "password", "authorizationCode", "clientCredentials")


def escape_segment(segment: Any) -> str:
    """JSON Pointer escaping (RFC 6901): ``~`` -> ``~0``, ``/`` -> ``~1``."""
    return str(segment).replace("~", "~0").replace("/", "~1")


@dataclass
class RunState:
    """Mutable state owned by a single traversal."""

    document: Mapping[str, Any]
    options: ValidationOptions = field(default_factory=ValidationOptions)
    linter: Linter | None = None

    context: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    findings: list[LintFinding] = field(default_factory=list)
    operation_ids: set[str] = field(default_factory=set)
    tag_names: set[str] = field(default_factory=set)
    path_templates: dict[str, str] = field(default_factory=dict)
    scopes: dict[str, frozenset[str]] = field(default_factory=dict)
    in_callback: bool = False

    @classmethod
    def for_document(
        cls,
        document: Mapping[str, Any],
        options: ValidationOptions | None = None,
        linter: Linter | None = None,
    ) -> "RunState":
        return cls(document=document, options=options or ValidationOptions(), linter=linter)

    # ── context stack ───────────────────────────────────────────────

    def push(self, segment: Any) -> None:
        self.context.append(escape_segment(segment))

    def pop(self) -> str:
        return self.context.pop()

    @property
    def depth(self) -> int:
        return len(self.context)

    def current_path(self) -> str:
        if not self.context:
            return "#"
        return "#/" + "/".join(self.context)

    @contextmanager
    def at(self, *segments: Any) -> Iterator["RunState"]:
        """Push *segments* for the duration of the block."""
        depth = len(self.context)
        for s in segments:
            self.push(s)
        try:
            yield self
        finally:
            del self.context[depth:]

    @contextmanager
    def pointer(self, pointer: str) -> Iterator["RunState"]:
        """Replace the whole stack with an absolute pointer for the block."""
        saved = self.context
        self.context = [s for s in pointer.lstrip("#").split("/") if s]
        try:
            yield self
        finally:
            self.context = saved

    @contextmanager
    def callback(self) -> Iterator["RunState"]:
        previous = self.in_callback
        self.in_callback = True
        try:
            yield self
        finally:
            self.in_callback = previous

    # ── diagnostics ─────────────────────────────────────────────────

    def fail(self, message: str) -> None:
        """Abort the run with a ``SemanticError`` at the current path."""
        raise SemanticError(message, self.current_path())

    def require(self, condition: bool, message: str) -> None:
        if not condition:
            self.fail(message)

    def warn(self, message: str) -> None:
        _logger.debug("warning at %s: %s", self.current_path(), message)
        self.warnings.append(message)

    def lint(self, kind: ObjectKind, node: Any, key: Any = "") -> None:
        if self.linter is None:
            return
        self.findings.extend(
            self.linter.lint(
                kind,
                node,
                key=str(key),
                path=self.current_path(),
                in_callback=self.in_callback,
            )
        )

    # ── uniqueness ──────────────────────────────────────────────────

    def claim_operation_id(self, operation_id: str) -> None:
        if operation_id in self.operation_ids:
            self.fail(f"operationIds must be unique [{operation_id}]")
        self.operation_ids.add(operation_id)

    def claim_tag_name(self, name: str) -> None:
        if name in self.tag_names:
            self.fail(f"Tag names must be unique [{name}]")
        self.tag_names.add(name)

    def claim_path_template(self, normalized: str, source: str) -> None:
        if normalized in self.path_templates and not self.document.get("x-hasEquivalentPaths"):
            self.fail(
                f"Identical path templates detected [{self.path_templates[normalized]}] and [{source}]"
            )
        self.path_templates.setdefault(normalized, source)

    # ── security scopes ─────────────────────────────────────────────

    def scopes_for(self, scheme_name: str, scheme: Any = None) -> frozenset[str]:
        """Union of scopes declared across all OAuth2 flows of a scheme (memoized).

        *scheme* is the already dereferenced scheme object, when the caller has it.
        """
        if scheme_name not in self.scopes:
            names: set[str] = set()
            if scheme is None:
                components = self.document.get("components") or {}
                scheme = (components.get("securitySchemes") or {}).get(scheme_name) or {}
            flows = scheme.get("flows") if isinstance(scheme, Mapping) else None
            if isinstance(flows, Mapping):
                for flow_name in OAUTH2_FLOWS:
                    flow = flows.get(flow_name)
                    if isinstance(flow, Mapping) and isinstance(flow.get("scopes"), Mapping):
                        names.update(flow["scopes"].keys())
            self.scopes[scheme_name] = frozenset(names)
        return self.scopes[scheme_name]
