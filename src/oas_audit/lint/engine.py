"""Lint engine. Evaluates a ``RuleSet`` against any visited object.

The engine is generic over "mapping with named fields": it never knows the
concrete OpenAPI object it is looking at beyond the kind tag the validators
pass in.  A failing rule yields a ``LintFinding``; evaluation never raises.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from oas_audit.lint.rules import (
    KEY_PROPERTY,
    AnyOf,
    Check,
    IfThen,
    NotContain,
    NotEndWith,
    OneOf,
    PatternCheck,
    PropertyCount,
    PropertyEquals,
    Rule,
    RuleSet,
    Truthy,
)
from oas_audit.model import ObjectKind
from oas_audit.model.finding import LintFinding, make_fingerprint

_logger = logging.getLogger(__name__)

_MISSING = object()


def _lookup(obj: Mapping[str, Any], key: str, prop: str) -> Any:
    if prop == KEY_PROPERTY:
        return key
    return obj.get(prop, _MISSING)


def _present(obj: Mapping[str, Any], key: str, prop: str) -> bool:
    return _lookup(obj, key, prop) is not _MISSING


def _truthy(value: Any) -> bool:
    if value is _MISSING or value is None or value is False:
        return False
    if isinstance(value, (str, list, tuple, dict)) and len(value) == 0:
        return False
    return True


def evaluate(check: Check, obj: Mapping[str, Any], key: str = "") -> bool:
    """Return True when *obj* satisfies *check*."""
    if isinstance(check, Truthy):
        return all(_truthy(_lookup(obj, key, p)) for p in check.properties)

    if isinstance(check, PatternCheck):
        value = _lookup(obj, key, check.property)
        if not isinstance(value, str):
            return True  # not applicable
        if check.omit and value.startswith(check.omit):
            value = value[len(check.omit):]
        parts = value.split(check.split) if check.split else [value]
        return all(check.regex.search(part) for part in parts if part)

    if isinstance(check, AnyOf):
        return any(_present(obj, key, p) for p in check.properties)

    if isinstance(check, OneOf):
        return sum(1 for p in check.properties if _present(obj, key, p)) == 1

    if isinstance(check, NotEndWith):
        value = _lookup(obj, key, check.property)
        if not isinstance(value, str) or (check.omit is not None and value == check.omit):
            return True
        return not value.endswith(check.value)

    if isinstance(check, NotContain):
        for prop in check.properties:
            value = _lookup(obj, key, prop)
            if not isinstance(value, str) or (check.omit is not None and value == check.omit):
                continue
            if check.value in value:
                return False
        return True

    if isinstance(check, PropertyEquals):
        value = _lookup(obj, key, check.property)
        if value is _MISSING:
            return False
        return check.value is None or value == check.value

    if isinstance(check, IfThen):
        if not _present(obj, key, check.property):
            return True
        return evaluate(check.then, obj, key)

    if isinstance(check, PropertyCount):
        return len(obj) == check.count

    raise TypeError(f"unknown lint check {type(check).__name__}")


class Linter:
    """Applies every enabled rule that targets a given object kind."""

    def __init__(self, ruleset: RuleSet) -> None:
        self.ruleset = ruleset
        self._by_kind: dict[str, tuple[Rule, ...]] = {}
        for kind in ObjectKind:
            self._by_kind[kind.value] = tuple(
                r for r in ruleset.enabled() if r.applies_to(kind.value)
            )

    def rules_for(self, kind: ObjectKind) -> tuple[Rule, ...]:
        return self._by_kind.get(kind.value, ())

    def lint(
        self,
        kind: ObjectKind,
        obj: Any,
        *,
        key: str = "",
        path: str = "#",
        in_callback: bool = False,
    ) -> list[LintFinding]:
        if not isinstance(obj, Mapping):
            return []
        findings: list[LintFinding] = []
        for rule in self.rules_for(kind):
            if rule.skip == "isCallback" and in_callback:
                continue
            if evaluate(rule.check, obj, key):
                continue
            _logger.debug("lint %s failed at %s", rule.name, path)
            findings.append(
                LintFinding(
                    rule=rule.name,
                    kind=kind,
                    path=path,
                    message=rule.description,
                    key=key,
                    fingerprint=make_fingerprint(rule.name, kind.value, path),
                )
            )
        return findings
