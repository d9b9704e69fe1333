"""Declarative lint rules: a closed AST parsed once from configuration.

A rule file is a YAML (or JSON) mapping ``{"rules": [...]}``.  Each record
names the object kind it targets (or ``*``), an optional ``skip`` condition,
and exactly one check primitive:

    truthy      name | [names]       each property present and not empty/false
    pattern     {property, value, omit?, split?}
    or          [names]              at least one present
    xor         [names]              exactly one present
    notEndWith  {property, value, omit?}
    notContain  {property | properties, value, omit?}
    if          {property, then}     when property present, ``then`` must hold
    properties  N                    object has exactly N own properties

``$key`` as a property name refers to the key the object was reached under.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Union

import jsonschema
import yaml

from oas_audit.contracts.load import validate_internal
from oas_audit.errors import RuleSetError

KEY_PROPERTY = "$key"
ANY_KIND = "*"
SKIP_CONDITIONS = frozenset({"isCallback"})

DEFAULT_RULES_RESOURCE = "data/lint_rules.yaml"
RULES_SCHEMA = "lint_rules.schema.json"


# ── check primitives ────────────────────────────────────────────────


@dataclass(frozen=True)
class Truthy:
    properties: tuple[str, ...]


@dataclass(frozen=True)
class PatternCheck:
    property: str
    regex: re.Pattern[str]
    omit: str | None = None
    split: str | None = None


@dataclass(frozen=True)
class AnyOf:
    properties: tuple[str, ...]


@dataclass(frozen=True)
class OneOf:
    properties: tuple[str, ...]


@dataclass(frozen=True)
class NotEndWith:
    property: str
    value: str
    omit: str | None = None


@dataclass(frozen=True)
class NotContain:
    properties: tuple[str, ...]
    value: str
    omit: str | None = None


@dataclass(frozen=True)
class PropertyEquals:
    """``then`` shape without a primitive: property present (and equal to value)."""

    property: str
    value: Any = None


@dataclass(frozen=True)
class IfThen:
    property: str
    then: "Check"


@dataclass(frozen=True)
class PropertyCount:
    count: int


Check = Union[Truthy, PatternCheck, AnyOf, OneOf, NotEndWith, NotContain, PropertyEquals, IfThen, PropertyCount]

PRIMITIVES = ("truthy", "pattern", "or", "xor", "notEndWith", "notContain", "if", "properties")


@dataclass(frozen=True)
class Rule:
    name: str
    object: str
    description: str
    check: Check
    disabled: bool = False
    skip: str | None = None

    def applies_to(self, kind: str) -> bool:
        return self.object == ANY_KIND or self.object == kind


@dataclass(frozen=True)
class RuleSet:
    rules: tuple[Rule, ...]

    def enabled(self) -> tuple[Rule, ...]:
        return tuple(r for r in self.rules if not r.disabled)

    def names(self) -> list[str]:
        return [r.name for r in self.rules]


# ── parsing ─────────────────────────────────────────────────────────


def _as_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _compile(rule_name: str, pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise RuleSetError(f"rule {rule_name!r}: invalid pattern {pattern!r}: {exc}") from exc


def _parse_check(rule_name: str, primitive: str, body: Any) -> Check:
    if primitive == "truthy":
        return Truthy(properties=_as_tuple(body))
    if primitive == "pattern":
        return PatternCheck(
            property=body["property"],
            regex=_compile(rule_name, body["value"]),
            omit=body.get("omit"),
            split=body.get("split"),
        )
    if primitive == "or":
        return AnyOf(properties=_as_tuple(body))
    if primitive == "xor":
        return OneOf(properties=_as_tuple(body))
    if primitive == "notEndWith":
        return NotEndWith(property=body["property"], value=body["value"], omit=body.get("omit"))
    if primitive == "notContain":
        props = body.get("properties", body.get("property"))
        return NotContain(properties=_as_tuple(props), value=body["value"], omit=body.get("omit"))
    if primitive == "if":
        then = body["then"]
        nested = [k for k in PRIMITIVES if k in then]
        if nested:
            inner = _parse_check(rule_name, nested[0], then[nested[0]])
        else:
            inner = PropertyEquals(property=then["property"], value=then.get("value"))
        return IfThen(property=body["property"], then=inner)
    if primitive == "properties":
        return PropertyCount(count=int(body))
    raise RuleSetError(f"rule {rule_name!r}: unknown check primitive {primitive!r}")


def parse_rule(record: dict[str, Any]) -> Rule:
    name = record["name"]
    present = [k for k in PRIMITIVES if k in record]
    if len(present) != 1:
        raise RuleSetError(
            f"rule {name!r} must declare exactly one check primitive, found {present or 'none'}"
        )
    skip = record.get("skip")
    if skip is not None and skip not in SKIP_CONDITIONS:
        raise RuleSetError(f"rule {name!r}: unknown skip condition {skip!r}")
    return Rule(
        name=name,
        object=record["object"],
        description=record.get("description", name),
        check=_parse_check(name, present[0], record[present[0]]),
        disabled=bool(record.get("disabled", False)),
        skip=skip,
    )


def parse_rules(data: Any) -> RuleSet:
    """Validate *data* against the rule-file contract and build a ``RuleSet``."""
    try:
        validate_internal(data, RULES_SCHEMA)
    except jsonschema.ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise RuleSetError(f"invalid lint rule file at {location}: {exc.message}") from exc

    rules = tuple(parse_rule(r) for r in data["rules"])
    names = [r.name for r in rules]
    dupes = sorted({n for n in names if names.count(n) > 1})
    if dupes:
        raise RuleSetError(f"duplicate lint rule names: {dupes}")
    return RuleSet(rules=rules)


def load_rules(path: Path | str | None = None) -> RuleSet:
    """Load a rule file; ``None`` loads the bundled catalog."""
    if path is None:
        text = (resources.files("oas_audit") / DEFAULT_RULES_RESOURCE).read_text(encoding="utf-8")
    else:
        text = Path(path).read_text(encoding="utf-8")
    return parse_rules(yaml.safe_load(text))
