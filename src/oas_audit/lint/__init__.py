"""Declarative lint rules and the engine that evaluates them."""

from oas_audit.lint.engine import Linter, evaluate
from oas_audit.lint.rules import Rule, RuleSet, load_rules, parse_rules

__all__ = ["Linter", "Rule", "RuleSet", "evaluate", "load_rules", "parse_rules"]
