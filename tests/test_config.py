"""ValidationOptions defaults, coercion and environment overrides."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from oas_audit.core.config import ValidationOptions
from oas_audit.model import SchemaPass


def test_defaults():
    opts = ValidationOptions()
    assert opts.schema_pass is SchemaPass.BOTH
    assert opts.lint is False
    assert opts.resolve is False
    assert opts.lenient_media_types is True
    assert opts.strict_refs is False
    assert opts.deep_cycles is False


def test_frozen():
    with pytest.raises(FrozenInstanceError):
        ValidationOptions().lint = True  # type: ignore[misc]


def test_coercion():
    opts = ValidationOptions(schema_pass="AFTER", lint_rules="rules.yaml", openapi_schema="oas.json")
    assert opts.schema_pass is SchemaPass.AFTER
    assert opts.lint_rules == Path("rules.yaml")
    assert opts.openapi_schema == Path("oas.json")


def test_invalid_schema_pass():
    with pytest.raises(ValueError):
        ValidationOptions(schema_pass="sometimes")


@pytest.mark.parametrize(
    "value, runs_before, runs_after",
    [("before", True, False), ("after", False, True), ("both", True, True), ("none", False, False)],
)
def test_schema_pass_flags(value, runs_before, runs_after):
    mode = SchemaPass(value)
    assert (mode.runs_before, mode.runs_after) == (runs_before, runs_after)


class TestFromEnv:
    def test_booleans_and_strings(self):
        opts = ValidationOptions.from_env(
            {
                "OAS_AUDIT_LINT": "yes",
                "OAS_AUDIT_DEEP_CYCLES": "1",
                "OAS_AUDIT_LENIENT_MEDIA_TYPES": "false",
                "OAS_AUDIT_ORIGIN": "https://api.example.org/",
                "OAS_AUDIT_SCHEMA_PASS": "before",
            }
        )
        assert opts.lint is True
        assert opts.deep_cycles is True
        assert opts.lenient_media_types is False
        assert opts.origin == "https://api.example.org/"
        assert opts.schema_pass is SchemaPass.BEFORE

    def test_overrides_win(self):
        opts = ValidationOptions.from_env({"OAS_AUDIT_LINT": "true"}, lint=False)
        assert opts.lint is False

    def test_unrelated_variables_ignored(self):
        assert ValidationOptions.from_env({"LINT": "true"}) == ValidationOptions()
