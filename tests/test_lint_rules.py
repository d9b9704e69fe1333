"""Rule-file parsing: the bundled catalog, primitives and malformed files."""

from __future__ import annotations

import pytest

from oas_audit.errors import RuleSetError
from oas_audit.lint.rules import (
    AnyOf,
    IfThen,
    NotContain,
    PatternCheck,
    PropertyCount,
    PropertyEquals,
    Truthy,
    load_rules,
    parse_rule,
    parse_rules,
)


def _rule(**fields) -> dict:
    record = {"name": "r", "object": "info"}
    record.update(fields)
    return record


class TestBundledCatalog:
    def test_loads(self):
        ruleset = load_rules()
        assert "reference-no-other-properties" in ruleset.names()
        assert "operation-tags" in ruleset.names()

    def test_disabled_rules_excluded(self):
        ruleset = load_rules()
        assert "pathItem-summary-or-description" in ruleset.names()
        assert "pathItem-summary-or-description" not in [r.name for r in ruleset.enabled()]

    def test_callback_skip(self):
        rule = {r.name: r for r in load_rules().rules}["operation-tags"]
        assert rule.skip == "isCallback"


class TestPrimitives:
    def test_truthy_single_and_list(self):
        assert parse_rule(_rule(truthy="contact")).check == Truthy(("contact",))
        assert parse_rule(_rule(truthy=["name", "url"])).check == Truthy(("name", "url"))

    def test_pattern(self):
        check = parse_rule(_rule(pattern={"property": "$ref", "value": "^[a-z]+$", "omit": "#", "split": "/"})).check
        assert isinstance(check, PatternCheck)
        assert check.omit == "#" and check.split == "/"
        assert check.regex.pattern == "^[a-z]+$"

    def test_or(self):
        assert parse_rule(_rule(**{"or": ["summary", "description"]})).check == AnyOf(("summary", "description"))

    def test_not_contain_property_or_properties(self):
        one = parse_rule(_rule(notContain={"property": "description", "value": "<script"})).check
        many = parse_rule(_rule(notContain={"properties": ["title", "description"], "value": "eval("})).check
        assert one == NotContain(("description",), "<script")
        assert many.properties == ("title", "description")

    def test_if_then_plain(self):
        check = parse_rule(_rule(**{"if": {"property": "properties", "then": {"property": "type", "value": "object"}}})).check
        assert check == IfThen("properties", PropertyEquals("type", "object"))

    def test_if_then_nested_primitive(self):
        check = parse_rule(_rule(**{"if": {"property": "a", "then": {"truthy": "b"}}})).check
        assert check == IfThen("a", Truthy(("b",)))

    def test_properties(self):
        assert parse_rule(_rule(properties=1)).check == PropertyCount(1)

    def test_defaults(self):
        rule = parse_rule(_rule(truthy="contact"))
        assert rule.description == "r"
        assert rule.disabled is False
        assert rule.skip is None


class TestMalformed:
    def test_no_primitive(self):
        with pytest.raises(RuleSetError, match="exactly one check primitive"):
            parse_rule(_rule())

    def test_two_primitives(self):
        with pytest.raises(RuleSetError, match="exactly one check primitive"):
            parse_rule(_rule(truthy="a", xor=["b", "c"]))

    def test_unknown_skip(self):
        with pytest.raises(RuleSetError, match="unknown skip condition"):
            parse_rule(_rule(truthy="a", skip="isWebhook"))

    def test_bad_regex(self):
        with pytest.raises(RuleSetError, match="invalid pattern"):
            parse_rule(_rule(pattern={"property": "name", "value": "(["}))

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"rules": "nope"},
            {"rules": [{"name": "r"}]},
            {"rules": [_rule(truthy="a", severity="high")]},
            {"rules": [_rule(properties=-1)]},
        ],
    )
    def test_contract_violations(self, data):
        with pytest.raises(RuleSetError, match="invalid lint rule file"):
            parse_rules(data)

    def test_duplicate_names(self):
        with pytest.raises(RuleSetError, match="duplicate lint rule names"):
            parse_rules({"rules": [_rule(truthy="a"), _rule(truthy="b")]})


def test_load_rules_from_file(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(
        "rules:\n"
        "- name: info-description\n"
        "  object: info\n"
        "  truthy: description\n",
        encoding="utf-8",
    )
    ruleset = load_rules(path)
    assert ruleset.names() == ["info-description"]
