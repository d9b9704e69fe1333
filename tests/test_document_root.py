"""Whole-document runs: version gate, root object, info, tags, components."""

from __future__ import annotations

import copy

import pytest

from oas_audit import validate_document
from oas_audit.core.runner import check_version
from oas_audit.errors import DocumentVersionError, SemanticError, StructuralError
from oas_audit.model.run_result import ValidationResult


def _error(semantic, doc, **options) -> SemanticError:
    with pytest.raises(SemanticError) as exc:
        semantic(doc, **options)
    return exc.value


class TestVersionGate:
    @pytest.mark.parametrize(
        "doc",
        [
            [],
            {"swagger": "2.0", "info": {}, "paths": {}},
            {"openapi": "3.1.0", "info": {}, "paths": {}},
            {"openapi": 3.0, "info": {}, "paths": {}},
            {"info": {}, "paths": {}},
        ],
    )
    def test_rejected(self, doc):
        with pytest.raises(DocumentVersionError):
            check_version(doc)

    def test_rejected_before_any_pass(self):
        with pytest.raises(DocumentVersionError, match="Swagger 2.0"):
            validate_document({"swagger": "2.0"})

    @pytest.mark.parametrize("version", ["3.0.0", "3.0.3"])
    def test_accepted(self, ping_doc, version):
        ping_doc["openapi"] = version
        check_version(ping_doc)


class TestFullRun:
    def test_minimal_document(self, ping_doc):
        result = validate_document(ping_doc)
        assert isinstance(result, ValidationResult)
        assert result.valid
        assert result.warnings == []
        assert result.findings == []
        assert result.context == []

    def test_input_not_modified(self, ping_doc):
        before = copy.deepcopy(ping_doc)
        validate_document(ping_doc, lint=True)
        assert ping_doc == before

    def test_structural_pass_runs_first(self, ping_doc):
        ping_doc["definitions"] = {}
        with pytest.raises(StructuralError) as exc:
            validate_document(ping_doc)
        assert exc.value.violations

    def test_structural_violations_sorted(self, ping_doc):
        ping_doc["info"] = {"title": 1, "version": 2}
        with pytest.raises(StructuralError) as exc:
            validate_document(ping_doc)
        paths = [v.path for v in exc.value.violations]
        assert paths == sorted(paths)

    def test_structural_after_only(self, ping_doc):
        ping_doc["definitions"] = {}
        with pytest.raises(SemanticError):
            validate_document(ping_doc, schema_pass="after")


class TestRoot:
    def test_legacy_property(self, semantic, ping_doc):
        ping_doc["basePath"] = "/v1"
        err = _error(semantic, ping_doc)
        assert err.message == "OpenAPI 3.0 documents cannot have property basePath"
        assert err.path == "#"

    def test_unknown_property(self, semantic, ping_doc):
        ping_doc["webhooks"] = {}
        err = _error(semantic, ping_doc)
        assert err.message == "OpenAPI object cannot have additionalProperty: webhooks"

    def test_extensions_allowed(self, semantic, ping_doc):
        ping_doc["x-logo"] = {"url": "logo.png"}
        assert semantic(ping_doc).valid

    def test_paths_required(self, semantic, ping_doc):
        del ping_doc["paths"]
        assert _error(semantic, ping_doc).message == "OpenAPI document must have paths"

    def test_root_external_docs(self, semantic, ping_doc):
        ping_doc["externalDocs"] = {"description": "d"}
        err = _error(semantic, ping_doc)
        assert err.message == "externalDocs must have a url"
        assert err.path == "#/externalDocs"


class TestInfo:
    def test_title_type(self, semantic, ping_doc):
        ping_doc["info"]["title"] = 5
        err = _error(semantic, ping_doc)
        assert err.message == "title should be of type string"
        assert err.path == "#/info"

    def test_contact_email(self, semantic, ping_doc):
        ping_doc["info"]["contact"] = {"email": "nobody"}
        err = _error(semantic, ping_doc)
        assert err.message == "Contact email must be a valid email address"
        assert err.path == "#/info/contact"

    def test_license_url(self, semantic, ping_doc):
        ping_doc["info"]["license"] = {"name": "MIT", "url": "https://opensource.org/licenses/MIT"}
        assert semantic(ping_doc).valid
        ping_doc["info"]["license"] = {"url": "https://opensource.org/licenses/MIT"}
        assert _error(semantic, ping_doc).message == "license must have a name"

    def test_license_url_lint(self, semantic, ping_doc):
        ping_doc["info"]["license"] = {"name": "MIT", "url": "https://gruntjs.com/license"}
        result = semantic(ping_doc, lint=True)
        hits = [f.path for f in result.findings if f.rule == "license-apimatic-bug"]
        assert hits == ["#/info/license"]

    def test_relative_terms_of_service(self, semantic, ping_doc):
        ping_doc["servers"] = [{"url": "https://api.example.org/v1/"}]
        ping_doc["info"]["termsOfService"] = "terms"
        assert semantic(ping_doc).valid


class TestTags:
    def test_unique_names(self, semantic, ping_doc):
        ping_doc["tags"] = [{"name": "pets"}, {"name": "store"}, {"name": "pets"}]
        err = _error(semantic, ping_doc)
        assert err.message == "Tag names must be unique [pets]"
        assert err.path == "#/tags/2"

    def test_tag_lint_key(self, semantic, ping_doc):
        ping_doc["tags"] = [{"name": "pets"}]
        result = semantic(ping_doc, lint=True)
        tag_findings = [f for f in result.findings if f.rule == "tag-description"]
        assert [(f.path, f.key) for f in tag_findings] == [("#/tags/0", "pets")]


class TestComponents:
    def test_bad_component_name(self, semantic, ping_doc):
        ping_doc["components"] = {"schemas": {"Pet Store": {"type": "object"}}}
        err = _error(semantic, ping_doc)
        assert err.message == "component name invalid [Pet Store]"

    def test_anonymous_request_body_warning(self, semantic, ping_doc):
        ping_doc["components"] = {
            "requestBodies": {"requestBody1": {"content": {"application/json": {"schema": {"type": "object"}}}}}
        }
        result = semantic(ping_doc)
        assert result.warnings == ["Anonymous requestBody: requestBody1"]

    def test_request_body_component_needs_content(self, semantic, ping_doc):
        ping_doc["components"] = {"requestBodies": {"Pet": {"description": "d"}}}
        err = _error(semantic, ping_doc)
        assert err.message == "requestBody must have content"
        assert err.path == "#/components/requestBodies/Pet"

    def test_schema_components_walked(self, semantic, ping_doc):
        ping_doc["components"] = {"schemas": {"Pet": {"type": "object", "properties": {"tags": {"type": "array"}}}}}
        err = _error(semantic, ping_doc)
        assert err.path == "#/components/schemas/Pet/properties/tags"


class TestReferences:
    def _doc(self, ping_doc, ref_node):
        ping_doc["components"] = {"schemas": {"Pet": {"type": "object"}}}
        ping_doc["paths"]["/ping"]["get"]["responses"]["200"]["content"] = {
            "application/json": {"schema": ref_node}
        }
        return ping_doc

    def test_sibling_properties_are_a_lint_finding(self, semantic, ping_doc):
        doc = self._doc(ping_doc, {"$ref": "#/components/schemas/Pet", "description": "d"})
        result = semantic(doc, lint=True)
        rules = [f.rule for f in result.findings]
        assert "reference-no-other-properties" in rules

    def test_sibling_properties_rejected_when_strict(self, semantic, ping_doc):
        doc = self._doc(ping_doc, {"$ref": "#/components/schemas/Pet", "description": "d"})
        with pytest.raises(SemanticError, match="cannot have other properties"):
            semantic(doc, strict_refs=True)

    def test_dangling_reference(self, semantic, ping_doc):
        doc = self._doc(ping_doc, {"$ref": "#/components/schemas/Cat"})
        err = _error(semantic, doc)
        assert err.message == "Cannot resolve reference: #/components/schemas/Cat"
        assert err.path == "#/paths/~1ping/get/responses/200/content/application~1json/schema"


def test_result_report(semantic, ping_doc):
    report = semantic(ping_doc, lint=True).to_dict()
    assert report["schema_version"] == "validation_result_v1"
    assert report["valid"] is True
    assert report["summary"]["findings_total"] == len(report["findings"])
    assert sum(report["summary"]["by_rule"].values()) == len(report["findings"])
