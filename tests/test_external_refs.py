"""External reference loading with an in-memory loader."""

from __future__ import annotations

import pytest

from oas_audit import validate_document
from oas_audit.core.external import ExternalResolver, join_location, resolve_external
from oas_audit.errors import SemanticError

COMMON = {
    "Pet": {
        "type": "object",
        "properties": {"owner": {"$ref": "#/Owner"}, "tag": {"$ref": "tags.yaml#/Tag"}},
    },
    "Owner": {"type": "string"},
}
TAGS = {"Tag": {"type": "string"}}


class _Loader:
    def __init__(self, docs: dict):
        self.docs = docs
        self.calls: list[str] = []

    def __call__(self, location: str):
        self.calls.append(location)
        if location not in self.docs:
            raise FileNotFoundError(location)
        return self.docs[location]


def _doc_with(schema_ref: str) -> dict:
    return {
        "openapi": "3.0.0",
        "info": {"title": "t", "version": "1"},
        "paths": {
            "/pets": {
                "get": {
                    "responses": {
                        "200": {
                            "description": "ok",
                            "content": {"application/json": {"schema": {"$ref": schema_ref}}},
                        }
                    }
                }
            }
        },
        "components": {"schemas": {"Local": {"type": "integer"}}},
    }


def _schema(doc: dict) -> dict:
    return doc["paths"]["/pets"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]


@pytest.mark.parametrize(
    "base, target, expected",
    [
        ("specs/api.yaml", "common.yaml", "specs/common.yaml"),
        ("https://example.org/specs/api.yaml", "common.yaml", "https://example.org/specs/common.yaml"),
        ("specs/api.yaml", "https://example.org/x.yaml", "https://example.org/x.yaml"),
        (None, "common.yaml", "common.yaml"),
        ("specs/api.yaml", "", "specs/api.yaml"),
    ],
)
def test_join_location(base, target, expected):
    assert join_location(base, target) == expected


class TestResolve:
    def test_inlines_fragment_and_nested_refs(self):
        loader = _Loader({"specs/common.yaml": COMMON, "specs/tags.yaml": TAGS})
        doc = _doc_with("common.yaml#/Pet")
        resolved = resolve_external(doc, "specs/api.yaml", loader)
        schema = _schema(resolved)
        assert schema["properties"]["owner"] == {"type": "string"}
        assert schema["properties"]["tag"] == {"type": "string"}
        assert _schema(doc) == {"$ref": "common.yaml#/Pet"}

    def test_local_refs_left_for_semantic_pass(self):
        doc = _doc_with("#/components/schemas/Local")
        resolved = resolve_external(doc, "api.yaml", _Loader({}))
        assert _schema(resolved) == {"$ref": "#/components/schemas/Local"}

    def test_each_document_loaded_once(self):
        loader = _Loader({"common.yaml": COMMON, "tags.yaml": TAGS})
        doc = _doc_with("common.yaml#/Pet")
        doc["components"]["schemas"]["Other"] = {"$ref": "common.yaml#/Owner"}
        resolver = ExternalResolver("api.yaml", loader)
        resolver.resolve(doc)
        assert loader.calls == ["common.yaml", "tags.yaml"]

    def test_missing_document(self):
        with pytest.raises(SemanticError) as exc:
            resolve_external(_doc_with("missing.yaml#/Pet"), "api.yaml", _Loader({}))
        assert exc.value.message.startswith("Cannot load external reference missing.yaml")
        assert exc.value.path == "#/paths/~1pets/get/responses/200/content/application~1json/schema"

    def test_missing_fragment(self):
        with pytest.raises(SemanticError, match="Cannot resolve reference: common.yaml#/Cat"):
            resolve_external(_doc_with("common.yaml#/Cat"), "api.yaml", _Loader({"common.yaml": COMMON}))

    def test_circular_reference_left_in_place(self):
        loop = {"Node": {"type": "object", "properties": {"next": {"$ref": "#/Node"}}}}
        resolved = resolve_external(_doc_with("loop.yaml#/Node"), "api.yaml", _Loader({"loop.yaml": loop}))
        schema = _schema(resolved)
        assert schema["properties"]["next"] == {"$ref": "loop.yaml#/Node"}


def test_resolve_option_in_full_run():
    loader = _Loader({"common.yaml": COMMON, "tags.yaml": TAGS})
    result = validate_document(
        _doc_with("common.yaml#/Pet"),
        resolve=True,
        source="api.yaml",
        schema_pass="none",
        loader=loader,
    )
    assert result.valid


def test_external_refs_unresolved_without_option():
    result = validate_document(_doc_with("common.yaml#/Pet"), schema_pass="none")
    assert result.valid
