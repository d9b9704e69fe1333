"""Security requirements against declared security schemes."""

from __future__ import annotations

import pytest

from oas_audit.errors import SemanticError

SCHEMES = {
    "key": {"type": "apiKey", "name": "X-Key", "in": "header"},
    "basicAuth": {"type": "http", "scheme": "basic"},
    "oidc": {"type": "openIdConnect", "openIdConnectUrl": "https://id.example.org/.well-known"},
    "oauth": {
        "type": "oauth2",
        "flows": {
            "implicit": {
                "authorizationUrl": "https://auth.example.org/authorize",
                "scopes": {"read:pets": "read"},
            },
            "clientCredentials": {
                "tokenUrl": "https://auth.example.org/token",
                "scopes": {"write:pets": "write"},
            },
        },
    },
}


@pytest.fixture
def secured(ping_doc):
    def _build(security=None, schemes=None, op_security=None) -> dict:
        ping_doc["components"] = {"securitySchemes": schemes if schemes is not None else SCHEMES}
        if security is not None:
            ping_doc["security"] = security
        if op_security is not None:
            ping_doc["paths"]["/ping"]["get"]["security"] = op_security
        return ping_doc

    return _build


def _error(semantic, doc) -> SemanticError:
    with pytest.raises(SemanticError) as exc:
        semantic(doc)
    return exc.value


class TestRequirements:
    def test_valid_requirements(self, semantic, secured):
        doc = secured(
            security=[{"key": []}, {"oauth": ["read:pets", "write:pets"]}, {"oidc": ["openid"]}],
            op_security=[{}, {"basicAuth": []}],
        )
        assert semantic(doc).valid

    def test_unknown_scheme(self, semantic, secured):
        err = _error(semantic, secured(security=[{"key": []}, {"token": []}]))
        assert err.message == "Could not dereference securityScheme token"
        assert err.path == "#/security/1"

    def test_scopes_on_api_key(self, semantic, secured):
        err = _error(semantic, secured(security=[{"key": ["admin"]}]))
        assert err.message == "Security scheme key of type apiKey must not list scopes"

    def test_undeclared_oauth_scope(self, semantic, secured):
        err = _error(semantic, secured(security=[{"oauth": ["delete:pets"]}]))
        assert err.message == "Scope delete:pets is not declared by security scheme oauth"

    def test_operation_level_checked(self, semantic, secured):
        err = _error(semantic, secured(op_security=[{"basicAuth": ["x"]}]))
        assert err.message == "Security scheme basicAuth of type http must not list scopes"
        assert err.path == "#/paths/~1ping/get/security/0"

    def test_scopes_must_be_list(self, semantic, secured):
        err = _error(semantic, secured(security=[{"key": "none"}]))
        assert err.message == "Security requirement key must be an array of scopes"

    @pytest.mark.parametrize("scope", [{"bad": 1}, ["read:pets"], 7])
    def test_scope_entries_must_be_strings(self, semantic, secured, scope):
        err = _error(semantic, secured(security=[{"oauth": [scope]}]))
        assert err.message == f"Scope {scope!r} of security scheme oauth must be a string"
        assert err.path == "#/security/0"

    def test_aliased_scheme_scopes(self, semantic, secured):
        schemes = {**SCHEMES, "alias": {"$ref": "#/components/securitySchemes/oauth"}}
        assert semantic(secured(security=[{"alias": ["read:pets"]}], schemes=schemes)).valid

        err = _error(semantic, secured(security=[{"alias": ["admin"]}], schemes=schemes))
        assert err.message == "Scope admin is not declared by security scheme alias"

    def test_aliased_api_key_rejects_scopes(self, semantic, secured):
        schemes = {**SCHEMES, "alias": {"$ref": "#/components/securitySchemes/key"}}
        err = _error(semantic, secured(security=[{"alias": ["admin"]}], schemes=schemes))
        assert err.message == "Security scheme alias of type apiKey must not list scopes"


class TestSchemes:
    @pytest.mark.parametrize(
        "scheme, message",
        [
            ({"type": "basic"}, "Security scheme basic should be http with scheme basic"),
            ({"type": "token"}, "Invalid security scheme type token"),
            ({"type": "http"}, "http security scheme must have a scheme"),
            (
                {"type": "http", "scheme": "basic", "bearerFormat": "JWT"},
                "bearerFormat is only valid with scheme bearer",
            ),
            ({"type": "apiKey", "name": "k", "in": "body"}, "Invalid apiKey location body"),
            ({"type": "apiKey", "in": "header"}, "apiKey security scheme must have a name"),
            ({"type": "oauth2", "flow": "implicit"}, "oauth2 security scheme must use flows, not flow"),
            ({"type": "openIdConnect"}, "openIdConnect security scheme must have an openIdConnectUrl"),
        ],
    )
    def test_invalid(self, semantic, secured, scheme, message):
        assert _error(semantic, secured(schemes={"s": scheme})).message == message

    def test_bearer_format(self, semantic, secured):
        doc = secured(schemes={"jwt": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}})
        assert semantic(doc).valid

    @pytest.mark.parametrize(
        "flows, message",
        [
            ({"magic": {"scopes": {}}}, "Unknown flow type: magic"),
            ({"implicit": {"scopes": {}}}, "implicit flow must have an authorizationUrl"),
            ({"password": {"scopes": {}}}, "password flow must have a tokenUrl"),
            (
                {"clientCredentials": {"tokenUrl": "https://a.example.org/t", "authorizationUrl": "https://a"}},
                "clientCredentials flow must not have an authorizationUrl",
            ),
            ({"password": {"tokenUrl": "https://a.example.org/t"}}, "password flow must have scopes"),
        ],
    )
    def test_flows(self, semantic, secured, flows, message):
        err = _error(semantic, secured(schemes={"o": {"type": "oauth2", "flows": flows}}))
        assert err.message == message
        assert err.path.startswith("#/components/securitySchemes/o/flows/")

    def test_scheme_reference_is_not_followed(self, semantic, secured):
        doc = secured(schemes={"key": SCHEMES["key"], "alias": {"$ref": "#/components/securitySchemes/key"}})
        assert semantic(doc).valid

    def test_relative_urls_use_origin(self, semantic, secured):
        flows = {"password": {"tokenUrl": "/token", "scopes": {}}}
        doc = secured(schemes={"o": {"type": "oauth2", "flows": flows}})
        assert semantic(doc, origin="https://api.example.org/").valid
