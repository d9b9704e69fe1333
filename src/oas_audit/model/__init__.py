"""Enums shared across the validators and the lint layer."""

from __future__ import annotations

from enum import Enum


class ObjectKind(str, Enum):
    """Closed set of OpenAPI 3.0 object kinds.

    Used both for validator dispatch and as the ``object`` target of lint
    rules.  Values match the names used in rule files.
    """

    OPENAPI = "openapi"
    INFO = "info"
    LICENSE = "license"
    CONTACT = "contact"
    SERVER = "server"
    SERVER_VARIABLE = "serverVariable"
    PATHS = "paths"
    PATH_ITEM = "pathItem"
    OPERATION = "operation"
    PARAMETER = "parameter"
    REQUEST_BODY = "requestBody"
    CONTENT = "content"
    EXAMPLE = "example"
    RESPONSE = "response"
    HEADER = "header"
    LINK = "link"
    CALLBACK = "callback"
    SCHEMA = "schema"
    REFERENCE = "reference"
    EXTERNAL_DOCS = "externalDocs"
    TAG = "tag"
    SECURITY = "security"
    SECURITY_SCHEME = "securityScheme"
    COMPONENTS = "components"


class RefKind(str, Enum):
    """Where a ``$ref`` points."""

    INTERNAL = "internal"
    EXTERNAL = "external"


class SchemaPass(str, Enum):
    """When the structural (meta-schema) pass runs relative to the semantic pass."""

    BEFORE = "before"
    AFTER = "after"
    BOTH = "both"
    NONE = "none"

    @property
    def runs_before(self) -> bool:
        return self in (SchemaPass.BEFORE, SchemaPass.BOTH)

    @property
    def runs_after(self) -> bool:
        return self in (SchemaPass.AFTER, SchemaPass.BOTH)
