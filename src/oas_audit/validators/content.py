"""Content maps, media type objects and examples."""

from __future__ import annotations

import re
from typing import Any

from oas_audit.core.context import RunState
from oas_audit.core.refs import is_ref, validate_reference_node, validate_url
from oas_audit.core.schema_walk import walk_schema
from oas_audit.model import ObjectKind
from oas_audit.validators.common import Servers, require_mapping, require_type, restrict_keys

# RFC 6838 section 4.2, type "/" subtype
_MEDIA_TYPE_RE = re.compile(r"^[a-zA-Z0-9!#$%^&*_\-+{}|'.`~]+/[a-zA-Z0-9!#$%^&*_\-+{}|'.`~]+")

EXAMPLE_KEYS = ("summary", "description", "value", "externalValue")
MEDIA_TYPE_KEYS = ("schema", "example", "examples", "encoding")


def check_example(example: Any, servers: Servers, state: RunState) -> None:
    require_mapping(example, state, "Example")
    require_type(example, "summary", str, state)
    require_type(example, "description", str, state)
    if "value" in example:
        state.require("externalValue" not in example, "Example cannot have both value and externalValue")
    if "externalValue" in example:
        validate_url(example["externalValue"], servers, state, "examples..externalValue")
    restrict_keys(example, EXAMPLE_KEYS, state, "Example object")
    state.lint(ObjectKind.EXAMPLE, example, "example")


def check_examples(examples: Any, servers: Servers, state: RunState) -> None:
    """Validate an ``examples`` map; reference entries are linted, not followed."""
    with state.at("examples"):
        require_mapping(examples, state, "examples")
        for name, example in examples.items():
            with state.at(name):
                if is_ref(example):
                    validate_reference_node(example, state)
                    state.lint(ObjectKind.REFERENCE, example, "$ref")
                else:
                    check_example(example, servers, state)


def check_media_type(name: str, media: Any, servers: Servers, state: RunState) -> None:
    if not state.options.lenient_media_types:
        state.require(bool(_MEDIA_TYPE_RE.match(name)), "media-type should match RFC6838 format")
    require_mapping(media, state, "Media type")
    if "schema" in media:
        with state.at("schema"):
            walk_schema(media["schema"], state)
    if "example" in media:
        state.require("examples" not in media, "Media type cannot have both example and examples")
    if "examples" in media:
        check_examples(media["examples"], servers, state)
    if "encoding" in media:
        with state.at("encoding"):
            require_mapping(media["encoding"], state, "encoding")
    restrict_keys(media, MEDIA_TYPE_KEYS, state, "mediaType object")


def check_content(content: Any, servers: Servers, state: RunState) -> None:
    with state.at("content"):
        require_mapping(content, state, "content")
        for name, media in content.items():
            with state.at(name):
                check_media_type(str(name), media, servers, state)
