"""Reference resolution and URL checks.

- ``classify``              internal vs external ``$ref``
- ``resolve_internal``      JSON Pointer navigation (``NOT_FOUND`` when absent)
- ``validate_reference_node`` shape of a ``{"$ref": ...}`` node
- ``check_self_loop``       one-hop cycle check; ``follow_reference_chain``
                            for multi-hop chains when ``deep_cycles`` is on
- ``validate_url``          syntactic URL check against servers in scope
- ``sweep_references``      whole-document pass over every ``$ref``
"""
from __future__ import annotations

import re
from typing import Any, Iterator, Mapping, Sequence
from urllib.parse import unquote, urljoin, urlsplit

from oas_audit.core.context import RunState, escape_segment
from oas_audit.model import RefKind

NOT_FOUND = object()

DEFAULT_ORIGIN = "http://localhost/"

_COMPONENT_NAME_RE = re.compile(r"^[a-zA-Z0-9.\-_]+$")
_HEADER_NAME_RE = re.compile(r"^[A-Za-z0-9!#\-$%&'*+\\.^_`|~]+$")
_COMPONENT_REF_RE = re.compile(r"^#/components/(?P<kind>[^/]+)/(?P<name>[^/]+)")
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")


def is_ref(node: Any) -> bool:
    return isinstance(node, Mapping) and "$ref" in node


def classify(ref: str) -> RefKind:
    """Internal iff there is no ``scheme://`` and nothing before the ``#``."""
    if _SCHEME_RE.match(ref):
        return RefKind.EXTERNAL
    if ref.split("#", 1)[0]:
        return RefKind.EXTERNAL
    return RefKind.INTERNAL


def unescape_segment(segment: str) -> str:
    return unquote(segment).replace("~1", "/").replace("~0", "~")


def pointer_segments(pointer: str) -> list[str]:
    fragment = pointer.split("#", 1)[1] if "#" in pointer else pointer
    if fragment in ("", "/"):
        return []
    return [unescape_segment(s) for s in fragment.lstrip("/").split("/")]


def resolve_internal(document: Any, pointer: str) -> Any:
    """Follow *pointer* (``#/a/b``) through *document*; ``NOT_FOUND`` if absent."""
    node = document
    for seg in pointer_segments(pointer):
        if isinstance(node, Mapping):
            if seg not in node:
                return NOT_FOUND
            node = node[seg]
        elif isinstance(node, list):
            if not seg.isdigit() or int(seg) >= len(node):
                return NOT_FOUND
            node = node[int(seg)]
        else:
            return NOT_FOUND
    return node


def is_valid_component_name(name: str) -> bool:
    return bool(_COMPONENT_NAME_RE.match(name))


def validate_component_name(name: str, state: RunState) -> None:
    state.require(is_valid_component_name(name), f"component name invalid [{name}]")


def validate_header_name(name: str) -> bool:
    """RFC 7230 ``token``."""
    return bool(_HEADER_NAME_RE.match(name))


def validate_reference_node(node: Mapping[str, Any], state: RunState) -> str:
    """Check a reference node's shape and return its pointer string."""
    ref = node.get("$ref")
    state.require(isinstance(ref, str) and ref != "", "$ref must be a non-empty string")
    state.require(
        not ref.startswith("#/definitions/"),
        f"$ref to #/definitions/ is not valid in OpenAPI 3.0 [{ref}]",
    )
    if state.options.strict_refs:
        extra = sorted(k for k in node if k != "$ref" and not str(k).startswith("x-"))
        state.require(not extra, f"Reference objects cannot have other properties: {extra}")
    return ref


def check_self_loop(pointer: str, location: str, state: RunState) -> None:
    """Fail when *pointer* addresses the node at *location* that holds it."""
    state.require(pointer.rstrip("/") != location.rstrip("/"), f"Circular reference [{pointer}]")


def follow_reference_chain(pointer: str, state: RunState) -> Any:
    """Follow internal refs through pure reference nodes, failing on a revisit."""
    seen: list[str] = []
    node: Any = {"$ref": pointer}
    while is_ref(node) and isinstance(node["$ref"], str) and classify(node["$ref"]) is RefKind.INTERNAL:
        target = node["$ref"]
        if target in seen:
            state.fail("Circular reference chain: " + " -> ".join(seen + [target]))
        seen.append(target)
        node = resolve_internal(state.document, target)
        if node is NOT_FOUND:
            state.fail(f"Cannot resolve reference: {target}")
    return node


def resolve_node(node: Any, state: RunState) -> Any:
    """Return the concrete node behind a reference node (or *node* itself).

    Chains of reference nodes are followed; a chain that revisits a pointer
    fails, as does a chain ending at an external reference.
    """
    if not is_ref(node):
        return node
    ref = validate_reference_node(node, state)
    target = follow_reference_chain(ref, state)
    if is_ref(target):
        state.fail(f"Cannot resolve reference: {target.get('$ref')}")
    return target


# ── URLs ────────────────────────────────────────────────────────────


def _base_url(servers: Sequence[Any] | None, state: RunState) -> str:
    for server in servers or ():
        if isinstance(server, Mapping) and isinstance(server.get("url"), str) and server["url"]:
            return server["url"]
    return state.options.origin or DEFAULT_ORIGIN


def validate_url(value: Any, servers: Sequence[Any] | None, state: RunState, what: str) -> str:
    """Check that *value* is a well-formed (possibly relative) URL.

    Relative values are joined to the first server URL in scope, then the
    configured origin.  Server URL templates (``{var}``) are allowed.
    """
    state.require(isinstance(value, str), f"Invalid {what}: must be a string")
    if not state.options.lax_urls:
        state.require(value != "", f"Invalid empty URL {what}")
    base = None if "://" in value else _base_url(servers, state)
    try:
        joined = urljoin(base, value) if base else value
        parts = urlsplit(joined)
        if "{" not in joined:
            _ = parts.port  # ValueError on a malformed port
    except ValueError as exc:
        state.fail(f"Invalid {what}: {exc}")
    if not state.options.lax_urls:
        state.require(not any(c.isspace() for c in value), f"Invalid {what}: contains whitespace")
        if parts.scheme in ("http", "https") and "://" in value:
            state.require(bool(parts.netloc), f"Invalid {what}: missing host")
    return joined


# ── whole-document sweep ────────────────────────────────────────────


def _walk_refs(node: Any, path: list[str], seen: set[int]) -> Iterator[tuple[str, list[str]]]:
    if isinstance(node, (Mapping, list)):
        if id(node) in seen:
            return
        seen.add(id(node))
    if isinstance(node, Mapping):
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield ref, path
        for k, v in node.items():
            if isinstance(v, (Mapping, list)):
                yield from _walk_refs(v, path + [escape_segment(k)], seen)
    elif isinstance(node, list):
        for i, v in enumerate(node):
            yield from _walk_refs(v, path + [str(i)], seen)


def sweep_references(state: RunState) -> int:
    """Check every ``$ref`` in the document; return how many were visited.

    Aliased sub-trees (shared or recursive objects) are visited once.
    """
    document = state.document
    servers = document.get("servers") if isinstance(document.get("servers"), list) else None
    count = 0
    for ref, segments in _walk_refs(document, [], set()):
        count += 1
        location = "#/" + "/".join(segments) if segments else "#"
        with state.pointer(location):
            state.require(
                not ref.startswith("#/definitions/"),
                f"$ref to #/definitions/ is not valid in OpenAPI 3.0 [{ref}]",
            )
            if classify(ref) is RefKind.INTERNAL:
                check_self_loop(ref, location, state)
                match = _COMPONENT_REF_RE.match(ref)
                if match:
                    validate_component_name(unescape_segment(match.group("name")), state)
                if state.options.deep_cycles:
                    follow_reference_chain(ref, state)
                elif resolve_internal(document, ref) is NOT_FOUND:
                    state.fail(f"Cannot resolve reference: {ref}")
            else:
                validate_url(ref, servers, state, "$ref")
    return count
