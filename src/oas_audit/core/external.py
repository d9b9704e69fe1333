"""External reference loading, run before the semantic pass.

``resolve_external`` returns a deep copy of the document in which every
external ``$ref`` node has been replaced by the fragment it points at.
Referenced documents are loaded once per run through a *loader* callable
(``location -> parsed document``); the default handles local files and
``http(s)`` URLs, parsing both with ``yaml.safe_load``.

Internal refs inside a loaded document are resolved against that document.
A ref that is reached again while it is still being expanded is left in
place; the semantic pass reports it.
"""

from __future__ import annotations

import copy
import logging
import urllib.request
from pathlib import Path
from typing import Any, Callable, Mapping
from urllib.parse import urljoin, urlsplit

import yaml

from oas_audit.core.context import escape_segment
from oas_audit.core.refs import NOT_FOUND, classify, resolve_internal
from oas_audit.errors import SemanticError
from oas_audit.model import RefKind

_logger = logging.getLogger(__name__)

Loader = Callable[[str], Any]

FETCH_TIMEOUT = 30.0
_URL_SCHEMES = ("http", "https", "file")


def _is_url(location: str) -> bool:
    return urlsplit(location).scheme in _URL_SCHEMES


def join_location(base: str | None, target: str) -> str:
    """Resolve *target* (the part of a ref before ``#``) against *base*."""
    if not target:
        return base or ""
    if _is_url(target) or base is None:
        return target
    if _is_url(base):
        return urljoin(base, target)
    path = Path(target)
    if path.is_absolute():
        return str(path)
    return str(Path(base).parent / path)


def default_loader(location: str) -> Any:
    """Load and parse a JSON or YAML document from a file path or URL."""
    if _is_url(location):
        _logger.info("fetching %s", location)
        with urllib.request.urlopen(location, timeout=FETCH_TIMEOUT) as resp:
            text = resp.read().decode("utf-8")
    else:
        _logger.info("loading %s", location)
        text = Path(location).read_text(encoding="utf-8")
    return yaml.safe_load(text)


class ExternalResolver:
    """Per-run resolver; holds the document cache for one resolution phase."""

    def __init__(self, source: str | None = None, loader: Loader | None = None) -> None:
        self.source = source
        self.loader = loader or default_loader
        self.cache: dict[str, Any] = {}

    def load(self, location: str, path: str) -> Any:
        if location not in self.cache:
            try:
                self.cache[location] = self.loader(location)
            except Exception as exc:  # loader errors of any kind end the run
                raise SemanticError(f"Cannot load external reference {location}: {exc}", path) from exc
        return self.cache[location]

    def resolve(self, document: Mapping[str, Any]) -> Any:
        root = copy.deepcopy(document)
        if self.source is not None:
            self.cache[self.source] = root
        return self._expand(root, self.source, root, "#", ())

    def _expand(
        self,
        node: Any,
        location: str | None,
        owner: Any,
        path: str,
        active: tuple[str, ...],
    ) -> Any:
        if isinstance(node, list):
            for i, item in enumerate(node):
                node[i] = self._expand(item, location, owner, f"{path}/{i}", active)
            return node
        if not isinstance(node, dict):
            return node

        ref = node.get("$ref")
        if isinstance(ref, str):
            internal = classify(ref) is RefKind.INTERNAL
            # refs local to the top document stay for the semantic pass
            if not (internal and location == self.source):
                return self._replace(ref, internal, location, owner, path, active, node)

        for key in list(node):
            node[key] = self._expand(
                node[key], location, owner, f"{path}/{escape_segment(key)}", active
            )
        return node

    def _replace(
        self,
        ref: str,
        internal: bool,
        location: str | None,
        owner: Any,
        path: str,
        active: tuple[str, ...],
        node: dict,
    ) -> Any:
        target, _, fragment = ref.partition("#")
        target_location = location if internal else join_location(location, target)
        key = f"{target_location}#{fragment}"
        if key in active:
            _logger.debug("leaving circular external reference %s at %s", ref, path)
            node["$ref"] = key
            return node

        document = owner if internal else self.load(target_location, path)
        fragment_node = resolve_internal(document, "#" + fragment)
        if fragment_node is NOT_FOUND:
            raise SemanticError(f"Cannot resolve reference: {ref}", path)
        return self._expand(
            copy.deepcopy(fragment_node), target_location, document, path, active + (key,)
        )


def resolve_external(
    document: Mapping[str, Any],
    source: str | None = None,
    loader: Loader | None = None,
) -> Any:
    """Return a copy of *document* with external references inlined."""
    resolver = ExternalResolver(source, loader)
    resolved = resolver.resolve(document)
    _logger.debug("external resolution loaded %d document(s)", len(resolver.cache))
    return resolved
