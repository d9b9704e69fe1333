"""OpenAPI path template helpers.

Positional normalization so template variable names do not affect path
identity:

    /items/{id}      -> /items/{0}
    /a/{x}/b/{y}     -> /a/{0}/b/{1}

Two paths with the same normalized shape are ambiguous for routing.
"""
from __future__ import annotations

import itertools
import re

_PLACEHOLDER_RE = re.compile(r"\{(.+?)\}")

# Placeholders starting with this prefix are runtime expressions in callback
# URLs ({$request.body#/url}), not path parameters.
CALLBACK_EXPRESSION_PREFIX = "$"


def template_placeholders(template: str) -> list[str]:
    """Return placeholder names in order of appearance (duplicates kept)."""
    return _PLACEHOLDER_RE.findall(template)


def normalize_path_template(path: str) -> str:
    """Replace each ``{name}`` with its position: ``/a/{x}/b/{y}`` -> ``/a/{0}/b/{1}``."""
    counter = itertools.count()
    return _PLACEHOLDER_RE.sub(lambda _m: "{" + str(next(counter)) + "}", path)


def has_mismatched_braces(path: str) -> bool:
    """True if braces remain after removing every well-formed placeholder."""
    stripped = _PLACEHOLDER_RE.sub("", path)
    return "{" in stripped or "}" in stripped
