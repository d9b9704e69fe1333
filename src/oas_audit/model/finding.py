"""LintFinding: the normalized lint output for a single rule violation."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from . import ObjectKind


@dataclass(frozen=True, slots=True)
class LintFinding:
    """Immutable, non-fatal convention violation.

    ``path`` is the JSON Pointer of the object being linted when the rule
    failed; ``key`` is the property name it was reached under.
    """

    rule: str
    kind: ObjectKind
    path: str
    message: str
    key: str = ""
    fingerprint: str = ""

    # ── serialisation ───────────────────────────────────────────────

    def to_dict(self) -> dict:
        d: dict = {
            "rule": self.rule,
            "kind": self.kind.value,
            "path": self.path,
            "message": self.message,
            "fingerprint": self.fingerprint,
        }
        if self.key:
            d["key"] = self.key
        return d


def make_fingerprint(rule: str, kind: str, path: str) -> str:
    """Deterministic finding fingerprint: sha256(rule|kind|path)."""
    payload = "|".join([rule, kind, path])
    return "sha256:" + hashlib.sha256(payload.encode()).hexdigest()
