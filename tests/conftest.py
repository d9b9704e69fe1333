"""Shared document builders for the oas_audit test suite."""

from __future__ import annotations

import copy

import pytest

from oas_audit.api import validate_document
from oas_audit.core.config import ValidationOptions
from oas_audit.core.context import RunState
from oas_audit.lint.engine import Linter
from oas_audit.lint.rules import load_rules

PING_DOC = {
    "openapi": "3.0.0",
    "info": {"title": "Ping", "version": "1.0.0"},
    "paths": {
        "/ping": {
            "get": {"responses": {"200": {"description": "pong"}}},
        },
    },
}


@pytest.fixture
def ping_doc() -> dict:
    """A fresh copy of the smallest valid document."""
    return copy.deepcopy(PING_DOC)


@pytest.fixture
def make_state():
    """Factory: ``make_state(doc, **options)`` -> RunState (linter when lint=True)."""

    def _make(doc: dict | None = None, **options) -> RunState:
        opts = ValidationOptions(**options)
        linter = Linter(load_rules(opts.lint_rules)) if opts.lint else None
        return RunState.for_document(doc if doc is not None else copy.deepcopy(PING_DOC), opts, linter)

    return _make


@pytest.fixture
def semantic():
    """``semantic(doc, **options)``: validate with the structural pass off."""

    def _run(doc: dict, **options):
        options.setdefault("schema_pass", "none")
        return validate_document(doc, **options)

    return _run


@pytest.fixture
def with_paths():
    """Factory: ``with_paths(paths, **root_keys)`` -> document."""

    def _build(paths: dict, **root) -> dict:
        doc = copy.deepcopy(PING_DOC)
        doc["paths"] = paths
        doc.update(root)
        return doc

    return _build


def ok_op(**extra) -> dict:
    op = {"responses": {"200": {"description": "ok"}}}
    op.update(extra)
    return op


@pytest.fixture
def op():
    """Factory: ``op(**fields)`` -> operation with a 200 response."""
    return ok_op
