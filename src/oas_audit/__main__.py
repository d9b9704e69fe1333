"""CLI entry-point for oas_audit.

Usage:
    python -m oas_audit <file>
    python -m oas_audit <file> --lint [--rules FILE] [--json]
    python -m oas_audit <file> --resolve [--origin URL]
    python -m oas_audit <file> --schema-pass before|after|both|none
    python -m oas_audit <file> --lax-urls --strict-media-types --strict-refs --deep-cycles
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml

from oas_audit import __version__
from oas_audit.api import validate_file
from oas_audit.core.config import ValidationOptions
from oas_audit.errors import (
    DocumentVersionError,
    RuleSetError,
    SemanticError,
    StructuralError,
)
from oas_audit.model import SchemaPass
from oas_audit.utils.exit_codes import ExitCode
from oas_audit.utils.json_norm import stable_json_dumps


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="oas-audit",
        description="Validate (and optionally lint) an OpenAPI 3.0 document.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("file", help="OpenAPI document (JSON or YAML)")
    p.add_argument("--lint", action="store_true", help="Run the lint rules alongside validation.")
    p.add_argument("--rules", metavar="FILE", default=None, help="Lint rule file (default: bundled catalog).")
    p.add_argument("--resolve", action="store_true", help="Load external $refs before validating.")
    p.add_argument(
        "--schema-pass",
        choices=[m.value for m in SchemaPass],
        default=None,
        help="When to run the structural meta-schema pass (default: both).",
    )
    p.add_argument("--origin", metavar="URL", default=None, help="Base URL for relative URLs.")
    p.add_argument("--lax-urls", action="store_true", help="Relax URL syntax checks.")
    p.add_argument(
        "--strict-media-types",
        action="store_true",
        help="Require media type keys to follow RFC 6838.",
    )
    p.add_argument("--strict-refs", action="store_true", help="Reject non-extension siblings of $ref.")
    p.add_argument("--deep-cycles", action="store_true", help="Detect multi-hop $ref cycles.")
    p.add_argument("--json", action="store_true", help="Emit a JSON report on stdout.")
    p.add_argument("--verbose", "-v", action="store_true", help="Log progress to stderr.")
    return p


def _options_from_args(args: argparse.Namespace) -> ValidationOptions:
    overrides: dict = {}
    if args.lint or args.rules:
        overrides["lint"] = True
    if args.rules:
        overrides["lint_rules"] = Path(args.rules)
    if args.schema_pass:
        overrides["schema_pass"] = SchemaPass(args.schema_pass)
    if args.origin:
        overrides["origin"] = args.origin
    # flags only ever turn behaviour on; environment defaults stay otherwise
    for flag, field_name, value in (
        ("resolve", "resolve", True),
        ("lax_urls", "lax_urls", True),
        ("strict_media_types", "lenient_media_types", False),
        ("strict_refs", "strict_refs", True),
        ("deep_cycles", "deep_cycles", True),
    ):
        if getattr(args, flag):
            overrides[field_name] = value
    return ValidationOptions.from_env(source=str(Path(args.file)), **overrides)


def _failure_report(kind: str, exc: Exception) -> dict:
    report: dict = {"valid": False, "error": {"kind": kind, "message": getattr(exc, "message", str(exc))}}
    if isinstance(exc, SemanticError):
        report["error"]["path"] = exc.path
    if isinstance(exc, StructuralError):
        report["error"]["violations"] = [v.to_dict() for v in exc.violations]
    return report


def main(argv: list[str] | None = None) -> int:
    """Entry-point; returns an ``ExitCode`` (0 valid, 1 invalid, 2 error)."""
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    path = Path(args.file)
    if not path.exists():
        print(f"error: file not found: {path}", file=sys.stderr)
        return ExitCode.ERROR

    try:
        result = validate_file(path, _options_from_args(args))
    except (DocumentVersionError, StructuralError, SemanticError) as exc:
        if args.json:
            sys.stdout.write(stable_json_dumps(_failure_report(type(exc).__name__, exc)))
        else:
            print(f"FAIL: {exc}", file=sys.stderr)
        return ExitCode.INVALID
    except (RuleSetError, yaml.YAMLError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return ExitCode.ERROR

    if args.json:
        sys.stdout.write(stable_json_dumps(result.to_dict()))
        return ExitCode.VALID

    for warning in result.warnings:
        print(f"warning: {warning}")
    for finding in result.findings:
        print(f"lint: {finding.path}: [{finding.rule}] {finding.message}")
    print(f"OK: {path} is a valid OpenAPI 3.0 document")
    return ExitCode.VALID


if __name__ == "__main__":
    raise SystemExit(main())
