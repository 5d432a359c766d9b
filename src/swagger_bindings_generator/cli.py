"""Command line interface for Swagger client-binding generation."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from .errors import GenerationError
from .generator import GeneratorOptions, run_generation
from .writer import WriteError


class CLIError(RuntimeError):
    """Raised when CLI arguments are unusable."""


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="swagger-bindings-generator",
        description="Generate typed Python client bindings from a Swagger 2.0 document",
    )
    parser.add_argument("--input", required=True, help="Path to a Swagger JSON or YAML file")
    parser.add_argument(
        "--output",
        help="File to write the generated module to (default: standard output)",
    )
    parser.add_argument(
        "--sub-namespace",
        help="Namespace tag carried on the schema model; must not be empty",
    )
    parser.add_argument(
        "--strip-operation-prefix",
        help="Prefix removed from operation ids before naming builders, e.g. Nakama_",
    )
    parser.add_argument(
        "--no-format",
        action="store_true",
        help="Skip running ruff format on the generated module",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def options_from_args(args: argparse.Namespace) -> GeneratorOptions:
    """Translate parsed arguments into generator options."""
    if args.sub_namespace is not None and not args.sub_namespace.strip():
        raise CLIError("--sub-namespace must not be empty")
    return GeneratorOptions(
        input_path=Path(args.input),
        output_path=Path(args.output) if args.output else None,
        sub_namespace=args.sub_namespace,
        operation_prefix=args.strip_operation_prefix or None,
        format_output=not args.no_format,
    )


def main(argv: list[str] | None = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run = run_generation(options_from_args(args))
    except (GenerationError, WriteError, CLIError) as exc:
        parser.error(str(exc))
        return 2

    for warning in run.result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
