"""Command line interface for OpenAPI to pydantic class generation."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .generator import SchemaLoadError, SettingsError, WriteError, run_generation
from .settings import GeneratorSettings, load_settings
from .verify import VerificationError, format_report

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class CLIError(RuntimeError):
    """Raised when CLI execution fails."""


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="openapi-class-generator",
        description="Generate one module of pydantic models from an OpenAPI YAML or JSON document",
    )
    parser.add_argument("--input", required=True, help="Path to an OpenAPI YAML or JSON file")
    parser.add_argument("--output", required=True, help="Output directory for the generated module")
    parser.add_argument("--config", help="Optional YAML or JSON generator settings file")
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace the generated module if it already exists",
    )
    parser.add_argument(
        "--no-format",
        action="store_true",
        help="Skip formatting the generated module with ruff",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Import the generated module and check it against the generated declarations",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )

    try:
        settings = _resolve_settings(config=args.config, no_format=bool(args.no_format))
        run = run_generation(
            input_path=Path(args.input),
            output_dir=Path(args.output),
            settings=settings,
            overwrite=bool(args.overwrite),
            verify=bool(args.verify),
        )
    except (SchemaLoadError, SettingsError, WriteError, VerificationError, CLIError) as exc:
        parser.error(str(exc))
        return 2

    for warning in run.result.warnings:
        print(f"Warning: {warning}")
    print(f"Wrote {run.output_path}")

    if run.verification_report is not None:
        print(format_report(run.verification_report))
        if run.verification_report.mismatch_count > 0:
            return 1

    return 0


def _resolve_settings(*, config: str | None, no_format: bool) -> GeneratorSettings:
    if config is None:
        settings = GeneratorSettings()
    else:
        config_path = Path(config)
        if not config_path.is_file():
            raise CLIError(f"Settings file not found: {config_path}")
        settings = load_settings(config_path)
    if no_format:
        settings = settings.model_copy(update={"format_output": False})
    return settings


if __name__ == "__main__":
    raise SystemExit(main())
