"""CLI entry point for duhgen."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click

from . import __version__
from .errors import DuhGenError, SpecLoadError, ValidationFailed
from .lint import format_report, validate
from .loader import load_spec
from .pipeline import run
from .scaffold import add_endpoint_to_file, init_spec

DEFAULT_SPEC = "openapi.yaml"

EXIT_FAILURE = 2


def _display(path: Path) -> str:
    try:
        return os.path.relpath(path)
    except ValueError:
        return str(path)


@click.group()
@click.version_option(__version__, prog_name="duhgen")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """DUH-RPC tooling: lint OpenAPI specs and generate Go code from them."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("spec_path", default=DEFAULT_SPEC, type=click.Path(path_type=Path))
def lint(spec_path: Path):
    """Validate an OpenAPI spec for DUH-RPC compliance.

    Exits 0 when compliant, 1 when violations are found, 2 on load errors.
    """
    try:
        spec = load_spec(spec_path)
    except SpecLoadError as e:
        click.echo(f"Error: {e}")
        sys.exit(EXIT_FAILURE)

    result = validate(spec, str(spec_path))
    click.echo(format_report(result))
    sys.exit(0 if result.valid else 1)


@main.command()
@click.argument("spec_path", default=DEFAULT_SPEC, type=click.Path(path_type=Path))
@click.option("-p", "--package", "package_name", default=None, help="Go package name for generated code (default: api).")
@click.option("--output-dir", default=None, help="Directory for generated Go files (default: current directory).")
@click.option("--proto-path", default=None, help="Path of the generated .proto file (default: proto/v1/api.proto).")
@click.option("--proto-import", default=None, help="Go import path of the generated protobuf package.")
@click.option("--proto-package", default=None, help="Protobuf package name (default: derived from --proto-path).")
@click.option("--full", is_flag=True, help="Also scaffold daemon, service, tests and Makefile.")
def generate(
    spec_path: Path,
    package_name: str | None,
    output_dir: str | None,
    proto_path: str | None,
    proto_import: str | None,
    proto_package: str | None,
    full: bool,
):
    """Generate DUH-RPC server, client and proto artifacts from an OpenAPI spec.

    Exits 0 on success and 2 on any failure.
    """
    try:
        result = run(
            spec_path,
            package_name=package_name,
            output_dir=output_dir,
            proto_path=proto_path,
            proto_import=proto_import,
            proto_package=proto_package,
            full=full,
        )
    except ValidationFailed as e:
        click.echo(format_report(e.result))
        click.echo(f"Error: {e}")
        sys.exit(EXIT_FAILURE)
    except DuhGenError as e:
        click.echo(f"Error: {e}")
        sys.exit(EXIT_FAILURE)

    report = result.report
    click.echo(f"✓ Generated {len(report.written)} file(s) in {result.config.output_dir}")
    for path in report.written:
        click.echo(f"  - {_display(path)}")
    for path in report.skipped:
        click.echo(f"  (kept existing {_display(path)})")

    click.echo("")
    click.echo("Next steps:")
    click.echo("  1. Run 'buf generate' to generate protobuf code")
    click.echo("  2. Run 'go mod tidy' to update dependencies")
    if result.config.full:
        click.echo("  3. Run 'make test' to verify everything works")


@main.command("init")
@click.argument("spec_path", default=DEFAULT_SPEC, type=click.Path(path_type=Path))
def init_command(spec_path: Path):
    """Create a DUH-RPC compliant example OpenAPI spec.

    Exits 0 when created and 2 when the file exists or cannot be written.
    """
    try:
        init_spec(spec_path)
    except DuhGenError as e:
        click.echo(f"Error: {e}")
        sys.exit(EXIT_FAILURE)
    click.echo(f"✓ Created DUH-RPC compliant OpenAPI spec at {spec_path}")


@main.command("add")
@click.argument("path")
@click.argument("name")
@click.option("-f", "--file", "spec_path", default=DEFAULT_SPEC, type=click.Path(path_type=Path),
              help="OpenAPI spec to modify (default: openapi.yaml).")
def add_command(path: str, name: str, spec_path: Path):
    """Add a /v{N}/subject.method endpoint with NAMERequest and NAMEResponse schemas.

    Exits 0 when added and 2 on any error (bad path, missing file, duplicate).
    """
    try:
        add_endpoint_to_file(spec_path, path, name)
    except DuhGenError as e:
        click.echo(f"Error: {e}")
        sys.exit(EXIT_FAILURE)
    click.echo(f"✓ Added endpoint {path} to {spec_path}")
