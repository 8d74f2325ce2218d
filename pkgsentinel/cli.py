"""CLI entry point: pkgsentinel.

Usage:
    pkgsentinel                          # audit the project in the current directory
    pkgsentinel path/to/project -w -p 2  # show warnings, two tasks at a time
    pkgsentinel --package-json app/package.json --no-tests
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import sys
from pathlib import Path

import click

from pkgsentinel import __version__
from pkgsentinel.core.config import AuditSettings
from pkgsentinel.core.logging import setup_logging
from pkgsentinel.engines.dependency_audit.runner import AuditRunner
from pkgsentinel.exceptions import NoManifestError
from pkgsentinel.render import dump_report, exit_code, render_report


def _build_settings(
    parallel: int | None,
    test_output: bool,
    no_registry: bool,
    no_tests: bool,
    max_depth: int | None,
) -> AuditSettings:
    """Environment first, then command-line overrides."""
    try:
        settings = AuditSettings.from_env()
    except ValueError as e:
        click.echo(f"Error: invalid PKGSENTINEL_* setting: {e}", err=True)
        sys.exit(1)

    overrides: dict[str, object] = {
        "show_output": test_output,
        "check_registry": not no_registry,
        "run_tests": not no_tests,
    }
    if parallel is not None:
        overrides["parallel"] = parallel
    if max_depth is not None:
        overrides["max_depth"] = max_depth
    return dataclasses.replace(settings, **overrides)


@click.command()
@click.argument("path", required=False, default=".", type=click.Path(exists=True))
@click.option("-a", "--all", "show_all", is_flag=True, help="Show every module, not only those with findings.")
@click.option("-l", "--license", "show_license", is_flag=True, help="Show each module's license.")
@click.option("-p", "--parallel", type=click.IntRange(min=1), default=None, help="Concurrent tasks (default 5).")
@click.option("-t", "--test-output", is_flag=True, help="Forward install/test output (clearer with -p 1).")
@click.option("-v", "--verbose", is_flag=True, help="Log what pkgsentinel is doing.")
@click.option("-w", "--warnings", "show_warnings", is_flag=True, help="Show warnings and count them in the exit code.")
@click.option(
    "--package-json",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Audit the project owning this package.json.",
)
@click.option("--no-registry", is_flag=True, help="Skip latest-version lookups.")
@click.option("--no-tests", is_flag=True, help="Inspect manifests only; never run install/test.")
@click.option("--max-depth", type=click.IntRange(min=0), default=None, help="Limit dependency depth.")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON.")
@click.option("--dump", type=click.Path(dir_okay=False), default=None, help="Also write the JSON report to a file.")
@click.version_option(__version__, prog_name="pkgsentinel")
def main(
    path: str,
    show_all: bool,
    show_license: bool,
    parallel: int | None,
    test_output: bool,
    verbose: bool,
    show_warnings: bool,
    package_json: str | None,
    no_registry: bool,
    no_tests: bool,
    max_depth: int | None,
    as_json: bool,
    dump: str | None,
) -> None:
    """Audit every package in an npm dependency tree."""
    setup_logging(verbose)
    settings = _build_settings(parallel, test_output, no_registry, no_tests, max_depth)

    root = Path(package_json).parent if package_json else Path(path)
    runner = AuditRunner(settings)
    try:
        report = asyncio.run(runner.run(root))
    except NoManifestError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if dump:
        dump_report(report, dump)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        click.echo(
            render_report(
                report,
                show_all=show_all,
                show_warnings=show_warnings,
                show_license=show_license,
            )
        )

    sys.exit(exit_code(report, include_warnings=show_warnings))


if __name__ == "__main__":
    main()
