"""Plain-text rendering, JSON dump, and exit-code policy for a finished Report."""

from __future__ import annotations

import json
from pathlib import Path

from pkgsentinel.engines.dependency_audit.models import ModuleVersionReport, Report


def render_report(
    report: Report,
    *,
    show_all: bool = False,
    show_warnings: bool = False,
    show_license: bool = False,
) -> str:
    """Render *report* as text.

    By default only versions with errors are listed; *show_warnings* adds
    versions with warnings, *show_all* lists every version.
    """
    lines: list[str] = []

    if report.errors:
        lines.append("Errors:")
        lines.extend(f"  {err}" for err in report.errors)
        lines.append("")

    shown = 0
    for name in sorted(report.modules):
        mod = report.modules[name]
        visible = [
            v
            for _, v in sorted(mod.versions.items())
            if show_all or v.errors or (show_warnings and v.warnings)
        ]
        if not visible:
            continue
        shown += 1
        header = f"{name} - {mod.description}" if mod.description else name
        lines.append(f"{header}  (referenced {mod.ref_count}x)")
        for vreport in visible:
            lines.append(f"  {_version_line(vreport, show_license)}")
            for chain in vreport.dependency_chains:
                lines.append(f"      via {chain}")
            for err in vreport.errors:
                lines.append(f"      error: {err}")
            if show_warnings:
                for warning in vreport.warnings:
                    lines.append(f"      warning: {warning}")
        lines.append("")

    total_versions = len(report.version_reports())
    summary = (
        f"Modules: {len(report.modules)} ({total_versions} versions, {shown} shown) | "
        f"Errors: {report.error_count()}"
    )
    if show_warnings:
        summary += f" | Warnings: {report.warning_count()}"
    lines.append(summary)
    return "\n".join(lines)


def _version_line(vreport: ModuleVersionReport, show_license: bool) -> str:
    if vreport.tests_passing:
        tests = "tests passing"
    elif not vreport.testable:
        tests = "no tests"
    elif vreport.tests_run:
        tests = "tests failing"
    else:
        tests = "tests not run"
    line = f"{vreport.version} {tests}"
    if vreport.latest_version:
        line += f" (latest: {vreport.latest_version})"
    if show_license and vreport.license:
        line += f" [license: {vreport.license}]"
    return line


def dump_report(report: Report, path: Path | str) -> None:
    """Write the whole report as JSON (debugging aid)."""
    Path(path).write_text(
        json.dumps(report.to_dict(), indent=2, default=str) + "\n", encoding="utf-8"
    )


def exit_code(report: Report, include_warnings: bool = False) -> int:
    """Error count, plus warnings when they are enabled; capped for the OS."""
    total = report.error_count()
    if include_warnings:
        total += report.warning_count()
    return min(total, 255)
