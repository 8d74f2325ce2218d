"""Module inspector — dedup by (name, version) and fold in manifest findings."""

from __future__ import annotations

from typing import Any

import structlog

from pkgsentinel.engines.dependency_audit.checks import (
    ATTRIBUTE_CHECKLIST,
    DEPENDENCY_SECTIONS,
    check_attribute,
    check_dependency_versions,
    check_engine,
    check_semver,
)
from pkgsentinel.engines.dependency_audit.models import (
    NO_VERSION,
    ModuleVersionReport,
    Report,
)

log = structlog.get_logger("pkgsentinel.engine")


def manifest_version(manifest: dict[str, Any]) -> str:
    """The dedup version for *manifest*; ``NO_VERSION`` when absent or empty."""
    version = manifest.get("version")
    if not version:
        return NO_VERSION
    return str(version)


def inspect_module(
    manifest: dict[str, Any] | None,
    report: Report,
    *,
    runtime_version: str | None = None,
) -> bool:
    """Inspect one manifest and return whether it should be tested.

    A (name, version) pair already in *report* only has its reference counts
    bumped and is never testable a second time. Concurrent callers must hold
    ``report.lock(name, version)``.
    """
    if not manifest or not manifest.get("name"):
        log.debug("inspector.unnamed_manifest")
        return False

    name = str(manifest["name"])
    version = manifest_version(manifest)
    module = report.module(name)

    existing = module.versions.get(version)
    if existing is not None:
        module.ref_count += 1
        existing.ref_count += 1
        return False

    mreport = ModuleVersionReport(version=version)
    module.versions[version] = mreport
    module.ref_count += 1

    description = manifest.get("description")
    if module.description is None and description:
        module.description = str(description)

    check_engine(manifest, runtime_version, mreport)
    for path, required in ATTRIBUTE_CHECKLIST:
        check_attribute(manifest, path, required, mreport)
    for section in DEPENDENCY_SECTIONS:
        check_dependency_versions(manifest, section, mreport)
    if version == NO_VERSION:
        mreport.attributes["version"] = NO_VERSION
    check_semver(version, mreport)

    return mreport.testable
