"""Manifest hygiene checks that append findings to a ModuleVersionReport."""

from __future__ import annotations

from typing import Any

import structlog

from pkgsentinel.engines.dependency_audit import versions
from pkgsentinel.engines.dependency_audit.manifest import get_property, normalize_key
from pkgsentinel.engines.dependency_audit.models import NO_VERSION, ModuleVersionReport

log = structlog.get_logger("pkgsentinel.engine")

# (dotted field path, required)
ATTRIBUTE_CHECKLIST: list[tuple[str, bool]] = [
    ("scripts.test", True),
    ("version", True),
    ("repository.url", False),
    ("bugs.url", False),
    ("homepage", False),
    ("license", False),
]

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies")

# npm spells it "engines"; some older manifests use "engine"
_ENGINE_PATHS = ("engines.node", "engine.node")


def check_attribute(
    manifest: dict[str, Any], path: str, required: bool, mreport: ModuleVersionReport
) -> None:
    """Record the field's value, or an error/warning when it is missing."""
    value = get_property(manifest, path, False)
    if value is False:
        target = mreport.errors if required else mreport.warnings
        target.append(f"manifest missing: {path}")
        return
    mreport.attributes[normalize_key(path)] = value


def check_dependency_versions(
    manifest: dict[str, Any], section: str, mreport: ModuleVersionReport
) -> None:
    """Flag wildcard and loose version constraints in *section*."""
    deps = manifest.get(section)
    if not isinstance(deps, dict):
        return

    for dep_name, constraint in deps.items():
        if not isinstance(constraint, str):
            continue
        constraint = constraint.strip()
        if constraint in ("", "*"):
            mreport.errors.append(f"{section} for {dep_name}'s version is a wildcard")
        elif constraint.startswith(">"):
            mreport.errors.append(f"{section} for {dep_name}'s version is {constraint}")
        elif constraint.startswith(("<", "~")):
            mreport.warnings.append(f"{section} for {dep_name}'s version is {constraint}")


def declared_engine(manifest: dict[str, Any]) -> str | None:
    for path in _ENGINE_PATHS:
        value = get_property(manifest, path, False)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def check_engine(
    manifest: dict[str, Any], runtime_version: str | None, mreport: ModuleVersionReport
) -> None:
    """A declared range that does not parse, or excludes the runtime, is an error."""
    constraint = declared_engine(manifest)
    if constraint is None:
        return
    mreport.attributes["engines_node"] = constraint
    if not versions.is_valid_range(constraint):
        mreport.errors.append(f"engines.node is not a valid range: {constraint}")
        return
    if runtime_version is None or not versions.is_valid(runtime_version):
        log.debug("checks.engine_unchecked", module=manifest.get("name"), constraint=constraint)
        return
    if not versions.satisfies(runtime_version, constraint):
        mreport.errors.append(
            f"engines.node requires {constraint}, running node {runtime_version}"
        )


def check_semver(version: str, mreport: ModuleVersionReport) -> None:
    if version != NO_VERSION and not versions.is_valid(version):
        mreport.errors.append("manifest: version is not semver-compliant")
