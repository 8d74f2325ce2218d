"""Data models for the dependency audit engine."""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

NO_VERSION = "NO_VERSION"
UNKNOWN_VERSION = "?.?.?"


class CandidateState(str, Enum):
    """Terminal state of a single candidate after the install/test phase."""

    UNREADABLE = "unreadable"
    UNNAMED = "unnamed"
    SKIPPED = "skipped"
    NOT_TESTABLE = "not_testable"
    INSTALL_FAILED = "install_failed"
    TEST_PASSED = "test_passed"
    TEST_FAILED = "test_failed"


@dataclass
class Candidate:
    """A flattened reference to one package.json plus its parent's constraint."""

    manifest_path: Path
    constraint: str | None = None
    name: str | None = None
    latest_version: str | None = None  # written once by the registry phase


@dataclass(eq=False)
class TreeNode:
    """One node of a discovered dependency tree.

    ``children`` may share nodes (hoisted packages) and may even point back
    at an ancestor when the declarations are cyclic.
    """

    package_json: Path | None
    name: str | None = None
    dependencies: dict[str, str] = field(default_factory=dict)
    children: dict[str, TreeNode] = field(default_factory=dict)


@dataclass
class ModuleVersionReport:
    """Findings for one (name, version) pair."""

    version: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)
    ref_count: int = 1
    tests_run: bool = False  # an install/test was attempted
    tests_passing: bool = False
    dependency_chains: list[str] = field(default_factory=list)
    latest_version: str | None = None

    @property
    def testable(self) -> bool:
        return bool(self.attributes.get("scripts_test"))

    @property
    def license(self) -> Any:
        return self.attributes.get("license")


@dataclass
class ModuleReport:
    """All versions of one module name seen during a run."""

    name: str
    description: str | None = None
    ref_count: int = 0
    versions: dict[str, ModuleVersionReport] = field(default_factory=dict)


class Report:
    """Process-scoped aggregate of every finding.

    Entries are created once per (name, version) and never removed. Writers
    running concurrently must hold :meth:`lock` for the key they touch.
    """

    def __init__(self) -> None:
        self.modules: dict[str, ModuleReport] = {}
        self.errors: list[str] = []
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}

    def module(self, name: str) -> ModuleReport:
        """Return the name-level entry, creating it on first use."""
        mod = self.modules.get(name)
        if mod is None:
            mod = self.modules[name] = ModuleReport(name=name)
        return mod

    def get(self, name: str, version: str) -> ModuleVersionReport | None:
        mod = self.modules.get(name)
        if mod is None:
            return None
        return mod.versions.get(version)

    def lock(self, name: str, version: str) -> asyncio.Lock:
        """Lock guarding the check-then-create of one dedup key."""
        return self._locks.setdefault((name, version), asyncio.Lock())

    def version_reports(self) -> list[tuple[str, ModuleVersionReport]]:
        return [
            (name, vreport)
            for name, mod in self.modules.items()
            for vreport in mod.versions.values()
        ]

    def error_count(self) -> int:
        return len(self.errors) + sum(len(v.errors) for _, v in self.version_reports())

    def warning_count(self) -> int:
        return sum(len(v.warnings) for _, v in self.version_reports())

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable view of the whole report."""
        return {
            "errors": list(self.errors),
            "modules": {
                name: {
                    "description": mod.description,
                    "ref_count": mod.ref_count,
                    "versions": {ver: asdict(v) for ver, v in mod.versions.items()},
                }
                for name, mod in self.modules.items()
            },
        }
