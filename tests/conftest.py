"""Shared pytest fixtures for pkgsentinel tests (no network, no npm)."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from pkgsentinel.core.config import AuditSettings


def write_package(directory: Path, **fields) -> Path:
    """Write ``directory/package.json`` from keyword fields and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(fields), encoding="utf-8")
    return path


class FakeRunner:
    """Stands in for ``run_process``: records calls, returns scripted exit codes.

    ``codes`` maps ``(package dir name, first arg)``, e.g. ``("left", "install")``,
    to an exit code; anything unlisted exits 0.
    """

    def __init__(self, codes: dict[tuple[str, str], int] | None = None, delay: float = 0) -> None:
        self.codes = codes or {}
        self.delay = delay
        self.calls: list[tuple[str, tuple[str, ...], Path]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, command, args, cwd, *, show_output=False, timeout=None) -> int:
        self.calls.append((command, tuple(args), Path(cwd)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        step = args[0] if args else command
        return self.codes.get((Path(cwd).name, step), 0)

    def steps(self, step: str) -> list[Path]:
        return [cwd for _, args, cwd in self.calls if args and args[0] == step]


@pytest.fixture
def settings():
    return AuditSettings(runtime_version="18.17.0", check_registry=False)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def write_pkg():
    return write_package


@pytest.fixture
def diamond_project(tmp_path):
    """app -> (left, right) -> shared, with shared hoisted to the root."""
    root = tmp_path / "app"
    write_package(
        root,
        name="app",
        version="1.0.0",
        scripts={"test": "exit 0"},
        dependencies={"left": "^1.0.0", "right": "^1.0.0"},
    )
    modules = root / "node_modules"
    write_package(
        modules / "left",
        name="left",
        version="1.0.0",
        scripts={"test": "exit 0"},
        dependencies={"shared": "^2.0.0"},
    )
    write_package(
        modules / "right",
        name="right",
        version="1.0.0",
        scripts={"test": "exit 0"},
        dependencies={"shared": "^2.0.0"},
    )
    write_package(
        modules / "shared",
        name="shared",
        version="2.0.0",
        scripts={"test": "exit 0"},
    )
    return root
