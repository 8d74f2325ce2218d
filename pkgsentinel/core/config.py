"""Audit settings — defaults, environment overrides, validation."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass

DEFAULT_PARALLEL = 5
DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"


def _env_float(key: str, default: float | None) -> float | None:
    raw = os.environ.get(key)
    if raw is None or raw == "":
        return default
    value = float(raw)
    # 0 disables the timeout
    return value if value > 0 else None


def _env_command(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(key)
    if not raw:
        return default
    return tuple(shlex.split(raw))


@dataclass(frozen=True)
class AuditSettings:
    """Knobs shared by the registry phase and the install/test phase."""

    parallel: int = DEFAULT_PARALLEL
    registry_url: str = DEFAULT_REGISTRY_URL
    registry_timeout: float = 15.0
    process_timeout: float | None = 600.0
    runtime_version: str | None = None
    install_command: tuple[str, ...] = ("npm", "install")
    test_command: tuple[str, ...] = ("npm", "test")
    check_registry: bool = True
    run_tests: bool = True
    show_output: bool = False
    max_depth: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.parallel, bool) or not isinstance(self.parallel, int):
            raise ValueError(f"parallel must be a positive integer, got {self.parallel!r}")
        if self.parallel < 1:
            raise ValueError(f"parallel must be a positive integer, got {self.parallel!r}")
        if not self.install_command or not self.test_command:
            raise ValueError("install and test commands must not be empty")
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth!r}")

    @classmethod
    def from_env(cls) -> AuditSettings:
        """Build settings from ``PKGSENTINEL_*`` environment variables."""
        return cls(
            parallel=int(os.environ.get("PKGSENTINEL_PARALLEL", DEFAULT_PARALLEL)),
            registry_url=os.environ.get("PKGSENTINEL_REGISTRY_URL", DEFAULT_REGISTRY_URL),
            registry_timeout=_env_float("PKGSENTINEL_REGISTRY_TIMEOUT", 15.0) or 15.0,
            process_timeout=_env_float("PKGSENTINEL_PROCESS_TIMEOUT", 600.0),
            runtime_version=os.environ.get("PKGSENTINEL_RUNTIME_VERSION") or None,
            install_command=_env_command("PKGSENTINEL_INSTALL_CMD", ("npm", "install")),
            test_command=_env_command("PKGSENTINEL_TEST_CMD", ("npm", "test")),
        )
