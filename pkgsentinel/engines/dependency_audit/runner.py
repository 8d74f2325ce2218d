"""AuditRunner — discovery, then the registry phase, then the install/test phase."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import structlog

from pkgsentinel.core.config import AuditSettings
from pkgsentinel.engines.dependency_audit.executor import TestExecutor
from pkgsentinel.engines.dependency_audit.models import Candidate, CandidateState, Report
from pkgsentinel.engines.dependency_audit.process import detect_runtime_version
from pkgsentinel.engines.dependency_audit.registry import NpmRegistryClient, resolve_latest
from pkgsentinel.engines.dependency_audit.tree import discover_tree, flatten
from pkgsentinel.exceptions import NoManifestError

log = structlog.get_logger("pkgsentinel.engine")

T = TypeVar("T")


class AuditRunner:
    """Orchestration layer: tree provider -> registry phase -> test phase.

    The two phases never overlap; each keeps at most ``settings.parallel``
    candidates in flight.
    """

    def __init__(
        self,
        settings: AuditSettings,
        executor: TestExecutor | None = None,
        client_factory: Callable[[], NpmRegistryClient] | None = None,
    ) -> None:
        self._settings = settings
        self._executor = executor or TestExecutor(settings)
        self._client_factory = client_factory or (
            lambda: NpmRegistryClient(settings.registry_url, settings.registry_timeout)
        )
        self.states: list[CandidateState | None] = []

    async def run(self, root: Path | str) -> Report:
        """Audit the project at *root*.

        Raises ``NoManifestError`` when nothing can be discovered; every other
        failure ends up inside the returned report.
        """
        root = Path(root).resolve()
        tree = discover_tree(root, max_depth=self._settings.max_depth)
        if self._executor.base_dir is None:
            self._executor.base_dir = root.parent if root.is_file() else root
        return await self.run_candidates(flatten(tree))

    async def run_candidates(self, candidates: list[Candidate]) -> Report:
        if not candidates:
            raise NoManifestError("no package.json files discovered")

        log.info("audit.started", candidates=len(candidates), parallel=self._settings.parallel)
        report = Report()

        if self._settings.check_registry:
            await self._resolve_phase(candidates)

        if self._executor.runtime_version is None:
            self._executor.runtime_version = await detect_runtime_version()

        self.states = await self._test_phase(report, candidates)
        log.info(
            "audit.finished",
            modules=len(report.modules),
            errors=report.error_count(),
            warnings=report.warning_count(),
        )
        return report

    # ── phases ────────────────────────────────────────────────────────────

    async def _resolve_phase(self, candidates: list[Candidate]) -> None:
        async with self._client_factory() as client:

            async def _resolve_one(candidate: Candidate) -> Candidate:
                return await resolve_latest(client, candidate)

            await self._bounded(candidates, _resolve_one)

    async def _test_phase(
        self, report: Report, candidates: list[Candidate]
    ) -> list[CandidateState | None]:
        async def _test_one(candidate: Candidate) -> CandidateState | None:
            try:
                return await self._executor.run_tests(report, candidate)
            except Exception as exc:
                log.exception("audit.candidate_failed", path=str(candidate.manifest_path))
                report.errors.append(f"{candidate.manifest_path}: {exc}")
                return None

        return await self._bounded(candidates, _test_one)

    async def _bounded(
        self, candidates: list[Candidate], fn: Callable[[Candidate], Awaitable[T]]
    ) -> list[T]:
        sem = asyncio.Semaphore(self._settings.parallel)

        async def _run_one(candidate: Candidate) -> T:
            async with sem:
                return await fn(candidate)

        tasks = [_run_one(c) for c in candidates]
        return list(await asyncio.gather(*tasks))
