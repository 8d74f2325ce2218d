"""TestExecutor — inspect one candidate, then run its install and test steps."""

from __future__ import annotations

from pathlib import Path

import structlog

from pkgsentinel.core.config import AuditSettings
from pkgsentinel.engines.dependency_audit import versions
from pkgsentinel.engines.dependency_audit.inspector import inspect_module, manifest_version
from pkgsentinel.engines.dependency_audit.manifest import load_manifest
from pkgsentinel.engines.dependency_audit.models import (
    Candidate,
    CandidateState,
    ModuleVersionReport,
    Report,
)
from pkgsentinel.engines.dependency_audit.process import ProcessRunner, run_process
from pkgsentinel.engines.dependency_audit.tree import dependency_chain
from pkgsentinel.exceptions import ManifestParseError, ProcessTimeoutError

log = structlog.get_logger("pkgsentinel.engine")


class TestExecutor:
    """Runs the per-candidate part of the install/test phase.

    Every outcome is written into the shared :class:`Report`; nothing is
    raised for parse failures or failing commands.
    """

    __test__ = False  # not a pytest class

    def __init__(
        self,
        settings: AuditSettings,
        runner: ProcessRunner = run_process,
        *,
        runtime_version: str | None = None,
        base_dir: Path | None = None,
    ) -> None:
        self._settings = settings
        self._runner = runner
        self.runtime_version = runtime_version or settings.runtime_version
        self.base_dir = base_dir

    async def run_tests(self, report: Report, candidate: Candidate) -> CandidateState:
        """Process one candidate and return the state it ended in."""
        try:
            manifest = load_manifest(candidate.manifest_path)
        except ManifestParseError as exc:
            report.errors.append(f"{candidate.manifest_path}: could not parse file")
            log.error("executor.unreadable", path=str(candidate.manifest_path), error=exc.reason)
            return CandidateState.UNREADABLE

        if not manifest.get("name"):
            log.debug("executor.unnamed", path=str(candidate.manifest_path))
            return CandidateState.UNNAMED

        name = str(manifest["name"])
        version = manifest_version(manifest)

        async with report.lock(name, version):
            first_seen = report.get(name, version) is None
            testable = inspect_module(manifest, report, runtime_version=self.runtime_version)
            mreport = report.modules[name].versions[version]
            mreport.dependency_chains.append(
                dependency_chain(candidate.manifest_path, self.base_dir)
            )
            self._record_latest(mreport, candidate, version)

        if not first_seen:
            return CandidateState.SKIPPED
        if not testable or not self._settings.run_tests:
            return CandidateState.NOT_TESTABLE

        return await self._install_and_test(name, mreport, candidate.manifest_path.parent)

    @staticmethod
    def _record_latest(mreport: ModuleVersionReport, candidate: Candidate, version: str) -> None:
        if mreport.latest_version is not None or candidate.latest_version is None:
            return
        mreport.latest_version = candidate.latest_version
        if versions.is_newer(candidate.latest_version, version):
            mreport.warnings.append(
                f"version is outdated: {version} < {candidate.latest_version}"
            )

    async def _install_and_test(
        self, name: str, mreport: ModuleVersionReport, cwd: Path
    ) -> CandidateState:
        mreport.tests_run = True
        install_code = await self._step(self._settings.install_command, cwd, mreport)
        if install_code != 0:
            log.info("executor.install_failed", module=name, exit=install_code)
            return CandidateState.INSTALL_FAILED

        test_code = await self._step(self._settings.test_command, cwd, mreport)
        if test_code != 0:
            log.info("executor.tests_failed", module=name, exit=test_code)
            return CandidateState.TEST_FAILED

        mreport.tests_passing = True
        log.info("executor.tests_passed", module=name, version=mreport.version)
        return CandidateState.TEST_PASSED

    async def _step(
        self, command: tuple[str, ...], cwd: Path, mreport: ModuleVersionReport
    ) -> int | None:
        """Run one step; failures are appended to ``mreport.errors``."""
        cmdline = " ".join(command)
        try:
            code = await self._runner(
                command[0],
                list(command[1:]),
                cwd,
                show_output=self._settings.show_output,
                timeout=self._settings.process_timeout,
            )
        except ProcessTimeoutError as exc:
            mreport.errors.append(f"tests failing: {exc}")
            return None
        except OSError as exc:
            mreport.errors.append(f"tests failing: could not run {cmdline}: {exc}")
            return None

        if code != 0:
            mreport.errors.append(f"tests failing: {cmdline} exited with code {code}")
        return code
