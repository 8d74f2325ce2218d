"""External process helpers for the install/test phase."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol

import structlog

from pkgsentinel.exceptions import ProcessTimeoutError

log = structlog.get_logger("pkgsentinel.engine")


class ProcessRunner(Protocol):
    """Signature shared by :func:`run_process` and test doubles."""

    async def __call__(
        self,
        command: str,
        args: list[str],
        cwd: Path,
        *,
        show_output: bool = False,
        timeout: float | None = None,
    ) -> int: ...


async def run_process(
    command: str,
    args: list[str],
    cwd: Path,
    *,
    show_output: bool = False,
    timeout: float | None = None,
) -> int:
    """Run *command* in *cwd* and return its exit code.

    Output goes to the controlling terminal when *show_output* is set and is
    discarded otherwise. Raises ``ProcessTimeoutError`` (after killing the
    process) when *timeout* elapses, and ``OSError`` when the command cannot
    be spawned.
    """
    stream = None if show_output else asyncio.subprocess.DEVNULL
    proc = await asyncio.create_subprocess_exec(
        command,
        *args,
        cwd=str(cwd),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=stream,
        stderr=stream,
    )
    try:
        return await asyncio.wait_for(proc.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        cmdline = " ".join([command, *args])
        log.warning("process.timeout", command=cmdline, cwd=str(cwd), timeout=timeout)
        raise ProcessTimeoutError(cmdline, timeout or 0) from None


async def detect_runtime_version(command: tuple[str, ...] = ("node", "--version")) -> str | None:
    """Return the runtime version (``v18.17.0`` -> ``18.17.0``), or None."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as exc:
        log.warning("process.runtime_unavailable", command=" ".join(command), error=str(exc))
        return None
    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=30)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        log.warning("process.runtime_unavailable", command=" ".join(command), error="timeout")
        return None
    if proc.returncode != 0:
        log.warning("process.runtime_unavailable", command=" ".join(command), exit=proc.returncode)
        return None
    version = stdout.decode(errors="replace").strip()
    return version.removeprefix("v") or None
