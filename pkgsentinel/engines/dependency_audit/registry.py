"""Async npm registry client and the latest-version resolver."""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from pkgsentinel.core.config import DEFAULT_REGISTRY_URL
from pkgsentinel.engines.dependency_audit.models import UNKNOWN_VERSION, Candidate
from pkgsentinel.engines.dependency_audit.versions import pick_latest
from pkgsentinel.exceptions import RegistryError

log = structlog.get_logger("pkgsentinel.engine")

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds


class NpmRegistryClient:
    """Thin async wrapper around the npm registry's package documents."""

    def __init__(
        self,
        base_url: str = DEFAULT_REGISTRY_URL,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            # abbreviated metadata: versions without readmes
            headers={"Accept": "application/vnd.npm.install-v1+json"},
            timeout=timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> NpmRegistryClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def query_versions(self, name: str) -> list[str]:
        """Return every published version of *name*, in document order.

        Raises ``RegistryError`` for unknown packages, HTTP failures, and
        payloads without a ``versions`` object.
        """
        path = "/" + self.encode_name(name)
        try:
            response = await self._request_with_retry(path)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code if exc.response is not None else "?"
            raise RegistryError(f"registry lookup for {name} failed: HTTP {status}") from exc
        except httpx.HTTPError as exc:
            raise RegistryError(f"registry lookup for {name} failed: {exc}") from exc

        try:
            data: Any = response.json()
        except ValueError as exc:
            raise RegistryError(f"registry returned invalid JSON for {name}") from exc
        versions = data.get("versions") if isinstance(data, dict) else None
        if not isinstance(versions, dict):
            raise RegistryError(f"registry document for {name} has no versions")
        return list(versions.keys())

    @staticmethod
    def encode_name(name: str) -> str:
        """Scoped names keep their ``@`` but escape the slash."""
        return quote(name, safe="@")

    # ── internal ───────────────────────────────────────────────────────────

    async def _request_with_retry(self, path: str) -> httpx.Response:
        """GET with exponential backoff on 5xx and timeout errors."""
        last_exc: Exception | None = None
        for attempt in range(_MAX_RETRIES):
            try:
                resp = await self._client.get(path)

                if resp.status_code < 500:
                    resp.raise_for_status()
                    return resp

                log.warning(
                    "registry.server_error",
                    path=path,
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = httpx.HTTPStatusError(
                    f"{resp.status_code}", request=resp.request, response=resp
                )
            except httpx.TimeoutException as exc:
                log.warning(
                    "registry.timeout",
                    path=path,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = exc

            if attempt < _MAX_RETRIES - 1:
                delay = _RETRY_BASE_DELAY * (2**attempt)
                await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]


async def resolve_latest(client: NpmRegistryClient, candidate: Candidate) -> Candidate:
    """Attach the newest published version to *candidate* (best effort).

    Candidates without a name are returned untouched. Registry failures
    degrade to ``UNKNOWN_VERSION``.
    """
    if not candidate.name:
        return candidate
    try:
        published = await client.query_versions(candidate.name)
    except RegistryError as exc:
        log.warning("registry.lookup_failed", name=candidate.name, error=str(exc))
        candidate.latest_version = UNKNOWN_VERSION
        return candidate

    candidate.latest_version = pick_latest(published)
    log.debug("registry.latest", name=candidate.name, latest=candidate.latest_version)
    return candidate
