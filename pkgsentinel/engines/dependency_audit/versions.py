"""npm-compatible semantic version helpers (thin layer over node-semver)."""

from __future__ import annotations

import functools
from typing import Any

import nodesemver

from pkgsentinel.engines.dependency_audit.models import UNKNOWN_VERSION


def _clean(version: Any) -> str | None:
    """Strict parse after npm's normalization (surrounding space, leading ``=``)."""
    if not isinstance(version, str):
        return None
    text = version.strip().lstrip("=").strip()
    if not text:
        return None
    try:
        parsed = nodesemver.parse(text, False)
    except ValueError:
        return None
    return parsed.version if parsed is not None else None


def is_valid(version: Any) -> bool:
    """Strict semver validity, as ``npm`` applies it to ``version`` fields."""
    return _clean(version) is not None


def is_newer(candidate: Any, installed: Any) -> bool:
    """True iff *candidate* is strictly greater than *installed*.

    Anything that is not a valid version (including the unknown sentinel)
    compares as not newer.
    """
    a, b = _clean(candidate), _clean(installed)
    if a is None or b is None:
        return False
    return nodesemver.gt(a, b, False)


def is_valid_range(constraint: str) -> bool:
    try:
        return nodesemver.valid_range(constraint, False) is not None
    except ValueError:
        return False


def satisfies(version: str, constraint: str) -> bool:
    """Range check with npm semantics; an unparsable range never matches."""
    cleaned = _clean(version)
    if cleaned is None or not is_valid_range(constraint):
        return False
    try:
        return bool(nodesemver.satisfies(cleaned, constraint, False))
    except ValueError:
        return False


def pick_latest(versions: list[str]) -> str:
    """Return the greatest valid version, or ``UNKNOWN_VERSION`` if none."""
    valid = [v for v in versions if is_valid(v)]
    if not valid:
        return UNKNOWN_VERSION
    return max(
        valid,
        key=functools.cmp_to_key(lambda a, b: nodesemver.compare(_clean(a), _clean(b), False)),
    )
