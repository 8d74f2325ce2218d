"""package.json access helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pkgsentinel.exceptions import ManifestParseError


def load_manifest(path: Path | str) -> dict[str, Any]:
    """Read and parse a package.json.

    Raises ``ManifestParseError`` when the file cannot be read, is not valid
    JSON, or does not hold a JSON object.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestParseError(str(path), str(exc)) from exc
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(str(path), f"invalid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ManifestParseError(str(path), "top-level value is not an object")
    return data


def get_property(obj: Any, dotted_path: str, default: Any = False) -> Any:
    """Walk *dotted_path* (e.g. ``scripts.test``) down nested mappings.

    Any missing key, or an intermediate value that is not a mapping, yields
    *default* instead of raising.
    """
    current = obj
    for part in dotted_path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def normalize_key(dotted_path: str) -> str:
    return dotted_path.replace(".", "_")
