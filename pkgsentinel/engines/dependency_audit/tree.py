"""Dependency tree discovery and flattening."""

from __future__ import annotations

from pathlib import Path

import structlog

from pkgsentinel.engines.dependency_audit.manifest import load_manifest
from pkgsentinel.engines.dependency_audit.models import Candidate, TreeNode
from pkgsentinel.exceptions import ManifestParseError, NoManifestError

log = structlog.get_logger("pkgsentinel.engine")

MANIFEST_NAME = "package.json"
MODULES_DIR = "node_modules"


# ── flattening ───────────────────────────────────────────────────────────


def flatten(node: TreeNode, accumulator: list[Candidate] | None = None) -> list[Candidate]:
    """Pre-order, depth-first walk of *node* into a list of candidates.

    Children are visited in dependency-declaration order. A node without a
    manifest ends its branch. A manifest already on the current path (a
    cyclic declaration) is not entered again; a shared subtree reached by
    another route is emitted again for that route.
    """
    if accumulator is None:
        accumulator = []
    _descend(node, None, node.name, accumulator, frozenset())
    return accumulator


def _descend(
    node: TreeNode,
    constraint: str | None,
    name: str | None,
    accumulator: list[Candidate],
    ancestors: frozenset[Path],
) -> None:
    if node.package_json is None:
        return
    if node.package_json in ancestors:
        log.debug("tree.cycle_skipped", path=str(node.package_json), name=name)
        return

    accumulator.append(Candidate(manifest_path=node.package_json, constraint=constraint, name=name))

    ancestors = ancestors | {node.package_json}
    for dep_name, dep_constraint in node.dependencies.items():
        child = node.children.get(dep_name)
        if child is None or child.package_json is None:
            continue
        _descend(child, dep_constraint, dep_name, accumulator, ancestors)


# ── discovery ────────────────────────────────────────────────────────────


def discover_tree(root: Path | str, max_depth: int | None = None) -> TreeNode:
    """Build the dependency tree of the project at *root* from ``node_modules``.

    Dependencies are located with Node's lookup rule: the package's own
    ``node_modules`` first, then every ancestor's, up to *root*. Nodes are
    shared per package directory, so hoisted packages appear once and
    cyclic declarations terminate. Children are resolved down to
    *max_depth* levels below the root (unbounded when ``None``); a package
    is expanded from the shallowest depth it is reached at, whatever the
    declaration order.

    Raises ``NoManifestError`` if *root* has no package.json.
    """
    root = Path(root).resolve()
    if root.is_file() and root.name == MANIFEST_NAME:
        root = root.parent
    if not (root / MANIFEST_NAME).is_file():
        raise NoManifestError(f"no {MANIFEST_NAME} found in {root}")

    cache: dict[Path, TreeNode] = {}
    expanded_at: dict[Path, int] = {}
    return _build_node(root, root, None, 0, max_depth, cache, expanded_at)


def _build_node(
    pkg_dir: Path,
    root: Path,
    name: str | None,
    depth: int,
    max_depth: int | None,
    cache: dict[Path, TreeNode],
    expanded_at: dict[Path, int],
) -> TreeNode:
    node = cache.get(pkg_dir)
    if node is None:
        node = cache[pkg_dir] = _load_node(pkg_dir, name, depth == 0)

    # Already expanded at this depth or shallower: nothing new below it.
    previous = expanded_at.get(pkg_dir)
    if previous is not None and (max_depth is None or previous <= depth):
        return node
    expanded_at[pkg_dir] = depth

    if node.package_json is None:
        return node
    if max_depth is not None and depth >= max_depth:
        return node

    for dep_name in node.dependencies:
        child_dir = _resolve_package_dir(dep_name, pkg_dir, root)
        if child_dir is None:
            log.debug("tree.dependency_missing", parent=str(pkg_dir), dependency=dep_name)
            continue
        node.children[dep_name] = _build_node(
            child_dir, root, dep_name, depth + 1, max_depth, cache, expanded_at
        )
    return node


def _load_node(pkg_dir: Path, name: str | None, is_root: bool) -> TreeNode:
    manifest_path = pkg_dir / MANIFEST_NAME
    node = TreeNode(package_json=manifest_path if manifest_path.is_file() else None, name=name)
    if node.package_json is None:
        return node

    try:
        manifest = load_manifest(manifest_path)
    except ManifestParseError as exc:
        # Surfaced again, and recorded, when the candidate is executed.
        log.warning("tree.manifest_unreadable", path=str(manifest_path), error=exc.reason)
        return node

    if node.name is None and isinstance(manifest.get("name"), str):
        node.name = manifest["name"]

    sections = ["dependencies"]
    if is_root:
        # npm installs the root's devDependencies too
        sections.append("devDependencies")
    for section in sections:
        declared = manifest.get(section)
        if not isinstance(declared, dict):
            continue
        for dep_name, constraint in declared.items():
            node.dependencies.setdefault(dep_name, constraint if isinstance(constraint, str) else "")
    return node


def _resolve_package_dir(name: str, start: Path, root: Path) -> Path | None:
    current = start
    while True:
        candidate = current / MODULES_DIR / name
        if (candidate / MANIFEST_NAME).is_file():
            return candidate
        if current == root or current == current.parent:
            return None
        current = current.parent


# ── dependency chains ────────────────────────────────────────────────────


def dependency_chain(manifest_path: Path | str, base_dir: Path | str | None = None) -> str:
    """Describe how *manifest_path* was reached, e.g. ``app > left > shared``.

    The parent of *base_dir* (default: the working directory) is stripped,
    along with the trailing package.json and every ``node_modules`` marker.
    """
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    path = Path(manifest_path)
    try:
        rel_parts = path.relative_to(base.parent).parts
    except ValueError:
        rel_parts = path.parts

    parts = [p for p in rel_parts if p not in (path.anchor, MODULES_DIR, "")]
    if parts and parts[-1] == MANIFEST_NAME:
        parts.pop()

    chain: list[str] = []
    i = 0
    while i < len(parts):
        # keep scoped packages whole: "@scope" + "name" -> "@scope/name"
        if parts[i].startswith("@") and i + 1 < len(parts):
            chain.append(f"{parts[i]}/{parts[i + 1]}")
            i += 2
        else:
            chain.append(parts[i])
            i += 1
    return " > ".join(chain)
