"""Dependency audit engine — inspect, resolve, and test every package in a tree."""

from pkgsentinel.engines.dependency_audit.executor import TestExecutor
from pkgsentinel.engines.dependency_audit.inspector import inspect_module
from pkgsentinel.engines.dependency_audit.models import (
    NO_VERSION,
    UNKNOWN_VERSION,
    Candidate,
    CandidateState,
    ModuleReport,
    ModuleVersionReport,
    Report,
    TreeNode,
)
from pkgsentinel.engines.dependency_audit.registry import NpmRegistryClient, resolve_latest
from pkgsentinel.engines.dependency_audit.runner import AuditRunner
from pkgsentinel.engines.dependency_audit.tree import dependency_chain, discover_tree, flatten

__all__ = [
    "NO_VERSION",
    "UNKNOWN_VERSION",
    "AuditRunner",
    "Candidate",
    "CandidateState",
    "ModuleReport",
    "ModuleVersionReport",
    "NpmRegistryClient",
    "Report",
    "TestExecutor",
    "TreeNode",
    "dependency_chain",
    "discover_tree",
    "flatten",
    "inspect_module",
    "resolve_latest",
]
