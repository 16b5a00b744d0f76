"""Merge subpackage for combining resource packs.

This package turns a directory of resource packs into a single merged
archive.

Modules:
    paths: Path normalization and junk filtering
    classifier: Per-path merge treatment (overwrite, deep merge, concatenate)
    tree: JSON tree merge primitives
    discovery: Pack discovery in the packs directory
    ordering: Priority-based merge ordering
    engine: Core merge execution and archive writing
    validator: Structural and reference validation of merged archives
"""

from __future__ import annotations

from .classifier import MergeKind, classify
from .discovery import PackKind, PackSource, discover_packs
from .engine import MergeError, MergedArtifact, MergeReport, MergeSettings, PackMergeEngine
from .ordering import MergeOrder, TargetRules, resolve_merge_order
from .validator import PackValidator, Severity, ValidationIssue, ValidationResult

__all__ = [
    "MergeError",
    "MergeKind",
    "MergeOrder",
    "MergeReport",
    "MergeSettings",
    "MergedArtifact",
    "PackKind",
    "PackMergeEngine",
    "PackSource",
    "PackValidator",
    "Severity",
    "TargetRules",
    "ValidationIssue",
    "ValidationResult",
    "classify",
    "discover_packs",
    "resolve_merge_order",
]
