"""Merge ordering based on configured pack priority.

Determines the order in which packs are merged (first = highest priority)
from the discovered packs, the global priority list and the per-target
include/exclude rules.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TargetRules:
    """Per-target pack rules.

    ``include`` packs are appended below every global pack; ``exclude``
    packs are dropped from the configured priority list only. An excluded
    pack that is also unlisted still merges at lowest priority.
    """

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class MergeOrder:
    """Fully resolved merge sequence, highest priority first."""

    names: tuple[str, ...]
    unlisted: tuple[str, ...] = field(default=())

    def __iter__(self):
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    def __bool__(self) -> bool:
        return bool(self.names)

    def lowest_first(self) -> tuple[str, ...]:
        """The order packs are processed in by the merge engine."""
        return tuple(reversed(self.names))


def resolve_merge_order(
    discovered: Iterable[str],
    priority: Sequence[str],
    rules: TargetRules | None = None,
    *,
    include_unlisted: bool = True,
) -> MergeOrder:
    """Resolve the merge order for a set of discovered packs.

    1. Packs from ``priority`` in listed order, when discovered and not excluded.
    2. Discovered packs that appear neither in ``priority`` nor in the
       target's ``include`` list, sorted by name, each with a warning.
       Skipped entirely when ``include_unlisted`` is false.
    3. The target's ``include`` packs that were discovered, lowest priority.

    A name is emitted at most once; the first rule that places it wins.

    Examples:
        >>> resolve_merge_order({"a", "b", "z"}, ["b", "a"]).names
        ('b', 'a', 'z')
    """
    rules = rules or TargetRules()
    available = set(discovered)
    excluded = set(rules.exclude)
    listed = set(priority)
    included = set(rules.include)

    ordered: list[str] = []
    seen: set[str] = set()

    def emit(name: str) -> None:
        ordered.append(name)
        seen.add(name)

    for name in priority:
        if name in available and name not in excluded and name not in seen:
            emit(name)

    unlisted: list[str] = []
    for name in sorted(available):
        if name in listed or name in included or name in seen:
            continue
        if not include_unlisted:
            logger.warning("Pack '%s' found but not listed in priority config (ignored)", name)
            continue
        logger.warning(
            "Pack '%s' found but not listed in priority config, merging at lowest priority", name
        )
        unlisted.append(name)
        emit(name)

    for name in rules.include:
        if name in available and name not in seen:
            emit(name)

    return MergeOrder(names=tuple(ordered), unlisted=tuple(unlisted))


__all__ = ["MergeOrder", "TargetRules", "resolve_merge_order"]
