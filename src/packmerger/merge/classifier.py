"""Classify pack paths into merge treatments.

Most files use overwrite semantics: the highest-priority pack's copy wins.
A few JSON files are merged instead so that packs can extend each other:

- ``assets/<ns>/models/**.json`` and ``assets/<ns>/blockstates/**.json``
  are deep merged.
- ``assets/<ns>/sounds.json`` concatenates the ``sounds`` array of every
  sound event and deep merges everything else.
"""

from __future__ import annotations

import re
from enum import Enum

MODEL_PATTERN = re.compile(r"assets/[^/]+/models/.+\.json")
BLOCKSTATE_PATTERN = re.compile(r"assets/[^/]+/blockstates/.+\.json")
SOUNDS_PATTERN = re.compile(r"assets/[^/]+/sounds\.json")

# Array-valued key inside each sound event that is concatenated across packs.
SOUNDS_KEY = "sounds"


class MergeKind(str, Enum):
    """How the merge engine treats a path."""

    OVERWRITE = "overwrite"
    DEEP_MERGE = "deep_merge"
    CONCATENATE = "concatenate"

    @property
    def mergeable(self) -> bool:
        return self is not MergeKind.OVERWRITE


def classify(path: str) -> MergeKind:
    """Return the merge treatment for a normalized pack path.

    Matching is case-insensitive. Classification is pure and total.

    Examples:
        >>> classify("assets/minecraft/models/item/stick.json")
        <MergeKind.DEEP_MERGE: 'deep_merge'>
        >>> classify("assets/minecraft/sounds.json")
        <MergeKind.CONCATENATE: 'concatenate'>
        >>> classify("assets/minecraft/textures/item/stick.png")
        <MergeKind.OVERWRITE: 'overwrite'>
    """
    lower = path.lower()
    if SOUNDS_PATTERN.fullmatch(lower):
        return MergeKind.CONCATENATE
    if MODEL_PATTERN.fullmatch(lower) or BLOCKSTATE_PATTERN.fullmatch(lower):
        return MergeKind.DEEP_MERGE
    return MergeKind.OVERWRITE


def is_model_path(path: str) -> bool:
    return MODEL_PATTERN.fullmatch(path.lower()) is not None


def is_blockstate_path(path: str) -> bool:
    return BLOCKSTATE_PATTERN.fullmatch(path.lower()) is not None


__all__ = [
    "BLOCKSTATE_PATTERN",
    "MODEL_PATTERN",
    "MergeKind",
    "SOUNDS_KEY",
    "SOUNDS_PATTERN",
    "classify",
    "is_blockstate_path",
    "is_model_path",
]
