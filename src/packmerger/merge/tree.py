"""JSON tree merge primitives.

A merge tree is plain decoded JSON: ``dict`` for object nodes, ``list``
for array nodes and ``str``/``int``/``float``/``bool``/``None`` leaves.
Both merge functions return new trees and never mutate their inputs,
because the accumulated low-priority tree is reused as the base for every
later, higher-priority contribution.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Union

from .classifier import SOUNDS_KEY

Scalar = Union[str, int, float, bool, None]
MergeTree = Union[dict[str, Any], list[Any], Scalar]
ObjectNode = dict[str, Any]


class TreeParseError(ValueError):
    """Raised when bytes at a mergeable path are not a JSON object."""


def deep_merge(high: ObjectNode, low: ObjectNode) -> ObjectNode:
    """Deep merge two object nodes; ``high`` wins every non-object conflict.

    - keys present on one side only are kept
    - keys whose values are objects on both sides are merged recursively
    - any other conflict (arrays, scalars, mixed kinds) takes ``high``'s value

    Examples:
        >>> deep_merge({"b": 3, "c": 4}, {"a": 1, "b": 2})
        {'a': 1, 'b': 3, 'c': 4}
    """
    result = copy.deepcopy(low)
    for key, high_value in high.items():
        low_value = result.get(key)
        if isinstance(high_value, dict) and isinstance(low_value, dict):
            result[key] = deep_merge(high_value, low_value)
        else:
            result[key] = copy.deepcopy(high_value)
    return result


def merge_concatenating(high: ObjectNode, low: ObjectNode, key: str = SOUNDS_KEY) -> ObjectNode:
    """Merge two sound-definition trees, concatenating the ``key`` arrays.

    Each top-level entry is a sound event. When both trees define the same
    event as an object, the ``key`` arrays are joined with ``high``'s
    elements first and no deduplication; the remaining event properties
    (``replace``, ``subtitle``...) take ``high``'s values. Events defined
    on one side only pass through unchanged.

    Examples:
        >>> merge_concatenating({"e": {"sounds": ["s1", "s2"]}}, {"e": {"sounds": ["s3"]}})
        {'e': {'sounds': ['s1', 's2', 's3']}}
    """
    result = copy.deepcopy(low)
    for event, high_value in high.items():
        low_value = result.get(event)
        if not (isinstance(high_value, dict) and isinstance(low_value, dict)):
            result[event] = copy.deepcopy(high_value)
            continue

        merged = low_value
        high_items = high_value.get(key)
        low_items = low_value.get(key)
        if key in high_value and key in low_value:
            merged[key] = _as_list(high_items) + _as_list(low_items)
        elif key in high_value:
            merged[key] = copy.deepcopy(high_items)

        for prop, prop_value in high_value.items():
            if prop != key:
                merged[prop] = copy.deepcopy(prop_value)
        result[event] = merged
    return result


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        return copy.deepcopy(value)
    return [copy.deepcopy(value)]


def parse_tree(data: bytes) -> ObjectNode:
    """Decode JSON bytes into an object node.

    Raises:
        TreeParseError: If the bytes are not UTF-8 JSON or the document
            is not an object.
    """
    try:
        loaded = json.loads(data.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise TreeParseError(str(exc)) from exc
    if not isinstance(loaded, dict):
        raise TreeParseError(f"expected a JSON object, got {type(loaded).__name__}")
    return loaded


def dump_tree(tree: MergeTree) -> bytes:
    """Serialize a tree as pretty-printed UTF-8 JSON."""
    return json.dumps(tree, indent=2, ensure_ascii=False).encode("utf-8")


__all__ = [
    "MergeTree",
    "ObjectNode",
    "TreeParseError",
    "deep_merge",
    "dump_tree",
    "merge_concatenating",
    "parse_tree",
]
