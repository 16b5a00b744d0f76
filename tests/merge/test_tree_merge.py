"""JSON tree merge primitives."""

from __future__ import annotations

import copy

import pytest

from packmerger.merge.tree import (
    TreeParseError,
    deep_merge,
    dump_tree,
    merge_concatenating,
    parse_tree,
)


class TestDeepMerge:
    def test_high_wins_scalar_conflicts(self) -> None:
        low = {"a": 1, "b": 2}
        high = {"b": 3, "c": 4}

        assert deep_merge(high, low) == {"a": 1, "b": 3, "c": 4}

    def test_nested_objects_merge_recursively(self) -> None:
        low = {"textures": {"layer0": "item/a", "particle": "item/p"}, "parent": "item/generated"}
        high = {"textures": {"layer0": "item/b"}}

        merged = deep_merge(high, low)

        assert merged == {
            "textures": {"layer0": "item/b", "particle": "item/p"},
            "parent": "item/generated",
        }

    def test_arrays_are_replaced_not_merged(self) -> None:
        merged = deep_merge({"overrides": [{"model": "x"}]}, {"overrides": [{"model": "y"}, {"model": "z"}]})

        assert merged == {"overrides": [{"model": "x"}]}

    def test_mixed_kinds_take_high(self) -> None:
        assert deep_merge({"a": "scalar"}, {"a": {"nested": 1}}) == {"a": "scalar"}
        assert deep_merge({"a": {"nested": 1}}, {"a": [1, 2]}) == {"a": {"nested": 1}}

    def test_inputs_are_not_mutated(self) -> None:
        low = {"a": {"x": 1}}
        high = {"a": {"y": 2}}
        low_before, high_before = copy.deepcopy(low), copy.deepcopy(high)

        merged = deep_merge(high, low)
        merged["a"]["z"] = 3

        assert low == low_before
        assert high == high_before

    def test_empty_sides(self) -> None:
        assert deep_merge({}, {"a": 1}) == {"a": 1}
        assert deep_merge({"a": 1}, {}) == {"a": 1}


class TestMergeConcatenating:
    def test_sounds_concatenate_high_first(self) -> None:
        high = {"e": {"sounds": ["s1", "s2"]}}
        low = {"e": {"sounds": ["s3"]}}

        assert merge_concatenating(high, low) == {"e": {"sounds": ["s1", "s2", "s3"]}}

    def test_duplicates_are_kept(self) -> None:
        merged = merge_concatenating({"e": {"sounds": ["s1"]}}, {"e": {"sounds": ["s1"]}})

        assert merged["e"]["sounds"] == ["s1", "s1"]

    def test_other_event_properties_take_high(self) -> None:
        high = {"e": {"sounds": ["a"], "subtitle": "high", "replace": True}}
        low = {"e": {"sounds": ["b"], "subtitle": "low", "category": "block"}}

        merged = merge_concatenating(high, low)

        assert merged == {
            "e": {"sounds": ["a", "b"], "subtitle": "high", "replace": True, "category": "block"}
        }

    def test_events_on_one_side_pass_through(self) -> None:
        merged = merge_concatenating({"new": {"sounds": ["n"]}}, {"old": {"sounds": ["o"]}})

        assert merged == {"old": {"sounds": ["o"]}, "new": {"sounds": ["n"]}}

    def test_sound_objects_are_concatenated(self) -> None:
        high = {"e": {"sounds": [{"name": "a", "volume": 0.5}]}}
        low = {"e": {"sounds": ["b"]}}

        assert merge_concatenating(high, low)["e"]["sounds"] == [{"name": "a", "volume": 0.5}, "b"]

    def test_key_only_on_high_side(self) -> None:
        merged = merge_concatenating({"e": {"sounds": ["a"]}}, {"e": {"subtitle": "x"}})

        assert merged == {"e": {"subtitle": "x", "sounds": ["a"]}}

    def test_inputs_are_not_mutated(self) -> None:
        high = {"e": {"sounds": ["a"]}}
        low = {"e": {"sounds": ["b"]}}

        merge_concatenating(high, low)

        assert high == {"e": {"sounds": ["a"]}}
        assert low == {"e": {"sounds": ["b"]}}


class TestParseTree:
    def test_parses_object(self) -> None:
        assert parse_tree(b'{"a": 1}') == {"a": 1}

    def test_accepts_utf8_bom(self) -> None:
        assert parse_tree(b'\xef\xbb\xbf{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("data", [b"{not json", b"[1, 2]", b'"text"', b"\xff\xfe"])
    def test_rejects_non_objects_and_garbage(self, data: bytes) -> None:
        with pytest.raises(TreeParseError):
            parse_tree(data)

    def test_dump_is_pretty_utf8(self) -> None:
        dumped = dump_tree({"name": "café"})

        assert dumped == '{\n  "name": "café"\n}'.encode("utf-8")
