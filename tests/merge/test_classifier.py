"""Path classification and junk filtering."""

from __future__ import annotations

import pytest

from packmerger.merge.classifier import MergeKind, classify, is_blockstate_path, is_model_path
from packmerger.merge.paths import is_junk_path, normalize_path


class TestClassify:
    @pytest.mark.parametrize(
        "path",
        [
            "assets/minecraft/models/item/stick.json",
            "assets/custom/models/block/deep/nested/thing.json",
            "assets/minecraft/blockstates/stone.json",
            "ASSETS/Minecraft/Models/Item/Stick.JSON",
        ],
    )
    def test_models_and_blockstates_deep_merge(self, path: str) -> None:
        assert classify(path) is MergeKind.DEEP_MERGE

    def test_sounds_json_concatenates(self) -> None:
        assert classify("assets/minecraft/sounds.json") is MergeKind.CONCATENATE
        assert classify("assets/mymod/Sounds.json") is MergeKind.CONCATENATE

    @pytest.mark.parametrize(
        "path",
        [
            "pack.mcmeta",
            "assets/minecraft/textures/item/stick.png",
            "assets/minecraft/lang/en_us.json",
            "assets/minecraft/sounds/sounds.json",
            "assets/minecraft/models/item/stick.png",
            "models/item/stick.json",
        ],
    )
    def test_everything_else_overwrites(self, path: str) -> None:
        assert classify(path) is MergeKind.OVERWRITE

    def test_mergeable_property(self) -> None:
        assert MergeKind.DEEP_MERGE.mergeable
        assert MergeKind.CONCATENATE.mergeable
        assert not MergeKind.OVERWRITE.mergeable

    def test_model_and_blockstate_predicates(self) -> None:
        assert is_model_path("assets/a/models/b.json")
        assert not is_model_path("assets/a/blockstates/b.json")
        assert is_blockstate_path("assets/a/blockstates/b.json")


class TestNormalizePath:
    def test_backslashes_and_leading_slashes(self) -> None:
        assert normalize_path("\\assets\\minecraft\\sounds.json") == "assets/minecraft/sounds.json"
        assert normalize_path("//pack.mcmeta") == "pack.mcmeta"

    def test_empty_segments_dropped(self) -> None:
        assert normalize_path("assets//minecraft/") == "assets/minecraft"


class TestJunk:
    @pytest.mark.parametrize(
        "path",
        [
            ".DS_Store",
            "assets/minecraft/Thumbs.db",
            "desktop.ini",
            ".gitignore",
            "assets/.hidden",
            "__MACOSX/assets/minecraft/._stone.png",
            ".git/config",
            "assets/.git/HEAD",
        ],
    )
    def test_junk_detected(self, path: str) -> None:
        assert is_junk_path(path)

    @pytest.mark.parametrize(
        "path",
        ["pack.mcmeta", "assets/minecraft/textures/block/stone.png", "assets/minecraft/sounds.json"],
    )
    def test_content_kept(self, path: str) -> None:
        assert not is_junk_path(path)
