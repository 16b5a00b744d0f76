"""Helpers for building resource packs on disk in tests."""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Any, Union

FileContent = Union[bytes, str, dict, list]


def encode(content: FileContent) -> bytes:
    if isinstance(content, bytes):
        return content
    if isinstance(content, str):
        return content.encode("utf-8")
    return json.dumps(content).encode("utf-8")


def write_dir_pack(packs_dir: Path, name: str, files: dict[str, FileContent]) -> Path:
    pack = packs_dir / name
    pack.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        target = pack / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(encode(content))
    return pack


def write_zip_pack(packs_dir: Path, name: str, files: dict[str, FileContent]) -> Path:
    packs_dir.mkdir(parents=True, exist_ok=True)
    archive_path = packs_dir / name
    with zipfile.ZipFile(archive_path, "w") as archive:
        for rel, content in files.items():
            archive.writestr(rel, encode(content))
    return archive_path


def read_archive(path: Path) -> dict[str, bytes]:
    with zipfile.ZipFile(path) as archive:
        return {info.filename: archive.read(info) for info in archive.infolist()}


def read_json_entry(path: Path, entry: str) -> Any:
    return json.loads(read_archive(path)[entry].decode("utf-8"))


def write_config(root: Path, content: str) -> Path:
    config_file = root / "packmerger.yaml"
    config_file.write_text(content, encoding="utf-8")
    return config_file
