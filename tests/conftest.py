from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator

import pytest

from tests.utils import FileContent, write_dir_pack, write_zip_pack


@pytest.fixture()
def packs_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "packs"
    directory.mkdir()
    return directory


@pytest.fixture()
def dir_pack(packs_dir: Path) -> Callable[[str, dict[str, FileContent]], Path]:
    def _make(name: str, files: dict[str, FileContent]) -> Path:
        return write_dir_pack(packs_dir, name, files)

    return _make


@pytest.fixture()
def zip_pack(packs_dir: Path) -> Callable[[str, dict[str, FileContent]], Path]:
    def _make(name: str, files: dict[str, FileContent]) -> Path:
        return write_zip_pack(packs_dir, name, files)

    return _make


@pytest.fixture(autouse=True)
def reset_packmerger_logging() -> Iterator[None]:
    """CLI runs attach a Rich handler and stop propagation; undo that per test."""
    yield
    logger = logging.getLogger("packmerger")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
