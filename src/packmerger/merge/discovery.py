"""Pack discovery in the packs directory.

A pack is either a ``.zip`` archive or a directory that looks like a
resource pack (it has a top-level ``pack.mcmeta`` or an ``assets/``
directory). The override files ``pack.mcmeta`` and ``pack.png`` placed
directly in the packs directory are not packs; the engine applies them
after merging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

METADATA_FILE = "pack.mcmeta"
ICON_FILE = "pack.png"
CONTENT_DIR = "assets"
ARCHIVE_SUFFIX = ".zip"

OVERRIDE_FILES: frozenset[str] = frozenset({METADATA_FILE, ICON_FILE})


class PackKind(str, Enum):
    ARCHIVE = "archive"
    DIRECTORY = "directory"


@dataclass(frozen=True, slots=True)
class PackSource:
    """A discovered pack. Identity is its name inside the packs directory."""

    name: str
    kind: PackKind
    location: Path


def discover_packs(packs_dir: Path) -> dict[str, PackSource]:
    """Scan ``packs_dir`` and return discovered packs keyed by name.

    Hidden entries and the two override files are skipped. An unreadable
    or missing directory yields an empty result rather than an error so
    the pipeline can report "no packs found".

    Args:
        packs_dir: Directory containing pack archives and folders

    Returns:
        Mapping of pack name to :class:`PackSource`, sorted by name
    """
    try:
        entries = sorted(packs_dir.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        logger.warning("Cannot read packs directory %s: %s", packs_dir, exc)
        return {}

    packs: dict[str, PackSource] = {}
    for entry in entries:
        name = entry.name
        if name in OVERRIDE_FILES or name.startswith("."):
            continue

        if entry.is_dir():
            if (entry / METADATA_FILE).exists() or (entry / CONTENT_DIR).exists():
                packs[name] = PackSource(name, PackKind.DIRECTORY, entry)
            else:
                logger.debug("Ignoring directory without pack markers: %s", name)
        elif entry.is_file() and name.lower().endswith(ARCHIVE_SUFFIX):
            packs[name] = PackSource(name, PackKind.ARCHIVE, entry)

    return packs


__all__ = [
    "ARCHIVE_SUFFIX",
    "CONTENT_DIR",
    "ICON_FILE",
    "METADATA_FILE",
    "OVERRIDE_FILES",
    "PackKind",
    "PackSource",
    "discover_packs",
]
