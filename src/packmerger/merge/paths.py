"""Path normalization and junk filtering for pack entries.

Zip entries and directory walks produce paths in different shapes
(backslashes on Windows archives, leading slashes from some tools).
Everything inside the merge engine is keyed by the normalized form.
"""

from __future__ import annotations

# Filenames (lowercase) stripped when junk filtering is enabled.
JUNK_FILES: frozenset[str] = frozenset(
    {".ds_store", "thumbs.db", "desktop.ini", ".gitignore", ".gitattributes"}
)

# Directory names (lowercase) whose whole subtree is stripped.
JUNK_DIRS: frozenset[str] = frozenset({"__macosx", ".git"})

HIDDEN_PREFIX = "."


def normalize_path(path: str) -> str:
    """Return a forward-slash relative path with no leading slash or empty segments.

    Examples:
        >>> normalize_path("\\\\assets\\\\minecraft\\\\sounds.json")
        'assets/minecraft/sounds.json'
        >>> normalize_path("//pack.mcmeta")
        'pack.mcmeta'
    """
    parts = [part for part in path.replace("\\", "/").split("/") if part]
    return "/".join(parts)


def file_name(path: str) -> str:
    """Return the last segment of a normalized path."""
    return path.rsplit("/", 1)[-1]


def is_junk_path(path: str) -> bool:
    """Whether a normalized path is OS/VCS junk that should not ship.

    Junk covers hidden files (any name starting with a dot), well-known
    metadata files and anything below a junk directory at any depth.
    """
    lower = normalize_path(path).lower()
    if not lower:
        return False

    name = file_name(lower)
    if name.startswith(HIDDEN_PREFIX) or name in JUNK_FILES:
        return True

    return any(part in JUNK_DIRS for part in lower.split("/"))


__all__ = ["JUNK_DIRS", "JUNK_FILES", "file_name", "is_junk_path", "normalize_path"]
