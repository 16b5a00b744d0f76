"""Core merge engine: combine packs into one output archive.

Packs are processed from lowest to highest priority so that, for
overwrite-class files, the last write wins. Mergeable JSON files
(models, blockstates, sounds.json) are parsed and folded into one tree
per path with the incoming, higher-priority tree as ``high``.

After every pack has been read, the merged trees are serialized back
into the file map, the packs-directory overrides (``pack.mcmeta`` and
``pack.png``) replace whatever the merge produced, and a default
``pack.mcmeta`` is synthesized when none exists.

This module performs only local file and archive I/O and is safe to run
off the caller's thread.
"""

from __future__ import annotations

import logging
import os
import zipfile
import zlib
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from packmerger.hashing import sha1_file

from .classifier import MergeKind, classify
from .discovery import ARCHIVE_SUFFIX, ICON_FILE, METADATA_FILE
from .ordering import MergeOrder
from .paths import is_junk_path, normalize_path
from .tree import ObjectNode, TreeParseError, deep_merge, dump_tree, merge_concatenating, parse_tree

logger = logging.getLogger(__name__)

# pack_format 46 corresponds to game version 1.21.4+
DEFAULT_PACK_FORMAT = 46
DEFAULT_DESCRIPTION = "Merged resource pack by PackMerger"

# Fixed entry timestamp (the zip epoch) so identical inputs give identical bytes.
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

_MIB = 1024 * 1024


class MergeError(RuntimeError):
    """Raised when the merged archive cannot be written."""


@dataclass(frozen=True, slots=True)
class MergeSettings:
    """Tunables for a merge run."""

    strip_junk: bool = True
    compression_level: int = 6
    size_warning_mb: int = 100

    def __post_init__(self) -> None:
        if not 0 <= self.compression_level <= 9:
            raise ValueError(f"compression_level must be 0-9, got {self.compression_level}")


@dataclass
class MergeReport:
    """What happened during one merge run."""

    order: tuple[str, ...] = ()
    merged_packs: list[str] = field(default_factory=list)
    skipped_packs: list[str] = field(default_factory=list)
    json_merged: list[str] = field(default_factory=list)
    raw_fallbacks: list[str] = field(default_factory=list)
    junk_stripped: int = 0
    overrides_applied: list[str] = field(default_factory=list)
    metadata_synthesized: bool = False
    file_count: int = 0
    size_warning: bool = False


@dataclass(frozen=True, slots=True)
class MergedArtifact:
    """A finished output archive. Superseded, never mutated."""

    path: Path
    size_bytes: int
    content_hash: str
    created_at: datetime
    target: Path | None = None
    report: MergeReport = field(compare=False, repr=False, default_factory=MergeReport)

    @property
    def staged(self) -> bool:
        """Whether the archive still waits at a pending path for promotion."""
        return self.target is not None and self.target != self.path

    @property
    def public_path(self) -> Path:
        return self.target or self.path

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


class PackMergeEngine:
    """Merges packs from ``packs_dir`` into ``output_file``."""

    def __init__(
        self,
        packs_dir: Path,
        output_file: Path,
        settings: MergeSettings | None = None,
    ) -> None:
        self.packs_dir = packs_dir
        self.output_file = output_file
        self.settings = settings or MergeSettings()

    @property
    def staging_file(self) -> Path:
        return self.output_file.with_name(self.output_file.name + ".pending")

    def merge(
        self, order: MergeOrder | Sequence[str], *, stage: bool = False
    ) -> MergedArtifact | None:
        """Merge the packs in ``order`` (highest priority first).

        With ``stage`` the archive is left at :attr:`staging_file` and the
        output path keeps its previous bytes until the caller promotes it.

        Returns:
            The written artifact, or ``None`` when there was nothing to merge.

        Raises:
            MergeError: If the output archive cannot be written.
        """
        names = tuple(order)
        report = MergeReport(order=names)
        if not names:
            logger.warning("No resource packs found in %s", self.packs_dir)
            return None

        logger.info("Merge order (highest priority first): %s", list(names))

        files: dict[str, bytes] = {}
        trees: dict[str, ObjectNode] = {}

        for name in reversed(names):
            source = self.packs_dir / name
            if not source.exists():
                logger.warning("Pack not found: %s (skipping)", name)
                report.skipped_packs.append(name)
                continue
            try:
                # Read the whole pack first so a corrupt archive contributes nothing.
                entries = list(self._read_pack(source, report))
            except (OSError, zipfile.BadZipFile, zlib.error, ValueError) as exc:
                logger.warning("Failed to read pack: %s (skipping): %s", name, exc)
                report.skipped_packs.append(name)
                continue

            for path, data in entries:
                self._process_file(path, data, files, trees, report)
            report.merged_packs.append(name)
            logger.debug("Merged pack: %s", name)

        for path, tree in trees.items():
            files[path] = dump_tree(tree)

        if not files:
            logger.warning("No files to merge after processing all packs")
            return None

        self._apply_overrides(files, report)

        if METADATA_FILE not in files:
            logger.info("No %s found, generating default", METADATA_FILE)
            files[METADATA_FILE] = default_metadata()
            report.metadata_synthesized = True

        report.file_count = len(files)
        destination = self.staging_file if stage else self.output_file
        self._write_archive(files, destination)

        size_bytes = destination.stat().st_size
        logger.info("Merged pack written: %s (%s)", destination.name, format_size(size_bytes))

        warning_mb = self.settings.size_warning_mb
        if warning_mb > 0 and size_bytes > warning_mb * _MIB:
            report.size_warning = True
            logger.warning(
                "Merged pack is %s, which exceeds the configured threshold of %d MB. "
                "Large packs may fail to download on slow connections.",
                format_size(size_bytes),
                warning_mb,
            )

        return MergedArtifact(
            path=destination,
            size_bytes=size_bytes,
            content_hash=sha1_file(destination),
            created_at=datetime.now(timezone.utc),
            report=report,
            target=self.output_file,
        )

    # ── Reading ───────────────────────────────────────────────────

    def _read_pack(self, source: Path, report: MergeReport) -> Iterator[tuple[str, bytes]]:
        if source.is_dir():
            yield from self._read_directory(source, report)
        elif source.name.lower().endswith(ARCHIVE_SUFFIX):
            yield from self._read_archive(source, report)
        else:
            raise ValueError(f"not a pack archive or directory: {source.name}")

    def _read_archive(self, source: Path, report: MergeReport) -> Iterator[tuple[str, bytes]]:
        with zipfile.ZipFile(source) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                path = normalize_path(info.filename)
                if not path or self._strip(path, report):
                    continue
                yield path, archive.read(info)

    def _read_directory(self, base: Path, report: MergeReport) -> Iterator[tuple[str, bytes]]:
        for file_path in sorted(base.rglob("*")):
            if not file_path.is_file():
                continue
            path = normalize_path(file_path.relative_to(base).as_posix())
            if not path or self._strip(path, report):
                continue
            try:
                data = file_path.read_bytes()
            except OSError as exc:
                logger.warning("Failed to read file: %s: %s", file_path, exc)
                continue
            yield path, data

    def _strip(self, path: str, report: MergeReport) -> bool:
        if self.settings.strip_junk and is_junk_path(path):
            logger.debug("Stripping junk: %s", path)
            report.junk_stripped += 1
            return True
        return False

    # ── Merging ───────────────────────────────────────────────────

    def _process_file(
        self,
        path: str,
        data: bytes,
        files: dict[str, bytes],
        trees: dict[str, ObjectNode],
        report: MergeReport,
    ) -> None:
        kind = classify(path)
        if not kind.mergeable:
            files[path] = data
            return

        try:
            incoming = parse_tree(data)
        except TreeParseError as exc:
            logger.warning("Invalid JSON in mergeable file (using raw): %s (%s)", path, exc)
            report.raw_fallbacks.append(path)
            # The raw higher-priority copy replaces anything merged so far.
            trees.pop(path, None)
            files[path] = data
            return

        existing = trees.get(path)
        if existing is None:
            trees[path] = incoming
            return

        if kind is MergeKind.CONCATENATE:
            trees[path] = merge_concatenating(incoming, existing)
        else:
            trees[path] = deep_merge(incoming, existing)
        if path not in report.json_merged:
            report.json_merged.append(path)
        logger.debug("JSON merged: %s", path)

    def _apply_overrides(self, files: dict[str, bytes], report: MergeReport) -> None:
        for name in (METADATA_FILE, ICON_FILE):
            override = self.packs_dir / name
            if not override.is_file():
                continue
            try:
                files[name] = override.read_bytes()
            except OSError as exc:
                logger.warning("Cannot read override %s: %s", override, exc)
                continue
            report.overrides_applied.append(name)
            logger.info("Using custom %s from packs folder", name)

    # ── Writing ───────────────────────────────────────────────────

    def _write_archive(self, files: dict[str, bytes], destination: Path) -> None:
        level = self.settings.compression_level
        compression = zipfile.ZIP_STORED if level == 0 else zipfile.ZIP_DEFLATED
        temp_file = destination.with_name(destination.name + ".tmp")

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(temp_file, "w", compression=compression) as archive:
                for path, data in files.items():
                    info = zipfile.ZipInfo(path, date_time=ZIP_EPOCH)
                    info.compress_type = compression
                    info.external_attr = 0o644 << 16
                    archive.writestr(info, data, compresslevel=level if level else None)
            os.replace(temp_file, destination)
        except OSError as exc:
            if temp_file.exists():
                temp_file.unlink()
            raise MergeError(f"Cannot write merged pack to {destination}: {exc}") from exc


def default_metadata() -> bytes:
    return dump_tree(
        {"pack": {"pack_format": DEFAULT_PACK_FORMAT, "description": DEFAULT_DESCRIPTION}}
    )


def format_size(size_bytes: int) -> str:
    """Human-readable size.

    Examples:
        >>> format_size(512)
        '512 B'
        >>> format_size(1536)
        '1.5 KB'
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < _MIB:
        return f"{size_bytes / 1024:.1f} KB"
    if size_bytes < 1024 * _MIB:
        return f"{size_bytes / _MIB:.1f} MB"
    return f"{size_bytes / (1024 * _MIB):.1f} GB"


__all__ = [
    "DEFAULT_PACK_FORMAT",
    "MergeError",
    "MergeReport",
    "MergeSettings",
    "MergedArtifact",
    "PackMergeEngine",
    "default_metadata",
    "format_size",
]
