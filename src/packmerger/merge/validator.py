"""Validation of merged pack archives.

Checks a merged archive for problems that would show up in game:

1. ``pack.mcmeta`` must exist and carry ``pack.pack_format``
2. every ``.json`` entry must parse
3. model texture references must point at existing ``.png`` textures
4. blockstate model references must point at existing model files

Findings are either errors (the pack may not load) or warnings (the pack
loads but something renders wrong). Validation is diagnostic only; it
never blocks distribution. This module is a library -- it reports
problems but never modifies the archive.
"""

from __future__ import annotations

import json
import logging
import zipfile
import zlib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .classifier import is_blockstate_path, is_model_path
from .discovery import METADATA_FILE

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "minecraft"


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single validation finding."""

    severity: Severity
    message: str
    path: str | None = None

    def format(self) -> str:
        return f"{self.severity.value.upper()}: {self.message}"


@dataclass
class ValidationResult:
    """Aggregate result of one validation run."""

    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> int:
        return sum(1 for issue in self.issues if issue.severity is Severity.ERROR)

    @property
    def warnings(self) -> int:
        return sum(1 for issue in self.issues if issue.severity is Severity.WARNING)

    @property
    def messages(self) -> list[str]:
        return [issue.format() for issue in self.issues]

    @property
    def passed(self) -> bool:
        return self.errors == 0

    def error(self, message: str, path: str | None = None) -> None:
        self.issues.append(ValidationIssue(Severity.ERROR, message, path))
        logger.error("Validation: %s", message)

    def warning(self, message: str, path: str | None = None, *, quiet: bool = False) -> None:
        self.issues.append(ValidationIssue(Severity.WARNING, message, path))
        if quiet:
            logger.debug("Validation: %s", message)
        else:
            logger.warning("Validation: %s", message)


class PackValidator:
    """Validates merged pack archives."""

    def validate(self, pack_file: Path) -> ValidationResult:
        """Validate the archive at ``pack_file``.

        The archive is opened once. Every entry path is collected first
        because reference checks need existence answers for the whole pack.
        """
        result = ValidationResult()

        if not pack_file.is_file():
            result.error("Merged pack file does not exist")
            return result

        try:
            with zipfile.ZipFile(pack_file) as archive:
                self._validate_archive(archive, result)
        except (OSError, zipfile.BadZipFile, zlib.error) as exc:
            result.error(f"Could not read merged pack for validation: {exc}")

        logger.info(
            "Validation complete: %d warnings, %d errors", result.warnings, result.errors
        )
        return result

    def _validate_archive(self, archive: zipfile.ZipFile, result: ValidationResult) -> None:
        entries = [info for info in archive.infolist() if not info.is_dir()]
        all_paths = {info.filename.replace("\\", "/") for info in entries}

        self._check_metadata(archive, all_paths, result)

        parsed: dict[str, Any] = {}
        for info in entries:
            path = info.filename.replace("\\", "/")
            if not path.lower().endswith(".json"):
                continue
            try:
                parsed[path] = json.loads(archive.read(info).decode("utf-8-sig"))
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                result.warning(f"Invalid JSON: {path} ({exc})", path)

        for path, document in parsed.items():
            if not isinstance(document, dict):
                continue
            if is_model_path(path):
                self._check_model_textures(path, document, all_paths, result)
            elif is_blockstate_path(path):
                self._check_blockstate_models(path, document, all_paths, result)

    def _check_metadata(
        self, archive: zipfile.ZipFile, all_paths: set[str], result: ValidationResult
    ) -> None:
        if METADATA_FILE not in all_paths:
            result.error(f"{METADATA_FILE} is missing from merged pack", METADATA_FILE)
            return

        try:
            metadata = json.loads(archive.read(METADATA_FILE).decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            result.error(f"{METADATA_FILE} contains invalid JSON", METADATA_FILE)
            return

        pack = metadata.get("pack") if isinstance(metadata, dict) else None
        if not isinstance(pack, dict) or "pack_format" not in pack:
            result.error(f"{METADATA_FILE} is missing 'pack.pack_format' field", METADATA_FILE)

    def _check_model_textures(
        self, path: str, model: dict[str, Any], all_paths: set[str], result: ValidationResult
    ) -> None:
        textures = model.get("textures")
        if not isinstance(textures, dict):
            return
        for ref in textures.values():
            # "#layer0"-style values point at another slot of the same model.
            if not isinstance(ref, str) or ref.startswith("#"):
                continue
            if not resource_exists(all_paths, ref, "textures", ".png"):
                result.warning(f"Model {path} references missing texture: {ref}", path, quiet=True)

    def _check_blockstate_models(
        self, path: str, blockstate: dict[str, Any], all_paths: set[str], result: ValidationResult
    ) -> None:
        variants = blockstate.get("variants")
        if isinstance(variants, dict):
            for variant in variants.values():
                self._check_model_ref(path, variant, all_paths, result)

        multipart = blockstate.get("multipart")
        if isinstance(multipart, list):
            for part in multipart:
                if isinstance(part, dict) and "apply" in part:
                    self._check_model_ref(path, part["apply"], all_paths, result)

    def _check_model_ref(
        self, path: str, element: Any, all_paths: set[str], result: ValidationResult
    ) -> None:
        if isinstance(element, dict):
            ref = element.get("model")
            if isinstance(ref, str) and not resource_exists(all_paths, ref, "models", ".json"):
                result.warning(
                    f"Blockstate {path} references missing model: {ref}", path, quiet=True
                )
        elif isinstance(element, list):
            # Weighted random variants
            for item in element:
                self._check_model_ref(path, item, all_paths, result)


def resolve_reference(ref: str, kind: str, suffix: str) -> str:
    """Map a ``namespace:path`` reference to its archive path.

    Examples:
        >>> resolve_reference("block/stone", "textures", ".png")
        'assets/minecraft/textures/block/stone.png'
        >>> resolve_reference("mypack:item/gem", "models", ".json")
        'assets/mypack/models/item/gem.json'
    """
    namespace, sep, rel = ref.partition(":")
    if not sep:
        namespace, rel = DEFAULT_NAMESPACE, ref
    return f"assets/{namespace}/{kind}/{rel}{suffix}"


def resource_exists(all_paths: set[str], ref: str, kind: str, suffix: str) -> bool:
    expected = resolve_reference(ref, kind, suffix)
    return expected in all_paths or expected.lower() in all_paths


__all__ = [
    "PackValidator",
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    "resolve_reference",
    "resource_exists",
]
