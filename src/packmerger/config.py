"""Configuration for packmerger (``packmerger.yaml``).

The YAML document is read with ruamel and validated into Pydantic models.
Keys may be written in ``snake_case`` or ``kebab-case``; relative paths
resolve against the directory holding the config file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from packmerger.merge.engine import MergeSettings
from packmerger.merge.ordering import TargetRules

CONFIG_FILENAME = "packmerger.yaml"
DEFAULT_TARGET = "default"
OUTPUT_FILENAME = "merged-pack.zip"

# Mapping keys whose children are user-chosen names, not schema keys.
_NAME_KEYED_SECTIONS = {"targets", "server_packs"}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or validated."""


class HotReloadConfig(BaseModel):
    """Packs-directory watching."""

    enabled: bool = True
    debounce_seconds: float = Field(default=5.0, ge=0)
    poll_interval_seconds: float = Field(default=1.0, gt=0)


class MergeConfig(BaseModel):
    """Merge behaviour and output tuning."""

    auto_merge_on_startup: bool = True
    strip_junk_files: bool = True
    compression_level: int = Field(default=6, ge=0, le=9)
    size_warning_mb: int = Field(default=100, ge=0)
    include_unlisted_packs: bool = True
    hot_reload: HotReloadConfig = Field(default_factory=HotReloadConfig)


class TargetConfig(BaseModel):
    """Include/exclude rules for one deployment target."""

    include: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("include", "additional")
    )
    exclude: list[str] = Field(default_factory=list)


class PathsConfig(BaseModel):
    packs_dir: Path = Path("packs")
    output_dir: Path = Path("output")


class LocalPublishConfig(BaseModel):
    """Settings for the ``local`` publisher."""

    directory: Path = Path("public")
    base_url: str = "http://localhost:8080/packs"


class PublishConfig(BaseModel):
    auto_publish: bool = False
    provider: str = "local"
    local: LocalPublishConfig = Field(default_factory=LocalPublishConfig)


class PackMergerConfig(BaseModel):
    """Top-level configuration."""

    root: Path = Field(default_factory=Path.cwd, exclude=True)
    target: str = DEFAULT_TARGET
    priority: list[str] = Field(default_factory=list)
    targets: dict[str, TargetConfig] = Field(
        default_factory=dict, validation_alias=AliasChoices("targets", "server_packs")
    )
    merge: MergeConfig = Field(default_factory=MergeConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    debug: bool = False

    def resolve(self, path: Path) -> Path:
        path = path.expanduser()
        return path if path.is_absolute() else (self.root / path)

    @property
    def packs_dir(self) -> Path:
        return self.resolve(self.paths.packs_dir)

    @property
    def output_dir(self) -> Path:
        return self.resolve(self.paths.output_dir)

    def target_config(self) -> TargetConfig | None:
        wanted = self.target.lower()
        for name, target in self.targets.items():
            if name.lower() == wanted:
                return target
        return None

    def target_rules(self) -> TargetRules:
        """Include/exclude rules for the active target (empty when unset)."""
        target = self.target_config()
        if target is None:
            return TargetRules()
        return TargetRules(include=tuple(target.include), exclude=tuple(target.exclude))

    def output_file(self) -> Path:
        """Artifact path; targets with their own rules get a prefixed name."""
        if self.target_config() is not None and self.target.lower() != DEFAULT_TARGET:
            return self.output_dir / f"{self.target}-{OUTPUT_FILENAME}"
        return self.output_dir / OUTPUT_FILENAME

    def merge_settings(self) -> MergeSettings:
        return MergeSettings(
            strip_junk=self.merge.strip_junk_files,
            compression_level=self.merge.compression_level,
            size_warning_mb=self.merge.size_warning_mb,
        )


def resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def load_config(config_path: Path) -> PackMergerConfig:
    """Load configuration from disk.

    ``config_path`` may be the YAML file or the directory holding
    ``packmerger.yaml``. A missing file yields the defaults, rooted at
    the directory it would have lived in.

    Raises:
        ConfigError: If the file is not valid YAML or fails validation.
    """
    config_file = resolve_config_path(config_path)
    root = config_file.parent

    if not config_file.exists():
        return PackMergerConfig(root=root)

    yaml = YAML(typ="safe")
    try:
        with config_file.open("r", encoding="utf-8") as handle:
            payload = yaml.load(handle) or {}
    except (OSError, YAMLError) as exc:
        raise ConfigError(f"Failed to parse {config_file}: {exc}") from exc

    if not isinstance(payload, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    data = _normalize_keys(payload)
    data["root"] = root
    try:
        return PackMergerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_file}: {exc}") from exc


def _normalize_keys(value: Any, *, names: bool = False) -> Any:
    """Convert ``kebab-case`` keys to ``snake_case`` recursively.

    Children of name-keyed sections keep their names as written.
    """
    if isinstance(value, dict):
        normalized: dict[str, Any] = {}
        for key, item in value.items():
            key = str(key)
            new_key = key if names else key.replace("-", "_")
            normalized[new_key] = _normalize_keys(item, names=new_key in _NAME_KEYED_SECTIONS and not names)
        return normalized
    if isinstance(value, list):
        return [_normalize_keys(item) for item in value]
    return value


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "HotReloadConfig",
    "LocalPublishConfig",
    "MergeConfig",
    "PackMergerConfig",
    "PathsConfig",
    "PublishConfig",
    "TargetConfig",
    "load_config",
    "resolve_config_path",
]
