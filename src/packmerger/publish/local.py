"""Local directory publisher.

Copies the merged archive into a directory served by an existing static
file server and returns the URL it will be reachable at. The file is
named after its content hash so clients never read a stale cached copy.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from .base import PublishError

logger = logging.getLogger(__name__)


@dataclass
class LocalDirectoryPublisher:
    directory: Path
    base_url: str
    name: str = "local"

    def publish(self, artifact_path: Path, content_hash: str) -> str:
        if not artifact_path.is_file():
            raise PublishError(f"Artifact does not exist: {artifact_path}")

        filename = f"{content_hash}.zip"
        target = self.directory / filename
        staging = self.directory / f".{filename}.tmp"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(artifact_path, staging)
            os.replace(staging, target)
        except OSError as exc:
            if staging.exists():
                staging.unlink()
            raise PublishError(f"Cannot publish {artifact_path.name} to {self.directory}: {exc}") from exc

        url = f"{self.base_url.rstrip('/')}/{filename}"
        logger.info("Published %s as %s", artifact_path.name, url)
        return url
