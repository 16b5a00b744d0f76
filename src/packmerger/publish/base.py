"""Publisher interface for making a merged artifact publicly reachable."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


class PublishError(RuntimeError):
    """Raised when an artifact cannot be published."""


@runtime_checkable
class Publisher(Protocol):
    """Capability implemented by every transport variant."""

    name: str

    def publish(self, artifact_path: Path, content_hash: str) -> str:
        """Publish ``artifact_path`` and return its public URL."""
