"""Publishing merged artifacts.

Transports form a closed set selected by ``publish.provider``. Adding a
transport means adding a variant here; the orchestrator only sees the
:class:`Publisher` capability.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import PublishError, Publisher
from .local import LocalDirectoryPublisher

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from packmerger.config import PackMergerConfig

PROVIDERS = ("local",)


def create_publisher(config: "PackMergerConfig") -> Publisher:
    """Build the publisher variant named by ``config.publish.provider``.

    Raises:
        PublishError: If the provider name is not a known variant.
    """
    provider = config.publish.provider.strip().lower()
    if provider == "local":
        local = config.publish.local
        return LocalDirectoryPublisher(
            directory=config.resolve(local.directory),
            base_url=local.base_url,
        )
    raise PublishError(
        f"Unknown publish provider '{config.publish.provider}' (expected one of: {', '.join(PROVIDERS)})"
    )


__all__ = ["LocalDirectoryPublisher", "PROVIDERS", "PublishError", "Publisher", "create_publisher"]
