"""Pipeline orchestration: discover -> resolve -> merge -> validate -> hash.

The :class:`Orchestrator` is the single entry point for merging. It owns
the published pipeline state (current artifact, content hash, last merge
time) and guarantees that at most one merge runs at a time. Requests that
arrive while a merge is running are rejected, not queued; the watcher's
debounce loop naturally retries on its next change.

Readers see the artifact and its hash through :meth:`current_artifact`,
which returns an immutable snapshot. Artifact and hash are committed
together under the state lock.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional

from packmerger.config import PackMergerConfig
from packmerger.hashing import digest_bytes
from packmerger.merge.discovery import discover_packs
from packmerger.merge.engine import MergedArtifact, MergeError, PackMergeEngine
from packmerger.merge.ordering import MergeOrder, resolve_merge_order
from packmerger.merge.validator import PackValidator, ValidationResult
from packmerger.publish import Publisher, create_publisher
from packmerger.watcher import PackWatcher

logger = logging.getLogger(__name__)

ALREADY_RUNNING = "already running"

ArtifactListener = Callable[[Optional[str], str], None]


class PipelineStatus(str, Enum):
    COMPLETED = "completed"
    NO_PACKS = "no_packs"
    FAILED = "failed"
    ALREADY_RUNNING = "already_running"


@dataclass(frozen=True, slots=True)
class ArtifactSnapshot:
    """Consistent view of the current artifact for external collaborators."""

    path: Path
    content_hash: str
    created_at: datetime
    size_bytes: int
    url: Optional[str] = None

    @property
    def digest(self) -> bytes:
        """Raw 20-byte SHA-1 digest."""
        return digest_bytes(self.content_hash)

    @classmethod
    def from_artifact(cls, artifact: MergedArtifact) -> "ArtifactSnapshot":
        return cls(
            path=artifact.public_path,
            content_hash=artifact.content_hash,
            created_at=artifact.created_at,
            size_bytes=artifact.size_bytes,
        )


@dataclass(frozen=True)
class PipelineOutcome:
    """Result of one pipeline run."""

    status: PipelineStatus
    trigger: str = "manual"
    artifact: Optional[ArtifactSnapshot] = None
    previous_hash: Optional[str] = None
    changed: bool = False
    order: tuple[str, ...] = ()
    validation: Optional[ValidationResult] = None
    error: Optional[str] = None
    publish_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (PipelineStatus.COMPLETED, PipelineStatus.NO_PACKS)


class PipelineState:
    """Owned pipeline state, mutated only while the merge guard is held."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._artifact: Optional[ArtifactSnapshot] = None
        self._last_merge_time: Optional[datetime] = None
        self._last_validation: Optional[ValidationResult] = None

    def snapshot(self) -> Optional[ArtifactSnapshot]:
        with self._lock:
            return self._artifact

    @property
    def last_merge_time(self) -> Optional[datetime]:
        with self._lock:
            return self._last_merge_time

    @property
    def last_validation(self) -> Optional[ValidationResult]:
        with self._lock:
            return self._last_validation

    def open_current(self) -> Optional[tuple[ArtifactSnapshot, BinaryIO]]:
        """Open the current artifact's file together with its snapshot.

        The file is opened under the state lock, so the handle always holds
        the bytes the snapshot's hash describes, even if a later commit
        replaces the file on disk. The caller closes the handle.
        """
        with self._lock:
            if self._artifact is None:
                return None
            return self._artifact, self._artifact.path.open("rb")

    def commit(
        self,
        artifact: ArtifactSnapshot,
        validation: Optional[ValidationResult] = None,
        staged: Optional[Path] = None,
    ) -> Optional[str]:
        """Swap in a new artifact and return the previous content hash.

        A ``staged`` archive is moved onto ``artifact.path`` inside the lock,
        so the file at the public path changes together with the hash.

        Raises:
            MergeError: If the staged archive cannot be moved into place.
        """
        with self._lock:
            if staged is not None and staged != artifact.path:
                try:
                    os.replace(staged, artifact.path)
                except OSError as exc:
                    raise MergeError(f"Cannot promote merged pack to {artifact.path}: {exc}") from exc
            previous = self._artifact.content_hash if self._artifact else None
            self._artifact = artifact
            self._last_merge_time = datetime.now(timezone.utc)
            self._last_validation = validation
            return previous

    def record_url(self, content_hash: str, url: str) -> Optional[ArtifactSnapshot]:
        """Attach a public URL if ``content_hash`` is still the current artifact."""
        with self._lock:
            if self._artifact is None or self._artifact.content_hash != content_hash:
                return self._artifact
            self._artifact = ArtifactSnapshot(
                path=self._artifact.path,
                content_hash=self._artifact.content_hash,
                created_at=self._artifact.created_at,
                size_bytes=self._artifact.size_bytes,
                url=url,
            )
            return self._artifact


@dataclass
class MergeRequest:
    """Handle returned by :meth:`Orchestrator.request_merge`."""

    accepted: bool
    reason: Optional[str] = None
    _done: threading.Event = field(default_factory=threading.Event, repr=False)
    _outcome: Optional[PipelineOutcome] = field(default=None, repr=False)

    def wait(self, timeout: Optional[float] = None) -> Optional[PipelineOutcome]:
        """Block until the merge finishes; rejected requests return immediately."""
        if not self.accepted:
            return PipelineOutcome(status=PipelineStatus.ALREADY_RUNNING, error=self.reason)
        self._done.wait(timeout)
        return self._outcome

    def _finish(self, outcome: PipelineOutcome) -> None:
        self._outcome = outcome
        self._done.set()


class Orchestrator:
    """Runs the merge pipeline with at-most-one concurrent execution."""

    def __init__(
        self,
        config: PackMergerConfig,
        *,
        engine: Optional[PackMergeEngine] = None,
        validator: Optional[PackValidator] = None,
        publisher: Optional[Publisher] = None,
        state: Optional[PipelineState] = None,
    ) -> None:
        self.config = config
        self._engine_override = engine
        self.engine = engine or self._build_engine(config)
        self.validator = validator or PackValidator()
        self.publisher = publisher
        if self.publisher is None and config.publish.auto_publish:
            self.publisher = create_publisher(config)
        self.state = state or PipelineState()
        self.watcher: Optional[PackWatcher] = None
        self._guard = threading.Lock()
        self._listeners: list[ArtifactListener] = []
        self._worker: Optional[threading.Thread] = None

    # ── Queries ───────────────────────────────────────────────────

    @property
    def is_merging(self) -> bool:
        return self._guard.locked()

    @property
    def last_merge_time(self) -> Optional[datetime]:
        return self.state.last_merge_time

    @property
    def last_validation(self) -> Optional[ValidationResult]:
        return self.state.last_validation

    def current_artifact(self) -> Optional[ArtifactSnapshot]:
        return self.state.snapshot()

    def open_artifact(self) -> Optional[tuple[ArtifactSnapshot, BinaryIO]]:
        """Snapshot plus an open handle on its bytes; see :meth:`PipelineState.open_current`."""
        return self.state.open_current()

    def add_listener(self, listener: ArtifactListener) -> None:
        """Register ``listener(old_hash, new_hash)`` for artifact changes."""
        self._listeners.append(listener)

    def plan(self) -> MergeOrder:
        """Resolve the merge order for the packs currently on disk."""
        packs = discover_packs(self.config.packs_dir)
        return resolve_merge_order(
            packs,
            self.config.priority,
            self.config.target_rules(),
            include_unlisted=self.config.merge.include_unlisted_packs,
        )

    def validate(self, path: Optional[Path] = None) -> ValidationResult:
        """Validate an archive; defaults to the current (or configured) artifact."""
        if path is None:
            snapshot = self.state.snapshot()
            path = snapshot.path if snapshot else self.config.output_file()
        return self.validator.validate(path)

    # ── Running ───────────────────────────────────────────────────

    def run_pipeline(self, trigger: str = "manual") -> PipelineOutcome:
        """Run the pipeline on the calling thread.

        Returns immediately with ``ALREADY_RUNNING`` when another run holds
        the guard.
        """
        if not self._guard.acquire(blocking=False):
            logger.info("Merge requested by %s rejected: a merge is already in progress", trigger)
            return PipelineOutcome(
                status=PipelineStatus.ALREADY_RUNNING, trigger=trigger, error=ALREADY_RUNNING
            )
        try:
            return self._execute(trigger)
        finally:
            self._guard.release()

    def request_merge(self, trigger: str = "manual") -> MergeRequest:
        """Start the pipeline on a worker thread unless one is already running."""
        if not self._guard.acquire(blocking=False):
            logger.info("Merge requested by %s rejected: a merge is already in progress", trigger)
            return MergeRequest(accepted=False, reason=ALREADY_RUNNING)

        request = MergeRequest(accepted=True)

        def _worker() -> None:
            outcome: Optional[PipelineOutcome] = None
            try:
                outcome = self._execute(trigger)
            finally:
                self._guard.release()
                request._finish(
                    outcome
                    or PipelineOutcome(status=PipelineStatus.FAILED, trigger=trigger, error="worker aborted")
                )

        try:
            thread = threading.Thread(target=_worker, name="packmerger-merge", daemon=True)
            thread.start()
        except RuntimeError:
            self._guard.release()
            raise
        self._worker = thread
        return request

    def wait_idle(self, timeout: Optional[float] = None) -> None:
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)

    # ── Lifecycle ─────────────────────────────────────────────────

    def start(self) -> Optional[MergeRequest]:
        """Start hot reload and kick off the startup merge if configured."""
        request = None
        if self.config.merge.auto_merge_on_startup:
            request = self.request_merge("startup")
        self.start_watcher()
        return request

    def stop(self, timeout: Optional[float] = None) -> None:
        self.stop_watcher()
        self.wait_idle(timeout)

    def start_watcher(self) -> Optional[PackWatcher]:
        hot_reload = self.config.merge.hot_reload
        if not hot_reload.enabled:
            return None
        self.stop_watcher()
        watcher = PackWatcher(
            self.config.packs_dir,
            lambda: self.request_merge("watcher"),
            debounce_seconds=hot_reload.debounce_seconds,
            poll_interval_seconds=hot_reload.poll_interval_seconds,
        )
        if watcher.start():
            self.watcher = watcher
        return self.watcher

    def stop_watcher(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None

    def reload(self, config: PackMergerConfig) -> None:
        """Swap configuration and restart the watcher."""
        was_watching = self.watcher is not None
        self.stop_watcher()
        self.config = config
        if self._engine_override is None:
            self.engine = self._build_engine(config)
        self.publisher = create_publisher(config) if config.publish.auto_publish else None
        if was_watching:
            self.start_watcher()

    # ── Internal ──────────────────────────────────────────────────

    @staticmethod
    def _build_engine(config: PackMergerConfig) -> PackMergeEngine:
        return PackMergeEngine(config.packs_dir, config.output_file(), config.merge_settings())

    def _execute(self, trigger: str) -> PipelineOutcome:
        try:
            return self._pipeline(trigger)
        except Exception as exc:
            logger.exception("Merge failed")
            return PipelineOutcome(status=PipelineStatus.FAILED, trigger=trigger, error=str(exc))

    def _pipeline(self, trigger: str) -> PipelineOutcome:
        packs = discover_packs(self.config.packs_dir)
        if not packs:
            logger.warning("No resource packs found in %s", self.config.packs_dir)
            return PipelineOutcome(status=PipelineStatus.NO_PACKS, trigger=trigger)
        logger.info("Discovered %d pack(s): %s", len(packs), list(packs))

        order = resolve_merge_order(
            packs,
            self.config.priority,
            self.config.target_rules(),
            include_unlisted=self.config.merge.include_unlisted_packs,
        )
        artifact = self.engine.merge(order, stage=True)
        if artifact is None:
            return PipelineOutcome(
                status=PipelineStatus.NO_PACKS, trigger=trigger, order=order.names
            )

        validation = self.validator.validate(artifact.path)
        snapshot = ArtifactSnapshot.from_artifact(artifact)
        staged = artifact.path if artifact.staged else None
        previous_hash = self.state.commit(snapshot, validation, staged)
        changed = previous_hash != snapshot.content_hash
        logger.info("Merged pack SHA1: %s", snapshot.content_hash)

        publish_error = None
        if self.config.publish.auto_publish and self.publisher is not None:
            try:
                url = self.publisher.publish(snapshot.path, snapshot.content_hash)
                snapshot = self.state.record_url(snapshot.content_hash, url) or snapshot
                logger.info("Pack published successfully: %s", url)
            except Exception as exc:
                publish_error = str(exc)
                logger.error("Publish via %s failed: %s", self.publisher.name, exc)

        if changed:
            self._notify(previous_hash, snapshot.content_hash)
        else:
            logger.info("Merged pack unchanged")

        return PipelineOutcome(
            status=PipelineStatus.COMPLETED,
            trigger=trigger,
            artifact=snapshot,
            previous_hash=previous_hash,
            changed=changed,
            order=order.names,
            validation=validation,
            publish_error=publish_error,
        )

    def _notify(self, old_hash: Optional[str], new_hash: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(old_hash, new_hash)
            except Exception:
                logger.exception("Artifact change listener failed")


__all__ = [
    "ALREADY_RUNNING",
    "ArtifactSnapshot",
    "MergeRequest",
    "Orchestrator",
    "PipelineOutcome",
    "PipelineState",
    "PipelineStatus",
]
