"""Packs-directory watcher with debounced re-merge triggering.

A watchdog observer reports create/modify/delete/move events for the top
level of the packs directory. Relevant events only stamp the time of the
last change; a polling thread fires the trigger once the directory has
been quiet for the debounce window. Copying a large pack therefore causes
one merge instead of one per written chunk.

If the watched directory disappears or the observer dies, the watcher
logs it and stops; it does not retry on its own.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from packmerger.merge.discovery import ARCHIVE_SUFFIX, OVERRIDE_FILES

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

_WATCHED_EVENT_TYPES = frozenset({"created", "modified", "deleted", "moved"})


def is_relevant_name(name: str) -> bool:
    """Whether a change to ``name`` in the packs directory can affect the merge.

    Override files, archives and extension-less names (pack directories)
    are relevant; anything else is ignored.
    """
    return name in OVERRIDE_FILES or name.lower().endswith(ARCHIVE_SUFFIX) or "." not in name


class Debouncer:
    """Two-state debounce machine: idle, or pending since the last event.

    ``notify`` moves to (or refreshes) pending; ``poll`` returns True
    exactly once when the quiet period has reached ``window_seconds``
    and goes back to idle.
    """

    def __init__(self, window_seconds: float, clock: Clock = time.monotonic) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_event: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._last_event is not None

    @property
    def last_event(self) -> Optional[float]:
        return self._last_event

    def notify(self, now: Optional[float] = None) -> None:
        with self._lock:
            self._last_event = self._clock() if now is None else now

    def poll(self, now: Optional[float] = None) -> bool:
        with self._lock:
            if self._last_event is None:
                return False
            current = self._clock() if now is None else now
            if current - self._last_event >= self.window_seconds:
                self._last_event = None
                return True
            return False

    def reset(self) -> None:
        with self._lock:
            self._last_event = None


class PackEventHandler(FileSystemEventHandler):
    """Forwards relevant top-level events in ``watched`` to ``on_change``."""

    def __init__(self, watched: Path, on_change: Callable[[str, str], None]) -> None:
        super().__init__()
        self.watched = watched
        self.on_change = on_change

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _WATCHED_EVENT_TYPES:
            return

        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)

        for raw in paths:
            changed = Path(os.fsdecode(raw))
            if changed.parent != self.watched:
                continue
            if is_relevant_name(changed.name):
                self.on_change(event.event_type, changed.name)
                return


class PackWatcher:
    """Watches the packs directory and calls ``on_trigger`` after changes settle."""

    def __init__(
        self,
        packs_dir: Path,
        on_trigger: Callable[[], object],
        *,
        debounce_seconds: float = 5.0,
        poll_interval_seconds: float = 1.0,
        clock: Clock = time.monotonic,
        observer_factory: Callable[[], Observer] = Observer,
    ) -> None:
        self.packs_dir = packs_dir
        self.on_trigger = on_trigger
        self.debounce_seconds = debounce_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.debouncer = Debouncer(debounce_seconds, clock=clock)
        self._observer_factory = observer_factory
        self._observer: Optional[Observer] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> bool:
        """Start watching. Returns False when the observer cannot be started."""
        with self._lock:
            if self._running:
                return True

            self.packs_dir.mkdir(parents=True, exist_ok=True)
            watched = self.packs_dir.resolve()
            handler = PackEventHandler(watched, self._on_change)
            observer = self._observer_factory()
            try:
                observer.schedule(handler, str(watched), recursive=False)
                observer.start()
            except OSError as exc:
                logger.error("File watcher could not start for %s: %s", watched, exc)
                return False

            self.debouncer.reset()
            self._observer = observer
            self._stop_event = threading.Event()
            self._running = True
            self._thread = threading.Thread(
                target=self._run, args=(watched,), name="packmerger-watcher", daemon=True
            )
            self._thread.start()

        logger.info("File watcher started for: %s", watched)
        return True

    def stop(self) -> None:
        """Stop watching and release the observer. Safe to call repeatedly."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._stop_event.set()
            observer, self._observer = self._observer, None
            thread, self._thread = self._thread, None

        if observer is not None:
            observer.stop()
            if observer.is_alive():
                observer.join(timeout=5)
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)
        logger.info("File watcher stopped")

    # ── Internal ──────────────────────────────────────────────────

    def _on_change(self, event_type: str, name: str) -> None:
        logger.debug("File change detected: %s %s", event_type, name)
        if not self.debouncer.pending:
            logger.info(
                "Pack file change detected, waiting %ss before merging...", self.debounce_seconds
            )
        self.debouncer.notify()

    def _run(self, watched: Path) -> None:
        while not self._stop_event.wait(self.poll_interval_seconds):
            observer = self._observer
            if observer is None:
                return
            if not watched.is_dir() or not observer.is_alive():
                logger.warning("File watcher invalidated for %s, stopping watcher", watched)
                self.stop()
                return
            if self.debouncer.poll():
                self._fire()

    def _fire(self) -> None:
        logger.info("Debounce complete, triggering auto-merge...")
        try:
            self.on_trigger()
        except Exception:
            logger.exception("Auto-merge trigger failed")


__all__ = ["Debouncer", "PackEventHandler", "PackWatcher", "is_relevant_name"]
