"""Packs directory watcher."""

from __future__ import annotations

import shutil
import threading
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from packmerger.watcher import PackEventHandler, PackWatcher, is_relevant_name


def _wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestRelevantNames:
    @pytest.mark.parametrize("name", ["pack.mcmeta", "pack.png", "faithful.zip", "Sounds.ZIP", "my-pack"])
    def test_relevant(self, name: str) -> None:
        assert is_relevant_name(name)

    @pytest.mark.parametrize("name", ["notes.txt", "faithful.zip.part", "image.png"])
    def test_irrelevant(self, name: str) -> None:
        assert not is_relevant_name(name)


class TestPackEventHandler:
    def _handler(self, tmp_path: Path) -> tuple[PackEventHandler, MagicMock]:
        on_change = MagicMock()
        return PackEventHandler(tmp_path, on_change), on_change

    def test_top_level_archive_created(self, tmp_path: Path) -> None:
        handler, on_change = self._handler(tmp_path)

        handler.dispatch(FileCreatedEvent(str(tmp_path / "a.zip")))

        on_change.assert_called_once_with("created", "a.zip")

    def test_pack_directory_created(self, tmp_path: Path) -> None:
        handler, on_change = self._handler(tmp_path)

        handler.dispatch(DirCreatedEvent(str(tmp_path / "my-pack")))

        on_change.assert_called_once_with("created", "my-pack")

    def test_nested_and_irrelevant_changes_ignored(self, tmp_path: Path) -> None:
        handler, on_change = self._handler(tmp_path)

        handler.dispatch(FileModifiedEvent(str(tmp_path / "my-pack" / "assets" / "a.png")))
        handler.dispatch(FileCreatedEvent(str(tmp_path / "readme.txt")))

        on_change.assert_not_called()

    def test_move_into_place_uses_destination(self, tmp_path: Path) -> None:
        handler, on_change = self._handler(tmp_path)

        handler.dispatch(FileMovedEvent(str(tmp_path / "a.zip.part"), str(tmp_path / "a.zip")))

        on_change.assert_called_once_with("moved", "a.zip")


class TestPackWatcher:
    def _watcher(self, packs_dir: Path, on_trigger, observer: MagicMock, clock=time.monotonic) -> PackWatcher:
        return PackWatcher(
            packs_dir,
            on_trigger,
            debounce_seconds=5.0,
            poll_interval_seconds=0.01,
            clock=clock,
            observer_factory=lambda: observer,
        )

    def test_fires_once_after_debounce(self, tmp_path: Path) -> None:
        now = [0.0]
        fired = threading.Event()
        calls: list[float] = []

        def on_trigger() -> None:
            calls.append(now[0])
            fired.set()

        observer = MagicMock()
        observer.is_alive.return_value = True
        watcher = self._watcher(tmp_path, on_trigger, observer, clock=lambda: now[0])
        assert watcher.start()
        try:
            for t in (0.0, 1.0, 2.0):
                now[0] = t
                watcher._on_change("created", "a.zip")
            now[0] = 6.0
            time.sleep(0.05)
            assert not fired.is_set()

            now[0] = 7.0
            assert fired.wait(2.0)
            time.sleep(0.05)
            assert calls == [7.0]
        finally:
            watcher.stop()

        observer.schedule.assert_called_once()
        observer.stop.assert_called_once()

    def test_start_creates_missing_directory(self, tmp_path: Path) -> None:
        observer = MagicMock()
        observer.is_alive.return_value = True
        packs_dir = tmp_path / "packs"
        watcher = self._watcher(packs_dir, lambda: None, observer)

        try:
            assert watcher.start()
            assert packs_dir.is_dir()
            assert watcher.is_running
        finally:
            watcher.stop()

    def test_start_failure_returns_false(self, tmp_path: Path) -> None:
        observer = MagicMock()
        observer.start.side_effect = OSError("inotify limit reached")

        watcher = self._watcher(tmp_path, lambda: None, observer)

        assert not watcher.start()
        assert not watcher.is_running

    def test_stop_is_idempotent(self, tmp_path: Path) -> None:
        observer = MagicMock()
        observer.is_alive.return_value = True
        watcher = self._watcher(tmp_path, lambda: None, observer)
        watcher.start()

        watcher.stop()
        watcher.stop()

        observer.stop.assert_called_once()
        assert not watcher.is_running

    def test_stops_when_directory_disappears(self, tmp_path: Path) -> None:
        observer = MagicMock()
        observer.is_alive.return_value = True
        packs_dir = tmp_path / "packs"
        watcher = self._watcher(packs_dir, lambda: None, observer)
        watcher.start()

        shutil.rmtree(packs_dir)

        assert _wait_for(lambda: not watcher.is_running)

    def test_trigger_errors_do_not_kill_the_loop(self, tmp_path: Path) -> None:
        now = [0.0]
        attempts: list[int] = []

        def on_trigger() -> None:
            attempts.append(1)
            raise RuntimeError("boom")

        observer = MagicMock()
        observer.is_alive.return_value = True
        watcher = self._watcher(tmp_path, on_trigger, observer, clock=lambda: now[0])
        watcher.start()
        try:
            watcher._on_change("created", "a.zip")
            now[0] = 10.0
            assert _wait_for(lambda: len(attempts) == 1)

            watcher._on_change("created", "b.zip")
            now[0] = 20.0
            assert _wait_for(lambda: len(attempts) == 2)
            assert watcher.is_running
        finally:
            watcher.stop()


class TestPackWatcherWithObserver:
    @pytest.mark.slow
    def test_real_filesystem_change_triggers(self, tmp_path: Path) -> None:
        fired = threading.Event()
        watcher = PackWatcher(
            tmp_path, fired.set, debounce_seconds=0.2, poll_interval_seconds=0.05
        )
        assert watcher.start()
        try:
            (tmp_path / "new-pack.zip").write_bytes(b"zip")
            assert fired.wait(5.0)
        finally:
            watcher.stop()
