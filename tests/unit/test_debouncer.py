"""Debounce state machine used by the packs watcher."""

from __future__ import annotations

from packmerger.watcher import Debouncer


class TestDebouncer:
    def test_burst_fires_once_after_quiet_window(self) -> None:
        debouncer = Debouncer(5.0)

        for t in (0.0, 1.0, 2.0):
            debouncer.notify(now=t)

        assert not debouncer.poll(now=6.9)
        assert debouncer.poll(now=7.0)
        assert not debouncer.poll(now=8.0)
        assert not debouncer.pending

    def test_idle_never_fires(self) -> None:
        debouncer = Debouncer(5.0)

        assert not debouncer.poll(now=100.0)

    def test_new_event_extends_the_window(self) -> None:
        debouncer = Debouncer(5.0)
        debouncer.notify(now=0.0)
        debouncer.notify(now=4.0)

        assert not debouncer.poll(now=5.0)
        assert debouncer.poll(now=9.0)

    def test_uses_injected_clock(self) -> None:
        now = [10.0]
        debouncer = Debouncer(1.0, clock=lambda: now[0])

        debouncer.notify()
        assert debouncer.last_event == 10.0
        now[0] = 11.5

        assert debouncer.poll()

    def test_reset_clears_pending(self) -> None:
        debouncer = Debouncer(0.0)
        debouncer.notify(now=0.0)

        debouncer.reset()

        assert not debouncer.pending
        assert not debouncer.poll(now=1.0)

    def test_zero_window_fires_on_next_poll(self) -> None:
        debouncer = Debouncer(0.0)
        debouncer.notify(now=3.0)

        assert debouncer.poll(now=3.0)
