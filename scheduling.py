"""Qt-backed one-shot timers for the session's settle and feedback delays."""

from __future__ import annotations

from typing import Callable

try:
    from PySide6.QtCore import QTimer
except Exception:  # pragma: no cover
    QTimer = None  # type: ignore


class QtTimerHandle:
    def __init__(self, timer: "QTimer") -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class QtScheduler:
    """Runs callbacks on the Qt event loop of the calling (main) thread."""

    def __init__(self) -> None:
        if QTimer is None:
            raise RuntimeError("PySide6 is not installed")
        self._live: set[QTimer] = set()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer()
        timer.setSingleShot(True)

        def on_timeout() -> None:
            self._live.discard(timer)
            callback()

        timer.timeout.connect(on_timeout)
        # Keep a reference until the timer fires, or Qt drops it.
        self._live.add(timer)
        timer.start(max(0, int(delay_s * 1000)))
        return QtTimerHandle(timer)
