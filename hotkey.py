"""Global push-to-talk hotkey based on pynput."""

from __future__ import annotations

import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class GlobalHotkeyAdapter:
    """Calls ``on_activate`` / ``on_release`` for one named key.

    In ``hold`` mode a press activates and the release fires ``on_release``
    (end of utterance). In ``toggle`` mode every press flips between
    ``on_activate`` and ``on_deactivate``. Key auto-repeat is ignored.
    """

    def __init__(self, hotkey_name: str = "Key.alt_l", mode: str = "hold") -> None:
        if mode not in ("hold", "toggle"):
            raise ValueError(f"unknown hotkey mode: {mode!r}")
        self._hotkey_name = hotkey_name
        self._mode = mode
        self._listener: Optional[object] = None
        self._pressed = False
        self._active = False
        self._lock = threading.Lock()

    def start(
        self,
        on_activate: Callable[[], None],
        on_release: Callable[[], None],
        on_deactivate: Optional[Callable[[], None]] = None,
    ) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")

        def _on_press(key: object) -> None:
            if str(key) != self._hotkey_name:
                return
            with self._lock:
                if self._pressed:
                    return
                self._pressed = True
                if self._mode == "toggle":
                    self._active = not self._active
                    callback = on_activate if self._active else on_deactivate
                else:
                    callback = on_activate
            if callback is not None:
                callback()

        def _on_release(key: object) -> None:
            if str(key) != self._hotkey_name:
                return
            with self._lock:
                if not self._pressed:
                    return
                self._pressed = False
            if self._mode == "hold":
                on_release()

        self._listener = keyboard.Listener(on_press=_on_press, on_release=_on_release)
        self._listener.start()

    def reset(self) -> None:
        """Forget toggle state, e.g. after the session stopped on its own."""
        with self._lock:
            self._active = False

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None
