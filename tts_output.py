"""Speech output service backed by pyttsx3 (platform SAPI5 / NSSS / eSpeak)."""

from __future__ import annotations

import logging
import threading
from queue import Empty, Queue
from typing import Any, Optional

from models import Voice

try:
    import pyttsx3
except Exception:  # pragma: no cover
    pyttsx3 = None  # type: ignore

log = logging.getLogger(__name__)


def _voice_locale(raw: Any) -> str:
    """Best-effort locale of a pyttsx3 voice ("tr-TR", "tr", or "")."""
    languages = getattr(raw, "languages", None) or []
    for language in languages:
        if isinstance(language, bytes):
            # eSpeak reports b"\x05tr": a priority byte then the code
            language = language[1:].decode("ascii", errors="ignore")
        language = str(language).strip()
        if language:
            return language.replace("_", "-")
    return ""


class Pyttsx3OutputService:
    """Implements ``OutputService``; synthesis runs on one worker thread.

    ``pitch`` is accepted for interface parity but pyttsx3 drivers expose no
    pitch control, so it is not applied. ``rate`` scales the driver's
    words-per-minute default; ``volume`` maps directly.
    """

    def __init__(self, base_rate_wpm: int = 200) -> None:
        self._base_rate_wpm = base_rate_wpm
        self._engine: Any = None
        self._voices: Optional[list[Voice]] = None
        self._requests: Queue[Optional[tuple[str, Optional[Voice], float, float]]] = Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def list_voices(self) -> list[Voice]:
        with self._lock:
            if self._voices is None:
                engine = self._ensure_engine()
                if engine is None:
                    return []
                self._voices = [
                    Voice(name=str(v.name), locale=_voice_locale(v), ref=v.id)
                    for v in engine.getProperty("voices")
                ]
                log.debug("Loaded %d synthesis voices", len(self._voices))
            return list(self._voices)

    def speak(
        self,
        text: str,
        voice: Optional[Voice],
        pitch: float,
        rate: float,
        volume: float,
    ) -> None:
        with self._lock:
            if self._ensure_engine() is None:
                return
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(target=self._worker, daemon=True)
                self._thread.start()
        self._requests.put((text, voice, rate, volume))

    def cancel(self) -> None:
        while True:
            try:
                self._requests.get_nowait()
            except Empty:
                break
        if self._engine is not None:
            self._engine.stop()

    def close(self) -> None:
        self.cancel()
        self._requests.put(None)

    def _ensure_engine(self) -> Any:
        if self._engine is None:
            if pyttsx3 is None:
                log.error("pyttsx3 is not installed; speech output disabled")
                return None
            self._engine = pyttsx3.init()
        return self._engine

    def _worker(self) -> None:
        while True:
            request = self._requests.get()
            if request is None:
                return
            text, voice, rate, volume = request
            engine = self._engine
            if voice is not None:
                engine.setProperty("voice", voice.ref)
            engine.setProperty("rate", int(self._base_rate_wpm * rate))
            engine.setProperty("volume", max(0.0, min(1.0, volume)))
            engine.say(text)
            try:
                engine.runAndWait()
            except RuntimeError as exc:
                # pyttsx3 raises when a loop is already running after a stop()
                log.warning("Speech playback interrupted: %s", exc)
