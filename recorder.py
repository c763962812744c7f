"""Microphone recorder adapter with simple energy-based endpointing."""

from __future__ import annotations

import threading
import time
from queue import Full, Queue
from typing import Any, Callable, Optional

from models import AudioFrame

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore


class SoundDeviceRecorder:
    """Pushes 16-bit PCM chunks into a queue and watches for end of speech.

    ``on_utterance_end`` fires once after speech was heard and then
    ``silence_ms`` of quiet followed. ``on_no_speech`` fires once if nothing
    louder than ``speech_rms`` arrived within ``no_speech_timeout_s``. Both
    run on a helper thread because the audio callback must not stop its own
    stream.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        speech_rms: float = 500.0,
        silence_ms: int = 900,
        no_speech_timeout_s: float = 6.0,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self.speech_rms = speech_rms
        self.silence_ms = silence_ms
        self.no_speech_timeout_s = no_speech_timeout_s
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self.dropped_chunks = 0
        self._audio_queue: Queue[AudioFrame | None] | None = None
        self._on_utterance_end: Optional[Callable[[], None]] = None
        self._on_no_speech: Optional[Callable[[], None]] = None
        self._heard_speech = False
        self._quiet_ms = 0
        self._started_at = 0.0
        self._signalled = False

    def start(
        self,
        audio_queue: Queue[AudioFrame | None],
        on_utterance_end: Optional[Callable[[], None]] = None,
        on_no_speech: Optional[Callable[[], None]] = None,
    ) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            self._audio_queue = audio_queue
            self._on_utterance_end = on_utterance_end
            self._on_no_speech = on_no_speech
            self._heard_speech = False
            self._quiet_ms = 0
            self._signalled = False
            self._started_at = time.monotonic()
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=blocksize,
                callback=self._on_audio,
            )
            self._stream.start()
            self._running = True

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            if self._stream is not None:
                self._stream.stop()
                self._stream.close()
                self._stream = None
            self._emit_sentinel()

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running or self._audio_queue is None:
            return
        if np is None:
            return
        samples = np.asarray(indata, dtype=np.int16)
        frame = AudioFrame(
            pcm16_bytes=samples.tobytes(),
            sample_rate=self.sample_rate,
            channels=self.channels,
            timestamp_ms=int(time.time() * 1000),
        )
        try:
            self._audio_queue.put_nowait(frame)
        except Full:
            self.dropped_chunks += 1
        self._track_speech(_rms(samples))

    def _track_speech(self, rms: float) -> None:
        if self._signalled:
            return
        if rms >= self.speech_rms:
            self._heard_speech = True
            self._quiet_ms = 0
            return
        if self._heard_speech:
            self._quiet_ms += self.chunk_ms
            if self._quiet_ms >= self.silence_ms:
                self._signal(self._on_utterance_end)
        elif time.monotonic() - self._started_at >= self.no_speech_timeout_s:
            self._signal(self._on_no_speech)

    def _signal(self, callback: Optional[Callable[[], None]]) -> None:
        self._signalled = True
        if callback is not None:
            threading.Thread(target=callback, daemon=True).start()

    def _emit_sentinel(self) -> None:
        if self._audio_queue is None:
            return
        try:
            self._audio_queue.put_nowait(None)
        except Full:
            pass


def _rms(samples: Any) -> float:
    if samples.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(samples.astype(np.float64)))))
