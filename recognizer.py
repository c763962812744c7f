"""ASR recognizer adapter using DashScope qwen3-asr-flash.

The qwen3-asr-flash model accepts complete audio (file path, URL, or base64)
and streams back recognition results via ``stream=True``. We collect PCM
frames from the audio queue until the recorder's sentinel, wrap them as a
base64 WAV and feed them to the model with a language hint. Growing
hypotheses become ``interim`` capture events, the last one the ``final``.
"""

from __future__ import annotations

import base64
import io
import logging
import os
import threading
import wave
from queue import Empty, Queue
from typing import Callable, Optional

from errors import NETWORK, kind_for_platform_code
from models import AudioFrame, CaptureEvent, CaptureEventKind, ErrorKind

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

log = logging.getLogger(__name__)


def _pcm_to_wav_base64(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> str:
    """Convert raw PCM bytes to a base64-encoded WAV string."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return base64.b64encode(buf.getvalue()).decode("ascii")


def _error(kind: ErrorKind, message: str) -> CaptureEvent:
    return CaptureEvent(kind=CaptureEventKind.ERROR, error=kind, message=message)


class DashscopeRecognizerAdapter:
    def __init__(
        self,
        api_key: str,
        model: str = "qwen3-asr-flash",
        language: str = "tr",
        request_timeout_s: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._language = language
        self._request_timeout_s = request_timeout_s
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._audio_queue: Optional[Queue[AudioFrame | None]] = None
        self._on_event: Optional[Callable[[CaptureEvent], None]] = None

    def start(
        self,
        audio_queue: Queue[AudioFrame | None],
        on_event: Callable[[CaptureEvent], None],
    ) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._audio_queue = audio_queue
        self._on_event = on_event
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=0.5)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _worker(self) -> None:
        """Consume audio frames until the sentinel, then recognise."""
        if self._audio_queue is None or self._on_event is None:
            return

        frames = self._drain(self._audio_queue)
        if self._stop_event.is_set():
            return
        if not frames:
            self._on_event(_error(ErrorKind.NO_SPEECH_DETECTED, "no audio captured"))
            return

        pcm = b"".join(f.pcm16_bytes for f in frames)
        last = frames[-1]
        self._recognize_stream(_pcm_to_wav_base64(pcm, last.sample_rate, last.channels))

    def _drain(self, audio_queue: Queue[AudioFrame | None]) -> list[AudioFrame]:
        frames: list[AudioFrame] = []
        while not self._stop_event.is_set():
            try:
                frame = audio_queue.get(timeout=0.2)
            except Empty:
                continue
            if frame is None:
                break
            if frame.pcm16_bytes:
                frames.append(frame)
        return frames

    def _recognize_stream(self, wav_base64: str) -> None:
        """Send audio to dashscope and stream interim/final results."""
        if self._on_event is None:
            return
        if dashscope is None:
            self._on_event(_error(ErrorKind.UNKNOWN, "dashscope is not installed"))
            return

        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            self._on_event(_error(ErrorKind.AUTH_FAILED, "No API key configured"))
            return

        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": ""}]},
                    {"role": "user", "content": [{"audio": wav_base64}]},
                ],
                result_format="message",
                asr_options={"enable_itn": False, "language": self._language},
                stream=True,
                timeout=self._request_timeout_s,
            )
        except Exception as exc:
            self._on_event(self._to_error_event(exc))
            return

        latest_text = ""
        try:
            for chunk in response:
                if self._stop_event.is_set():
                    return
                text = self._chunk_text(chunk)
                if text:
                    latest_text = text
                    self._on_event(CaptureEvent(kind=CaptureEventKind.INTERIM, text=text))
        except Exception as exc:
            self._on_event(self._to_error_event(exc))
            return

        log.debug("Final transcript: %r", latest_text)
        self._on_event(CaptureEvent(kind=CaptureEventKind.FINAL, text=latest_text))

    @staticmethod
    def _chunk_text(chunk: object) -> str:
        """Text of one streaming chunk; a chunk carrying a failure status raises."""
        if not isinstance(chunk, dict):
            return ""
        status = chunk.get("status_code")
        if status is not None and int(status) != 200:
            raise RuntimeError(f"{status} {chunk.get('code', '')}: {chunk.get('message', '')}")
        try:
            value = chunk["output"]["choices"][0]["message"]["content"][0]
        except (KeyError, IndexError, TypeError):
            return ""
        return str(value.get("text", "")) if isinstance(value, dict) else ""

    def _to_error_event(self, exc: Exception) -> CaptureEvent:
        """Map an SDK/network exception to a capture error event."""
        message = str(exc)
        low = message.lower()
        if "401" in low or "403" in low or "auth" in low or "api key" in low:
            kind = ErrorKind.AUTH_FAILED
        elif "timeout" in low or "network" in low or "connection" in low:
            kind = kind_for_platform_code(NETWORK)
        else:
            kind = ErrorKind.UNKNOWN
        log.warning("Recognition request failed (%s): %s", kind.value, message)
        return _error(kind, message)
