"""Microphone capture service: recorder + recognizer behind one port."""

from __future__ import annotations

import logging
import threading
from queue import Queue
from typing import Callable, Optional

from errors import AUDIO_CAPTURE, NO_SPEECH, kind_for_platform_code
from models import AudioFrame, CaptureEvent, CaptureEventKind
from recognizer import DashscopeRecognizerAdapter
from recorder import SoundDeviceRecorder

log = logging.getLogger(__name__)


class MicrophoneCaptureService:
    """Implements ``CaptureService`` on top of the recorder and DashScope.

    Events are emitted on worker threads; the host is responsible for
    moving them onto its event loop before they reach the session.
    """

    def __init__(
        self,
        recorder: SoundDeviceRecorder,
        recognizer: DashscopeRecognizerAdapter,
        queue_maxsize: int = 200,
    ) -> None:
        self._recorder = recorder
        self._recognizer = recognizer
        self._queue_maxsize = queue_maxsize
        self._lock = threading.Lock()
        self._on_event: Optional[Callable[[CaptureEvent], None]] = None
        self._active = False

    def replace_recognizer(self, recognizer: DashscopeRecognizerAdapter) -> None:
        with self._lock:
            if self._active:
                self._recognizer.stop()
            self._recognizer = recognizer

    def start(self, on_event: Callable[[CaptureEvent], None]) -> None:
        with self._lock:
            if self._active:
                return
            self._active = True
            self._on_event = on_event
            audio_queue: Queue[AudioFrame | None] = Queue(maxsize=self._queue_maxsize)
            self._recognizer.start(audio_queue, self._relay)
            try:
                self._recorder.start(
                    audio_queue,
                    on_utterance_end=self.finish,
                    on_no_speech=self._no_speech,
                )
            except Exception as exc:
                log.warning("Microphone could not be opened: %s", exc)
                self._active = False
                self._on_event = None
                failure: Optional[Exception] = exc
            else:
                failure = None
        if failure is not None:
            self._recognizer.stop()
            on_event(
                CaptureEvent(
                    kind=CaptureEventKind.ERROR,
                    error=kind_for_platform_code(AUDIO_CAPTURE),
                    message=str(failure),
                )
            )
            return
        on_event(CaptureEvent(kind=CaptureEventKind.STARTED))

    def finish(self) -> None:
        """End the utterance: stop recording and let recognition complete."""
        with self._lock:
            if not self._active:
                return
            self._recorder.stop()

    def stop(self) -> None:
        """Abort capture; no further events are emitted."""
        with self._lock:
            if not self._active:
                return
            self._active = False
            self._on_event = None
        # Outside the lock: the recognizer worker may be waiting on it in _relay.
        self._recorder.stop()
        self._recognizer.stop()

    def _no_speech(self) -> None:
        with self._lock:
            if not self._active:
                return
        self._recorder.stop()
        self._recognizer.stop()
        self._relay(
            CaptureEvent(kind=CaptureEventKind.ERROR, error=kind_for_platform_code(NO_SPEECH))
        )

    def _relay(self, event: CaptureEvent) -> None:
        with self._lock:
            on_event = self._on_event
            terminal = event.kind in (CaptureEventKind.FINAL, CaptureEventKind.ERROR)
            if terminal:
                self._active = False
                self._on_event = None
        if on_event is None:
            return
        on_event(event)
        if terminal:
            on_event(CaptureEvent(kind=CaptureEventKind.ENDED))


EventCallback = Callable[[CaptureEvent], None]


class MainThreadCapture:
    """Hands capture events to ``post`` for delivery on the host's main thread.

    Each event travels with the callback of the ``start`` that produced it, so
    an event still queued when capture restarts reaches its own callback and
    not the new one.
    """

    def __init__(
        self,
        inner: MicrophoneCaptureService,
        post: Callable[[EventCallback, CaptureEvent], None],
    ) -> None:
        self._inner = inner
        self._post = post

    def start(self, on_event: EventCallback) -> None:
        self._inner.start(lambda event: self._post(on_event, event))

    def stop(self) -> None:
        self._inner.stop()

    def finish(self) -> None:
        self._inner.finish()

    def replace_recognizer(self, recognizer: DashscopeRecognizerAdapter) -> None:
        self._inner.replace_recognizer(recognizer)
