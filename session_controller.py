"""State-machine based voice session orchestration."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable, Optional

from catalog import CommandCatalog
from config import EngineSettings
from dispatcher import ActionDispatcher
from interfaces import CaptureService, Scheduler, TimerHandle
from matcher import CommandMatcher
from models import CaptureEvent, CaptureEventKind, ErrorKind, RecognitionState
from session_machine import Effect, EffectType, Event, EventType, transition
from speech_output import SpeechOutputArbiter

log = logging.getLogger(__name__)

StateListener = Callable[[RecognitionState], None]

_CAPTURE_EVENTS = {
    CaptureEventKind.STARTED: EventType.CAPTURE_STARTED,
    CaptureEventKind.INTERIM: EventType.INTERIM,
    CaptureEventKind.FINAL: EventType.FINAL,
    CaptureEventKind.ERROR: EventType.CAPTURE_ERROR,
    CaptureEventKind.ENDED: EventType.CAPTURE_ENDED,
}


class VoiceSession:
    """The single recognition session of the application.

    Owns the only ``RecognitionState`` and is the only code that replaces it.
    Capture events, dispatcher requests and public calls all become ``Event``s
    that are applied in arrival order; events raised while another one is
    being applied are queued behind it. Scheduled callbacks and capture
    callbacks carry the epoch that was current when they were created and are
    dropped once ``start()`` or ``stop()`` has moved the epoch on.
    """

    def __init__(
        self,
        capture: CaptureService,
        arbiter: SpeechOutputArbiter,
        scheduler: Scheduler,
        settings: Optional[EngineSettings] = None,
        matcher: Optional[CommandMatcher] = None,
        catalog: Optional[CommandCatalog] = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        self._capture = capture
        self._arbiter = arbiter
        self._scheduler = scheduler
        self._matcher = matcher or CommandMatcher(
            threshold=self._settings.fuzzy_threshold,
            containment_base=self._settings.containment_base,
            containment_weight=self._settings.containment_weight,
            token_windows=self._settings.token_windows,
        )
        self._catalog = catalog or CommandCatalog(())
        self._dispatcher = ActionDispatcher(
            self,
            arbiter,
            settle_delay_s=self._settings.settle_delay_s,
            feedback_clear_s=self._settings.feedback_clear_s,
        )

        self._lock = threading.RLock()
        self._state = RecognitionState()
        self._epoch = 0
        self._queue: deque[Event] = deque()
        self._draining = False
        self._timers: dict[int, TimerHandle] = {}
        self._timer_seq = 0
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> RecognitionState:
        return self._state

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def catalog(self) -> CommandCatalog:
        return self._catalog

    def bind_catalog(self, catalog: CommandCatalog) -> None:
        """Install the catalog; its actions usually close over this session."""
        self._catalog = catalog

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> None:
        self._post(Event(EventType.START))

    def stop(self) -> None:
        self._post(Event(EventType.STOP))

    # ------------------------------------------------------------------
    # Requests from the dispatcher
    # ------------------------------------------------------------------

    def request(self, event: Event, epoch: int) -> bool:
        if epoch != self._epoch:
            log.debug("Dropping stale %s from epoch %d", event.type.value, epoch)
            return False
        self._post(event)
        return True

    def call_later(self, delay_s: float, callback: Callable[[], None], epoch: int) -> None:
        self._timer_seq += 1
        key = self._timer_seq

        def fire() -> None:
            with self._lock:
                self._timers.pop(key, None)
                if epoch != self._epoch:
                    return
                try:
                    callback()
                except Exception:
                    log.exception("Scheduled callback failed")
                    self._post(Event(EventType.FAULT, error=ErrorKind.UNKNOWN))

        self._timers[key] = self._scheduler.call_later(delay_s, fire)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _on_capture_event(self, epoch: int, event: CaptureEvent) -> None:
        with self._lock:
            if epoch != self._epoch:
                log.debug("Ignoring %s from a previous capture session", event.kind.value)
                return
            self._post(
                Event(
                    _CAPTURE_EVENTS[event.kind],
                    text=event.text,
                    error=(event.error or ErrorKind.UNKNOWN)
                    if event.kind == CaptureEventKind.ERROR
                    else None,
                )
            )

    def _post(self, event: Event) -> None:
        with self._lock:
            self._queue.append(event)
            if self._draining:
                return
            self._draining = True
            try:
                while self._queue:
                    self._apply(self._queue.popleft())
            finally:
                self._draining = False

    def _apply(self, event: Event) -> None:
        previous = self._state
        self._state, effects = transition(previous, event)
        if self._state != previous:
            log.debug(
                "%s: %s -> %s", event.type.value, previous.phase.value, self._state.phase.value
            )
            self._notify()
        for effect in effects:
            try:
                self._perform(effect)
            except Exception:
                log.exception("Effect %s failed", effect.type.value)
                self._queue.append(Event(EventType.FAULT, error=ErrorKind.UNKNOWN))

    def _perform(self, effect: Effect) -> None:
        kind = effect.type
        if kind == EffectType.NEW_EPOCH:
            self._epoch += 1
            self._cancel_timers()
        elif kind == EffectType.START_CAPTURE:
            epoch = self._epoch
            self._capture.start(lambda event: self._on_capture_event(epoch, event))
        elif kind == EffectType.STOP_CAPTURE:
            self._capture.stop()
        elif kind == EffectType.GREET:
            if self._settings.greeting:
                self._arbiter.speak(self._settings.greeting)
        elif kind == EffectType.DISPATCH:
            self._dispatch(effect.text)
        elif kind == EffectType.RECOVER:
            log.warning("Recognition failed: %s", self._state.error.value if self._state.error else "")
            self._queue.append(Event(EventType.RECOVER))
        elif kind == EffectType.SCHEDULE_CLEAR:
            epoch = self._epoch
            self.call_later(
                self._settings.feedback_clear_s,
                lambda: self.request(Event(EventType.CLEAR_FEEDBACK), epoch),
                epoch,
            )

    def _dispatch(self, text: str) -> None:
        result = self._matcher.match(text, self._catalog)
        suggestions: tuple[str, ...] = ()
        if not result.matched:
            suggestions = tuple(
                c.description
                for c in self._matcher.suggest(text, self._catalog, self._settings.suggestion_limit)
            )
        self._dispatcher.dispatch(result, suggestions)

    def _cancel_timers(self) -> None:
        timers, self._timers = self._timers, {}
        for timer in timers.values():
            timer.cancel()

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                log.exception("State listener failed")
