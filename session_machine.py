"""Pure transition function for the recognition session.

``transition(state, event)`` returns the next ``RecognitionState`` and the
effects the session controller has to perform. It never touches ports,
timers or clocks, so every edge can be tested without an audio stack.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from errors import LISTENING_MESSAGE, message_for
from models import ErrorKind, Phase, RecognitionState


class EventType(str, Enum):
    START = "start"
    STOP = "stop"
    CAPTURE_STARTED = "capture_started"
    INTERIM = "interim"
    FINAL = "final"
    CAPTURE_ERROR = "capture_error"
    CAPTURE_ENDED = "capture_ended"
    FAULT = "fault"
    RECOVER = "recover"
    MATCHED = "matched"
    NOT_UNDERSTOOD = "not_understood"
    TURN_COMPLETE = "turn_complete"
    CLEAR_FEEDBACK = "clear_feedback"


class EffectType(str, Enum):
    NEW_EPOCH = "new_epoch"
    START_CAPTURE = "start_capture"
    STOP_CAPTURE = "stop_capture"
    GREET = "greet"
    DISPATCH = "dispatch"
    RECOVER = "recover"
    SCHEDULE_CLEAR = "schedule_clear"


@dataclass(frozen=True)
class Event:
    type: EventType
    text: str = ""
    error: Optional[ErrorKind] = None
    command: Optional[str] = None
    suggestions: tuple[str, ...] = ()


@dataclass(frozen=True)
class Effect:
    type: EffectType
    text: str = ""


Transition = tuple[RecognitionState, list[Effect]]


def transition(state: RecognitionState, event: Event) -> Transition:
    handler = _HANDLERS.get(event.type)
    if handler is None:
        return state, []
    return handler(state, event)


def _start(state: RecognitionState, event: Event) -> Transition:
    if state.phase in (Phase.LISTENING, Phase.PROCESSING):
        return state, []
    listening = RecognitionState(phase=Phase.LISTENING, feedback_text=LISTENING_MESSAGE)
    return listening, [Effect(EffectType.NEW_EPOCH), Effect(EffectType.START_CAPTURE)]


def _stop(state: RecognitionState, event: Event) -> Transition:
    effects = [Effect(EffectType.NEW_EPOCH)]
    if state.phase in (Phase.LISTENING, Phase.PROCESSING):
        effects.append(Effect(EffectType.STOP_CAPTURE))
    return RecognitionState(last_matched_command=state.last_matched_command), effects


def _capture_started(state: RecognitionState, event: Event) -> Transition:
    if state.phase != Phase.LISTENING:
        return state, []
    return state, [Effect(EffectType.GREET)]


def _interim(state: RecognitionState, event: Event) -> Transition:
    if state.phase != Phase.LISTENING:
        return state, []
    return replace(state, transcript=event.text), []


def _final(state: RecognitionState, event: Event) -> Transition:
    if state.phase != Phase.LISTENING:
        return state, []
    processing = replace(state, phase=Phase.PROCESSING, transcript=event.text)
    return processing, [Effect(EffectType.STOP_CAPTURE), Effect(EffectType.DISPATCH, event.text)]


def _capture_error(state: RecognitionState, event: Event) -> Transition:
    if state.phase != Phase.LISTENING:
        return state, []
    return _fail(state, event.error or ErrorKind.UNKNOWN, stop_capture=True)


def _fault(state: RecognitionState, event: Event) -> Transition:
    if state.phase == Phase.IDLE:
        return state, []
    return _fail(state, event.error or ErrorKind.UNKNOWN, stop_capture=state.phase == Phase.LISTENING)


def _fail(state: RecognitionState, kind: ErrorKind, stop_capture: bool) -> Transition:
    failed = replace(
        state,
        phase=Phase.ERROR,
        error=kind,
        feedback_text=message_for(kind),
        suggestions=(),
    )
    effects = [Effect(EffectType.STOP_CAPTURE)] if stop_capture else []
    effects += [Effect(EffectType.RECOVER), Effect(EffectType.SCHEDULE_CLEAR)]
    return failed, effects


def _recover(state: RecognitionState, event: Event) -> Transition:
    if state.phase != Phase.ERROR:
        return state, []
    return replace(state, phase=Phase.IDLE, error=None), []


def _capture_ended(state: RecognitionState, event: Event) -> Transition:
    if state.phase != Phase.LISTENING:
        return state, []
    return replace(state, phase=Phase.IDLE, feedback_text=""), []


def _matched(state: RecognitionState, event: Event) -> Transition:
    if state.phase != Phase.PROCESSING:
        return state, []
    return replace(
        state, last_matched_command=event.command, feedback_text=event.text, suggestions=()
    ), []


def _not_understood(state: RecognitionState, event: Event) -> Transition:
    if state.phase != Phase.PROCESSING:
        return state, []
    return replace(state, feedback_text=event.text, suggestions=event.suggestions), []


def _turn_complete(state: RecognitionState, event: Event) -> Transition:
    if state.phase != Phase.PROCESSING:
        return state, []
    return replace(state, phase=Phase.IDLE), []


def _clear_feedback(state: RecognitionState, event: Event) -> Transition:
    if not state.feedback_text and not state.suggestions:
        return state, []
    return replace(state, feedback_text="", suggestions=()), []


_HANDLERS = {
    EventType.START: _start,
    EventType.STOP: _stop,
    EventType.CAPTURE_STARTED: _capture_started,
    EventType.INTERIM: _interim,
    EventType.FINAL: _final,
    EventType.CAPTURE_ERROR: _capture_error,
    EventType.CAPTURE_ENDED: _capture_ended,
    EventType.FAULT: _fault,
    EventType.RECOVER: _recover,
    EventType.MATCHED: _matched,
    EventType.NOT_UNDERSTOOD: _not_understood,
    EventType.TURN_COMPLETE: _turn_complete,
    EventType.CLEAR_FEEDBACK: _clear_feedback,
}
