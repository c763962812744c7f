"""Executes matched commands and schedules feedback timing."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from errors import FALLBACK_PROMPT, MATCH_FEEDBACK_PREFIX, NOT_UNDERSTOOD_MESSAGE
from models import Command, MatchResult
from session_machine import Event, EventType

log = logging.getLogger(__name__)


class SessionHandle(Protocol):
    """The part of ``VoiceSession`` the dispatcher may use to request mutations."""

    @property
    def epoch(self) -> int: ...

    def request(self, event: Event, epoch: int) -> bool: ...

    def call_later(self, delay_s: float, callback: Callable[[], None], epoch: int) -> None: ...


class Speaker(Protocol):
    def speak(self, text: str) -> None: ...


class ActionDispatcher:
    def __init__(
        self,
        session: SessionHandle,
        speaker: Speaker,
        settle_delay_s: float = 0.5,
        feedback_clear_s: float = 3.0,
    ) -> None:
        self._session = session
        self._speaker = speaker
        self._settle_delay_s = settle_delay_s
        self._feedback_clear_s = feedback_clear_s

    def dispatch(self, result: MatchResult, suggestions: tuple[str, ...] = ()) -> None:
        epoch = self._session.epoch
        command = result.command
        if command is None:
            self._session.request(
                Event(EventType.NOT_UNDERSTOOD, text=NOT_UNDERSTOOD_MESSAGE, suggestions=suggestions),
                epoch,
            )
            self._speaker.speak(FALLBACK_PROMPT)
            self._session.request(Event(EventType.TURN_COMPLETE), epoch)
        else:
            log.info("Dispatching %r (%s, score %.3f)", command.name, result.match_type.value, result.score)
            self._session.request(
                Event(
                    EventType.MATCHED,
                    text=MATCH_FEEDBACK_PREFIX + command.description,
                    command=command.name,
                ),
                epoch,
            )
            # Feedback is visible for the settle delay before navigation happens.
            self._session.call_later(self._settle_delay_s, lambda: self._invoke(command, epoch), epoch)
        self._session.call_later(
            self._feedback_clear_s,
            lambda: self._session.request(Event(EventType.CLEAR_FEEDBACK), epoch),
            epoch,
        )

    def _invoke(self, command: Command, epoch: int) -> None:
        command.action()
        self._session.request(Event(EventType.TURN_COMPLETE), epoch)
