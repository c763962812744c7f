from __future__ import annotations

from typing import Callable

from dispatcher import ActionDispatcher
from errors import FALLBACK_PROMPT, NOT_UNDERSTOOD_MESSAGE
from models import NO_MATCH, Command, MatchResult, MatchType
from session_machine import Event, EventType


class FakeSession:
    def __init__(self) -> None:
        self.epoch = 7
        self.requests: list[tuple[Event, int]] = []
        self.scheduled: list[tuple[float, Callable[[], None], int]] = []

    def request(self, event: Event, epoch: int) -> bool:
        self.requests.append((event, epoch))
        return True

    def call_later(self, delay_s: float, callback: Callable[[], None], epoch: int) -> None:
        self.scheduled.append((delay_s, callback, epoch))

    @property
    def types(self) -> list[EventType]:
        return [event.type for event, _ in self.requests]


class FakeSpeaker:
    def __init__(self) -> None:
        self.texts: list[str] = []

    def speak(self, text: str) -> None:
        self.texts.append(text)


def test_match_sets_feedback_then_runs_action_after_settle() -> None:
    session = FakeSession()
    speaker = FakeSpeaker()
    calls: list[str] = []
    command = Command("oteller", ("oteller",), "Navigasyon", lambda: calls.append("run"), "Oteller sayfasına git")

    ActionDispatcher(session, speaker).dispatch(MatchResult(command, MatchType.EXACT, 1.0))

    assert session.types == [EventType.MATCHED]
    matched, epoch = session.requests[0]
    assert matched.text == "✓ Oteller sayfasına git"
    assert matched.command == "oteller"
    assert epoch == 7
    assert [(d, e) for d, _, e in session.scheduled] == [(0.5, 7), (3.0, 7)]
    assert calls == []

    session.scheduled[0][1]()
    assert calls == ["run"]
    assert session.types == [EventType.MATCHED, EventType.TURN_COMPLETE]

    session.scheduled[1][1]()
    assert session.types[-1] == EventType.CLEAR_FEEDBACK


def test_no_match_speaks_fallback_and_completes_turn() -> None:
    session = FakeSession()
    speaker = FakeSpeaker()

    ActionDispatcher(session, speaker).dispatch(NO_MATCH, suggestions=("Oteller sayfasına git",))

    assert session.types == [EventType.NOT_UNDERSTOOD, EventType.TURN_COMPLETE]
    not_understood = session.requests[0][0]
    assert not_understood.text == NOT_UNDERSTOOD_MESSAGE
    assert not_understood.suggestions == ("Oteller sayfasına git",)
    assert speaker.texts == [FALLBACK_PROMPT]
    assert [d for d, _, _ in session.scheduled] == [3.0]


def test_custom_delays_are_used() -> None:
    session = FakeSession()
    command = Command("x", ("x",), "c", lambda: None, "X")

    ActionDispatcher(session, FakeSpeaker(), settle_delay_s=1.5, feedback_clear_s=4.0).dispatch(
        MatchResult(command, MatchType.FUZZY, 0.8)
    )

    assert [d for d, _, _ in session.scheduled] == [1.5, 4.0]
