from __future__ import annotations

from dataclasses import replace

from catalog import CommandCatalog, build_travel_catalog
from config import EngineSettings
from errors import FALLBACK_PROMPT, GREETING, LISTENING_MESSAGE
from fakes import FakeCapture, FakeNavigator, FakeOutput, FakeScheduler
from models import CaptureEvent, CaptureEventKind, Command, ErrorKind, Phase, RecognitionState
from overlay import overlay_lines
from session_controller import VoiceSession
from speech_output import SpeechOutputArbiter, pace_text


class Harness:
    def __init__(self, settings: EngineSettings | None = None, capture: FakeCapture | None = None) -> None:
        self.capture = capture or FakeCapture()
        self.output = FakeOutput()
        self.scheduler = FakeScheduler()
        self.navigator = FakeNavigator()
        self.arbiter = SpeechOutputArbiter(self.output)
        self.session = VoiceSession(
            capture=self.capture,
            arbiter=self.arbiter,
            scheduler=self.scheduler,
            settings=settings,
        )
        self.session.bind_catalog(
            build_travel_catalog(self.navigator, self.arbiter.speak, stop_listening=self.session.stop)
        )
        self.states: list[RecognitionState] = []
        self.session.subscribe(self.states.append)

    @property
    def phases(self) -> list[Phase]:
        return [s.phase for s in self.states]


def test_start_enters_listening_and_opens_capture() -> None:
    h = Harness()
    h.session.start()

    assert h.session.state.phase == Phase.LISTENING
    assert h.session.state.feedback_text == LISTENING_MESSAGE
    assert h.capture.start_calls == 1


def test_greeting_is_spoken_once_capture_starts() -> None:
    h = Harness()
    h.session.start()
    assert h.output.texts == []

    h.capture.emit(CaptureEventKind.STARTED)
    assert h.output.texts == [pace_text(GREETING)]


def test_start_while_listening_is_a_no_op() -> None:
    h = Harness()
    h.session.start()
    epoch = h.session.epoch
    h.session.start()

    assert h.capture.start_calls == 1
    assert h.session.epoch == epoch


def test_exact_command_dispatches_once_and_feedback_clears() -> None:
    h = Harness()
    h.session.start()
    h.capture.say("oteller")

    state = h.session.state
    assert state.phase == Phase.PROCESSING
    assert state.last_matched_command == "oteller"
    assert state.feedback_text == "✓ Oteller sayfasına git"
    assert h.capture.stop_calls == 1
    # navigation waits for the settle delay
    assert h.navigator.routes == []

    h.scheduler.advance(0.5)
    assert h.navigator.routes == ["/hotels"]
    assert h.session.state.phase == Phase.IDLE
    assert h.session.state.feedback_text == "✓ Oteller sayfasına git"
    assert h.output.texts[-1] == pace_text("Harika! Size en iyi otelleri gösteriyorum.")

    h.scheduler.advance(2.5)
    assert h.session.state.feedback_text == ""
    assert h.session.state.last_matched_command == "oteller"

    h.scheduler.advance(10)
    assert h.navigator.routes == ["/hotels"]


def test_overlay_is_empty_once_feedback_window_passes() -> None:
    h = Harness()
    h.session.start()
    h.capture.say("oteller")
    h.scheduler.advance(10)

    assert h.session.state.phase == Phase.IDLE
    assert h.session.state.transcript == "oteller"
    assert overlay_lines(h.session.state) == []


def test_inflected_command_is_fuzzy_matched() -> None:
    h = Harness()
    h.session.start()
    h.capture.say("otelere bakalım")
    h.scheduler.advance(0.5)

    assert h.navigator.routes == ["/hotels"]
    assert h.session.state.last_matched_command == "oteller"
    assert h.session.state.transcript == "otelere bakalım"


def test_unknown_input_speaks_fallback_without_navigation() -> None:
    h = Harness()
    h.session.start()
    h.capture.say("xyzxyz")

    state = h.session.state
    assert state.phase == Phase.IDLE
    assert state.feedback_text == "Komut anlaşılamadı"
    assert len(state.suggestions) == 3
    assert state.last_matched_command is None
    assert h.output.texts[-1] == pace_text(FALLBACK_PROMPT)

    h.scheduler.advance(3.0)
    assert h.navigator.routes == []
    assert h.session.state.feedback_text == ""
    assert h.session.state.suggestions == ()


def test_empty_final_text_counts_as_not_understood() -> None:
    h = Harness()
    h.session.start()
    h.capture.emit(CaptureEventKind.FINAL, "")

    assert h.session.state.phase == Phase.IDLE
    assert h.session.state.feedback_text == "Komut anlaşılamadı"
    assert h.session.state.suggestions == ()


def test_device_denied_goes_through_error_to_idle() -> None:
    h = Harness()
    h.session.start()
    h.capture.emit(CaptureEventKind.ERROR, error=ErrorKind.CAPTURE_DEVICE_DENIED)

    assert Phase.ERROR in h.phases
    error_state = next(s for s in h.states if s.phase == Phase.ERROR)
    assert error_state.error == ErrorKind.CAPTURE_DEVICE_DENIED
    assert h.phases[-1] == Phase.IDLE
    assert h.session.state.feedback_text == "Mikrofon erişimi reddedildi"
    assert h.session.state.error is None
    assert h.capture.stop_calls == 1
    assert h.navigator.routes == []

    h.scheduler.advance(3.0)
    assert h.session.state.feedback_text == ""


def test_capture_error_without_kind_is_unknown() -> None:
    h = Harness()
    h.session.start()
    h.capture.emit(CaptureEventKind.ERROR)

    error_state = next(s for s in h.states if s.phase == Phase.ERROR)
    assert error_state.error == ErrorKind.UNKNOWN


def test_capture_start_failure_becomes_unknown_error() -> None:
    h = Harness(capture=FakeCapture(fail_on_start=OSError("no device")))
    h.session.start()

    error_state = next(s for s in h.states if s.phase == Phase.ERROR)
    assert error_state.error == ErrorKind.UNKNOWN
    assert h.session.state.phase == Phase.IDLE


def test_capture_end_without_result_returns_to_idle() -> None:
    h = Harness()
    h.session.start()
    h.capture.emit(CaptureEventKind.STARTED)
    h.capture.emit(CaptureEventKind.INTERIM, "ote")
    h.capture.emit(CaptureEventKind.ENDED)

    assert h.session.state.phase == Phase.IDLE
    assert h.session.state.feedback_text == ""
    assert h.navigator.routes == []


def test_stop_during_settle_cancels_pending_action() -> None:
    h = Harness()
    h.session.start()
    h.capture.say("oteller")
    h.session.stop()

    assert h.session.state == RecognitionState(last_matched_command="oteller")
    assert h.scheduler.pending == []

    h.scheduler.advance(5)
    assert h.navigator.routes == []


def test_stop_from_listening_stops_capture() -> None:
    h = Harness()
    h.session.start()
    h.session.stop()

    assert h.session.state.phase == Phase.IDLE
    assert h.capture.stop_calls == 1


def test_events_from_old_capture_session_are_ignored() -> None:
    h = Harness()
    h.session.start()
    stale = h.capture.on_event
    h.session.stop()
    h.session.start()

    assert stale is not None
    stale(CaptureEvent(kind=CaptureEventKind.FINAL, text="oteller"))
    assert h.session.state.phase == Phase.LISTENING
    assert h.session.state.transcript == ""


def test_stop_command_ends_the_turn_through_the_session() -> None:
    h = Harness()
    h.session.start()
    h.capture.say("dur")
    h.scheduler.advance(0.5)

    assert h.session.state.phase == Phase.IDLE
    assert h.session.state.last_matched_command == "dinlemeyi durdur"
    assert h.scheduler.pending == []


def test_failing_action_becomes_unknown_error() -> None:
    h = Harness()

    def boom() -> None:
        raise RuntimeError("broken")

    broken = Command(name="patlat", patterns=("patlat",), category="Test", action=boom, description="Patlat")
    h.session.bind_catalog(CommandCatalog([broken]))
    h.session.start()
    h.capture.say("patlat")
    h.scheduler.advance(0.5)

    error_state = next(s for s in h.states if s.phase == Phase.ERROR)
    assert error_state.error == ErrorKind.UNKNOWN
    assert h.session.state.phase == Phase.IDLE
    assert h.session.state.feedback_text == "Bir hata oluştu"


def test_failing_listener_does_not_break_session() -> None:
    h = Harness()

    def bad_listener(state: RecognitionState) -> None:
        raise ValueError("listener")

    h.session.subscribe(bad_listener)
    h.session.start()
    assert h.session.state.phase == Phase.LISTENING


def test_unsubscribe_stops_notifications() -> None:
    h = Harness()
    seen: list[RecognitionState] = []
    unsubscribe = h.session.subscribe(seen.append)
    unsubscribe()
    h.session.start()
    assert seen == []


def test_timings_follow_settings() -> None:
    settings = replace(EngineSettings(), settle_delay_s=1.0, feedback_clear_s=5.0, greeting="")
    h = Harness(settings=settings)
    h.session.start()
    h.capture.say("oteller")
    assert h.output.texts == []

    h.scheduler.advance(0.9)
    assert h.navigator.routes == []
    h.scheduler.advance(0.1)
    assert h.navigator.routes == ["/hotels"]
    h.scheduler.advance(3.5)
    assert h.session.state.feedback_text != ""
    h.scheduler.advance(0.5)
    assert h.session.state.feedback_text == ""
