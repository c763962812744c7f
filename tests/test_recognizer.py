"""Tests for DashscopeRecognizerAdapter."""

from __future__ import annotations

import time
from queue import Queue
from unittest.mock import MagicMock, patch

from models import AudioFrame, CaptureEvent, CaptureEventKind, ErrorKind
from recognizer import DashscopeRecognizerAdapter, _pcm_to_wav_base64


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------

def _make_frame(n_samples: int = 1600) -> AudioFrame:
    """Generate a silent AudioFrame (all zeros)."""
    return AudioFrame(
        pcm16_bytes=b"\x00\x00" * n_samples,
        sample_rate=16000,
        channels=1,
        timestamp_ms=0,
    )


def _wait_for_events(events: list, *, timeout: float = 3.0) -> None:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if any(e.kind in (CaptureEventKind.FINAL, CaptureEventKind.ERROR) for e in events):
            return
        time.sleep(0.05)


def _run(adapter: DashscopeRecognizerAdapter, *frames: AudioFrame) -> list[CaptureEvent]:
    events: list[CaptureEvent] = []
    q: Queue[AudioFrame | None] = Queue()
    for frame in frames:
        q.put(frame)
    q.put(None)
    adapter.start(q, events.append)
    _wait_for_events(events)
    adapter.stop()
    return events


def _errors(events: list[CaptureEvent]) -> list[CaptureEvent]:
    return [e for e in events if e.kind == CaptureEventKind.ERROR]


# ---------------------------------------------------------------
# _pcm_to_wav_base64
# ---------------------------------------------------------------

def test_pcm_to_wav_base64_produces_valid_base64() -> None:
    pcm = b"\x00\x00" * 1600  # 100ms of silence at 16kHz
    result = _pcm_to_wav_base64(pcm, sample_rate=16000, channels=1)
    assert isinstance(result, str)
    assert len(result) > 0
    import base64
    decoded = base64.b64decode(result)
    # WAV header starts with RIFF
    assert decoded[:4] == b"RIFF"


# ---------------------------------------------------------------
# Empty audio
# ---------------------------------------------------------------

def test_empty_audio_reports_no_speech() -> None:
    events = _run(DashscopeRecognizerAdapter(api_key="test-key"))

    assert len(events) == 1
    assert events[0].kind == CaptureEventKind.ERROR
    assert events[0].error == ErrorKind.NO_SPEECH_DETECTED


# ---------------------------------------------------------------
# Missing API key
# ---------------------------------------------------------------

@patch("recognizer.dashscope", MagicMock())
@patch.dict("os.environ", {"DASHSCOPE_API_KEY": ""}, clear=False)
def test_missing_api_key_emits_auth_error() -> None:
    events = _run(DashscopeRecognizerAdapter(api_key=""), _make_frame())

    errors = _errors(events)
    assert len(errors) == 1
    assert errors[0].error == ErrorKind.AUTH_FAILED


# ---------------------------------------------------------------
# Mock dashscope streaming response
# ---------------------------------------------------------------

def _fake_streaming_response():
    """Simulate dashscope streaming chunks."""
    yield {"output": {"choices": [{"message": {"content": [{"text": "otel"}]}}]}}
    yield {"output": {"choices": [{"message": {"content": [{"text": "oteller"}]}}]}}
    yield {"output": {"choices": []}}
    yield {"output": {"choices": [{"message": {"content": [{"text": "otellere git"}]}}]}}


@patch("recognizer.dashscope")
def test_successful_streaming_emits_interims_and_final(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = _fake_streaming_response()

    events = _run(DashscopeRecognizerAdapter(api_key="test-key"), _make_frame())

    interims = [e.text for e in events if e.kind == CaptureEventKind.INTERIM]
    finals = [e for e in events if e.kind == CaptureEventKind.FINAL]
    assert interims == ["otel", "oteller", "otellere git"]
    assert len(finals) == 1
    assert finals[0].text == "otellere git"


@patch("recognizer.dashscope")
def test_request_carries_language_hint(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = iter(())

    events = _run(DashscopeRecognizerAdapter(api_key="test-key", language="tr"), _make_frame())

    kwargs = mock_ds.MultiModalConversation.call.call_args.kwargs
    assert kwargs["asr_options"]["language"] == "tr"
    assert kwargs["stream"] is True
    assert kwargs["api_key"] == "test-key"
    assert events[-1] == CaptureEvent(kind=CaptureEventKind.FINAL, text="")


# ---------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------

@patch("recognizer.dashscope")
def test_network_error_maps_correctly(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.side_effect = ConnectionError("network timeout")

    errors = _errors(_run(DashscopeRecognizerAdapter(api_key="test-key"), _make_frame()))

    assert len(errors) == 1
    assert errors[0].error == ErrorKind.NETWORK


@patch("recognizer.dashscope")
def test_auth_error_maps_correctly(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.side_effect = Exception("401 Unauthorized: invalid api key")

    errors = _errors(_run(DashscopeRecognizerAdapter(api_key="bad-key"), _make_frame()))

    assert len(errors) == 1
    assert errors[0].error == ErrorKind.AUTH_FAILED


@patch("recognizer.dashscope")
def test_other_errors_map_to_unknown(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.side_effect = ValueError("bad audio")

    errors = _errors(_run(DashscopeRecognizerAdapter(api_key="test-key"), _make_frame()))

    assert len(errors) == 1
    assert errors[0].error == ErrorKind.UNKNOWN
    assert errors[0].message == "bad audio"


# ---------------------------------------------------------------
# dashscope not installed
# ---------------------------------------------------------------

@patch("recognizer.dashscope", None)
def test_dashscope_not_installed_emits_error() -> None:
    errors = _errors(_run(DashscopeRecognizerAdapter(api_key="test-key"), _make_frame()))

    assert len(errors) == 1
    assert "not installed" in errors[0].message


# ---------------------------------------------------------------
# Stop event during recognition
# ---------------------------------------------------------------

@patch("recognizer.dashscope")
def test_stop_during_streaming_cancels_gracefully(mock_ds: MagicMock) -> None:
    def slow_response():
        yield {"output": {"choices": [{"message": {"content": [{"text": "oteller"}]}}]}}
        time.sleep(1)  # hang to simulate slow stream
        yield {"output": {"choices": [{"message": {"content": [{"text": "otellere git"}]}}]}}

    mock_ds.MultiModalConversation.call.return_value = slow_response()

    adapter = DashscopeRecognizerAdapter(api_key="test-key")
    events: list[CaptureEvent] = []
    q: Queue[AudioFrame | None] = Queue()
    q.put(_make_frame())
    q.put(None)

    adapter.start(q, events.append)
    time.sleep(0.3)  # let worker pick up and start streaming
    adapter.stop()
    time.sleep(1.2)

    # Should NOT have final event since we stopped mid-stream
    finals = [e for e in events if e.kind == CaptureEventKind.FINAL]
    assert len(finals) == 0


@patch("recognizer.dashscope")
def test_failed_stream_chunk_maps_to_error(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = iter(
        [{"status_code": 401, "code": "InvalidApiKey", "message": "Invalid API-key provided."}]
    )

    events = _run(DashscopeRecognizerAdapter(api_key="bad-key"), _make_frame())

    errors = _errors(events)
    assert len(errors) == 1
    assert errors[0].error == ErrorKind.AUTH_FAILED
    assert not [e for e in events if e.kind == CaptureEventKind.FINAL]
