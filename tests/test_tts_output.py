from __future__ import annotations

import time
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import tts_output
from models import Voice
from tts_output import Pyttsx3OutputService, _voice_locale


def _engine(*voices: SimpleNamespace) -> MagicMock:
    engine = MagicMock()
    engine.getProperty.return_value = list(voices)
    return engine


def _wait_until(predicate, timeout: float = 2.0) -> bool:  # noqa: ANN001
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


def test_voice_locale_formats() -> None:
    assert _voice_locale(SimpleNamespace(languages=["tr_TR"])) == "tr-TR"
    assert _voice_locale(SimpleNamespace(languages=[b"\x05tr"])) == "tr"
    assert _voice_locale(SimpleNamespace(languages=[])) == ""
    assert _voice_locale(SimpleNamespace()) == ""


@patch("tts_output.pyttsx3")
def test_list_voices_maps_and_caches(mock_tts: MagicMock) -> None:
    raw = SimpleNamespace(id="tr-voice-id", name="Turkish", languages=["tr_TR"])
    mock_tts.init.return_value = _engine(raw)

    service = Pyttsx3OutputService()
    voices = service.list_voices()
    again = service.list_voices()

    assert voices == [Voice(name="Turkish", locale="tr-TR", ref="tr-voice-id")]
    assert again == voices
    mock_tts.init.assert_called_once()
    assert mock_tts.init.return_value.getProperty.call_count == 1


def test_missing_pyttsx3_disables_output(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(tts_output, "pyttsx3", None)
    service = Pyttsx3OutputService()

    assert service.list_voices() == []
    service.speak("Merhaba", None, 0.7, 0.95, 1.0)
    service.cancel()


@patch("tts_output.pyttsx3")
def test_speak_applies_voice_rate_and_volume(mock_tts: MagicMock) -> None:
    engine = _engine()
    mock_tts.init.return_value = engine
    service = Pyttsx3OutputService(base_rate_wpm=200)

    service.speak("Merhaba", Voice("Turkish", "tr-TR", ref="tr-id"), 0.7, 0.5, 1.5)

    assert _wait_until(lambda: engine.runAndWait.called)
    engine.setProperty.assert_any_call("voice", "tr-id")
    engine.setProperty.assert_any_call("rate", 100)
    engine.setProperty.assert_any_call("volume", 1.0)
    engine.say.assert_called_once_with("Merhaba")
    service.close()


@patch("tts_output.pyttsx3")
def test_cancel_stops_engine(mock_tts: MagicMock) -> None:
    engine = _engine()
    mock_tts.init.return_value = engine
    service = Pyttsx3OutputService()
    service.list_voices()

    service.cancel()
    engine.stop.assert_called_once()
