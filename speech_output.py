"""Voice selection and single-utterance arbitration for spoken feedback.

Voice selection runs an ordered list of strategies against the output
service's voice list on every call. The name heuristics (gender markers,
allow-listed names) are best-effort: platforms name voices freely, so the
chosen voice may not match the intent on unusual systems.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from interfaces import OutputService
from models import Voice

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoiceProfile:
    language: str = "tr"
    gender_markers: tuple[str, ...] = ("erkek", "male", "ahmet", "mehmet", "murat", "cem", "kemal")
    excluded_markers: tuple[str, ...] = ("female", "kadın")
    preferred_names: tuple[str, ...] = (
        "daniel", "thomas", "alex", "david", "aaron", "bruce",
        "fred", "gordon", "ralph", "jorge", "luca", "diego",
    )


VoiceStrategy = Callable[[Sequence[Voice], VoiceProfile], Optional[Voice]]


def _locale_matches(voice: Voice, language: str) -> bool:
    return voice.locale.lower().replace("_", "-").startswith(language.lower())


def _excluded(name: str, profile: VoiceProfile) -> bool:
    return any(marker in name for marker in profile.excluded_markers)


def locale_and_gender(voices: Sequence[Voice], profile: VoiceProfile) -> Optional[Voice]:
    for voice in voices:
        name = voice.name.lower()
        if (
            _locale_matches(voice, profile.language)
            and not _excluded(name, profile)
            and any(marker in name for marker in profile.gender_markers)
        ):
            return voice
    return None


def locale_only(voices: Sequence[Voice], profile: VoiceProfile) -> Optional[Voice]:
    for voice in voices:
        if _locale_matches(voice, profile.language):
            return voice
    return None


def preferred_name(voices: Sequence[Voice], profile: VoiceProfile) -> Optional[Voice]:
    for voice in voices:
        name = voice.name.lower()
        if not _excluded(name, profile) and any(n in name for n in profile.preferred_names):
            return voice
    return None


def first_available(voices: Sequence[Voice], profile: VoiceProfile) -> Optional[Voice]:
    return voices[0] if voices else None


DEFAULT_STRATEGIES: tuple[VoiceStrategy, ...] = (
    locale_and_gender,
    locale_only,
    preferred_name,
    first_available,
)

_PAUSES = (
    (re.compile(r"\."), "... "),
    (re.compile(r","), ", "),
    (re.compile(r"\?"), "?.. "),
    (re.compile(r"!"), "!.. "),
    (re.compile(r":"), ":. "),
)


def pace_text(text: str) -> str:
    """Lengthen pauses after punctuation so synthesized Turkish sounds less rushed."""
    for pattern, replacement in _PAUSES:
        text = pattern.sub(replacement, text)
    return re.sub(r"\s+", " ", text).strip()


class SpeechOutputArbiter:
    def __init__(
        self,
        output: OutputService,
        profile: Optional[VoiceProfile] = None,
        strategies: Sequence[VoiceStrategy] = DEFAULT_STRATEGIES,
        pitch: float = 0.7,
        rate: float = 0.95,
        volume: float = 1.0,
        pace: bool = True,
    ) -> None:
        self._output = output
        self._profile = profile or VoiceProfile()
        self._strategies = tuple(strategies)
        self.pitch = pitch
        self.rate = rate
        self.volume = volume
        self._pace = pace

    def select_voice(self, voices: Sequence[Voice]) -> Optional[Voice]:
        for strategy in self._strategies:
            voice = strategy(voices, self._profile)
            if voice is not None:
                log.debug("Voice %r selected by %s", voice.name, strategy.__name__)
                return voice
        return None

    def speak(self, text: str) -> None:
        if not text.strip():
            return
        voices = self._output.list_voices()
        voice = self.select_voice(voices)
        if voice is None:
            log.debug("No synthesis voices available; skipping speech")
            return
        # Preempt: only one utterance may be in flight.
        self._output.cancel()
        spoken = pace_text(text) if self._pace else text
        self._output.speak(spoken, voice, self.pitch, self.rate, self.volume)
