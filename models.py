"""Core data models for the voice command engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


class Phase(str, Enum):
    IDLE = "IDLE"
    LISTENING = "LISTENING"
    PROCESSING = "PROCESSING"
    ERROR = "ERROR"


class ErrorKind(str, Enum):
    NO_SPEECH_DETECTED = "NO_SPEECH_DETECTED"
    CAPTURE_DEVICE_DENIED = "CAPTURE_DEVICE_DENIED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NETWORK = "NETWORK"
    AUTH_FAILED = "AUTH_FAILED"
    UNKNOWN = "UNKNOWN"


class MatchType(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"
    NONE = "none"


class CaptureEventKind(str, Enum):
    STARTED = "started"
    INTERIM = "interim"
    FINAL = "final"
    ERROR = "error"
    ENDED = "ended"


@dataclass(frozen=True)
class Command:
    name: str
    patterns: tuple[str, ...]
    category: str
    action: Callable[[], None] = field(compare=False, repr=False)
    description: str = ""


@dataclass(frozen=True)
class MatchResult:
    command: Optional[Command]
    match_type: MatchType
    score: float

    @property
    def matched(self) -> bool:
        return self.command is not None


NO_MATCH = MatchResult(command=None, match_type=MatchType.NONE, score=0.0)


@dataclass(frozen=True)
class RecognitionState:
    """Read-only snapshot of the session, replaced on every mutation."""

    phase: Phase = Phase.IDLE
    error: Optional[ErrorKind] = None
    transcript: str = ""
    last_matched_command: Optional[str] = None
    feedback_text: str = ""
    suggestions: tuple[str, ...] = ()

    @property
    def is_listening(self) -> bool:
        return self.phase == Phase.LISTENING

    @property
    def is_processing(self) -> bool:
        return self.phase == Phase.PROCESSING


@dataclass(frozen=True)
class CaptureEvent:
    kind: CaptureEventKind
    text: str = ""
    error: Optional[ErrorKind] = None
    message: str = ""


@dataclass(frozen=True)
class Voice:
    name: str
    locale: str
    ref: Any = None


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0
