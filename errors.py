"""Shared error kinds, platform codes and user-facing messages."""

from __future__ import annotations

from models import ErrorKind

# Codes reported by speech capture platforms (Web Speech API naming).
NO_SPEECH = "no-speech"
AUDIO_CAPTURE = "audio-capture"
NOT_ALLOWED = "not-allowed"
NETWORK = "network"

PLATFORM_ERROR_KINDS = {
    NO_SPEECH: ErrorKind.NO_SPEECH_DETECTED,
    AUDIO_CAPTURE: ErrorKind.CAPTURE_DEVICE_DENIED,
    NOT_ALLOWED: ErrorKind.PERMISSION_DENIED,
    NETWORK: ErrorKind.NETWORK,
}

ERROR_MESSAGES = {
    ErrorKind.NO_SPEECH_DETECTED: "Ses algılanamadı",
    ErrorKind.CAPTURE_DEVICE_DENIED: "Mikrofon erişimi reddedildi",
    ErrorKind.PERMISSION_DENIED: "Mikrofon izni verilmedi",
    ErrorKind.NETWORK: "Ağ bağlantısı hatası",
    ErrorKind.AUTH_FAILED: "Konuşma servisi anahtarı geçersiz veya eksik",
    ErrorKind.UNKNOWN: "Bir hata oluştu",
}

LISTENING_MESSAGE = "Dinleniyor..."
NOT_UNDERSTOOD_MESSAGE = "Komut anlaşılamadı"
FALLBACK_PROMPT = (
    "Pardon, tam anlayamadım. Bir daha söyler misiniz? "
    "Ya da komutlar diyerek, neler yapabileceğimi öğrenebilirsiniz."
)
GREETING = "Merhaba arkadaşım! Ben Lydian. Sizi dinliyorum, buyurun söyleyin."
MATCH_FEEDBACK_PREFIX = "✓ "


def kind_for_platform_code(code: str) -> ErrorKind:
    return PLATFORM_ERROR_KINDS.get(code, ErrorKind.UNKNOWN)


def message_for(kind: ErrorKind) -> str:
    return ERROR_MESSAGES.get(kind, ERROR_MESSAGES[ErrorKind.UNKNOWN])
