"""Engine settings and a simple JSON-based config store."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path

from errors import GREETING

log = logging.getLogger(__name__)

DEFAULT_SITE_URL = "https://travel.lydian.com"
DEFAULT_HOTKEY = "Key.alt_l"
HOTKEY_MODES = ("hold", "toggle")


@dataclass(frozen=True)
class EngineSettings:
    language: str = "tr"
    # Matching constants are empirical; keep them tunable.
    fuzzy_threshold: float = 0.7
    containment_base: float = 0.8
    containment_weight: float = 0.2
    token_windows: bool = True
    settle_delay_s: float = 0.5
    feedback_clear_s: float = 3.0
    pitch: float = 0.7
    rate: float = 0.95
    volume: float = 1.0
    pace_speech: bool = True
    greeting: str = GREETING
    suggestion_limit: int = 3

    @classmethod
    def from_dict(cls, data: dict) -> "EngineSettings":
        """Overlay known keys of ``data`` on the defaults, ignoring the rest."""
        settings = cls()
        known = {f.name: f for f in fields(cls)}
        overrides = {}
        for key, value in data.items():
            f = known.get(key)
            if f is None:
                log.warning("Ignoring unknown engine setting %r", key)
                continue
            default = getattr(settings, key)
            parsed = _coerce(value, default)
            if parsed is None:
                log.warning("Ignoring invalid value %r for engine setting %r", value, key)
                continue
            overrides[key] = parsed
        return replace(settings, **overrides)


_TRUE_WORDS = ("true", "1")
_FALSE_WORDS = ("false", "0")


def _coerce(value, default):
    """Convert a JSON value to the type of ``default``, or ``None`` if it does not fit."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        word = str(value).strip().lower() if isinstance(value, (str, int)) else ""
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        return None
    if isinstance(value, bool) and not isinstance(default, str):
        return None
    try:
        return type(default)(value)
    except (TypeError, ValueError):
        return None


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "seyahat_voice" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        data = self._read_all()
        data["api_key"] = key
        self._write_all(data)

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        data = self._read_all()
        data["hotkey"] = hotkey
        self._write_all(data)

    def get_hotkey_mode(self) -> str:
        mode = str(self._read_all().get("hotkey_mode", "hold"))
        return mode if mode in HOTKEY_MODES else "hold"

    def get_site_url(self) -> str:
        data = self._read_all()
        return str(data.get("site_url", DEFAULT_SITE_URL)).rstrip("/")

    def set_site_url(self, url: str) -> None:
        data = self._read_all()
        data["site_url"] = url.strip().rstrip("/")
        self._write_all(data)

    def get_engine_settings(self) -> EngineSettings:
        engine = self._read_all().get("engine", {})
        if not isinstance(engine, dict):
            return EngineSettings()
        return EngineSettings.from_dict(engine)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            log.warning("Config file %s is unreadable, using defaults", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
