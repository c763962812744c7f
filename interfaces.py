"""Protocol interfaces for the ports the voice engine consumes."""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from models import CaptureEvent, Voice


class CaptureService(Protocol):
    def start(self, on_event: Callable[[CaptureEvent], None]) -> None: ...

    def stop(self) -> None: ...


class OutputService(Protocol):
    def list_voices(self) -> list[Voice]: ...

    def speak(
        self,
        text: str,
        voice: Optional[Voice],
        pitch: float,
        rate: float,
        volume: float,
    ) -> None: ...

    def cancel(self) -> None: ...


class NavigationService(Protocol):
    def go_to(self, route_key: str) -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_site_url(self) -> str: ...

    def set_site_url(self, url: str) -> None: ...
