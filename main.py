"""Application entrypoint: tray app driving the voice command session."""

from __future__ import annotations

import logging
import sys
from typing import Callable

from capture import MainThreadCapture, MicrophoneCaptureService
from catalog import build_travel_catalog, format_help
from config import JsonConfigStore
from hotkey import GlobalHotkeyAdapter
from logging_setup import setup_logging
from models import CaptureEvent, Phase, RecognitionState
from navigation import BrowserNavigationService
from overlay import OverlayWindow
from recognizer import DashscopeRecognizerAdapter
from recorder import SoundDeviceRecorder
from scheduling import QtScheduler
from session_controller import VoiceSession
from speech_output import SpeechOutputArbiter, VoiceProfile
from tts_output import Pyttsx3OutputService

try:
    from PySide6.QtCore import QObject, Signal, QSize
    from PySide6.QtGui import QAction, QIcon, QPixmap, QPainter, QColor, QBrush
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

log = logging.getLogger(__name__)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


PHASE_ICONS = {
    Phase.IDLE: "#888888",
    Phase.LISTENING: "#FF4444",
    Phase.PROCESSING: "#3D8BFF",
    Phase.ERROR: "#FF8800",
}

PHASE_TOOLTIPS = {
    Phase.IDLE: "Sesli Komut — Hazır",
    Phase.LISTENING: "Sesli Komut — Dinleniyor...",
    Phase.PROCESSING: "Sesli Komut — İşleniyor...",
    Phase.ERROR: "Sesli Komut — Hata",
}


class UIBridge(QObject):
    # (callback, event) pairs from capture worker threads
    capture_signal = Signal(object, object)
    activate_signal = Signal()
    release_signal = Signal()
    deactivate_signal = Signal()


def _deliver_capture(on_event: Callable[[CaptureEvent], None], event: CaptureEvent) -> None:
    on_event(event)


class App:
    def __init__(self) -> None:
        setup_logging()
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        settings = self.config_store.get_engine_settings()

        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.activate_signal.connect(self._on_activate)
        self.ui.release_signal.connect(self._on_release)
        self.ui.deactivate_signal.connect(self._on_deactivate)
        self.ui.capture_signal.connect(_deliver_capture)

        self.capture = MainThreadCapture(
            MicrophoneCaptureService(
                recorder=SoundDeviceRecorder(),
                recognizer=DashscopeRecognizerAdapter(
                    api_key=self.config_store.get_api_key(), language=settings.language
                ),
            ),
            self.ui.capture_signal.emit,
        )
        self.output = Pyttsx3OutputService()
        self.arbiter = SpeechOutputArbiter(
            self.output,
            profile=VoiceProfile(language=settings.language),
            pitch=settings.pitch,
            rate=settings.rate,
            volume=settings.volume,
            pace=settings.pace_speech,
        )
        self.navigator = BrowserNavigationService(self.config_store.get_site_url())
        self.session = VoiceSession(
            capture=self.capture,
            arbiter=self.arbiter,
            scheduler=QtScheduler(),
            settings=settings,
        )
        self.session.bind_catalog(
            build_travel_catalog(
                self.navigator,
                self.arbiter.speak,
                stop_listening=self.session.stop,
                show_commands=self._show_commands,
            )
        )
        self.session.subscribe(self._on_state)

        self.hotkey = GlobalHotkeyAdapter(
            hotkey_name=self.config_store.get_hotkey(),
            mode=self.config_store.get_hotkey_mode(),
        )

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(PHASE_ICONS[Phase.IDLE]))
        self.tray.setToolTip(PHASE_TOOLTIPS[Phase.IDLE])
        self._setup_menu()
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()

        self._listen_action = QAction("Dinlemeyi başlat", menu)
        self._listen_action.triggered.connect(self._toggle_listening)
        menu.addAction(self._listen_action)

        commands_action = QAction("Komutlar", menu)
        commands_action.triggered.connect(self._show_commands)
        menu.addAction(commands_action)

        menu.addSeparator()
        api_action = QAction("API anahtarı", menu)
        api_action.triggered.connect(self._set_api_key)
        menu.addAction(api_action)

        site_action = QAction("Site adresi", menu)
        site_action.triggered.connect(self._set_site_url)
        menu.addAction(site_action)

        menu.addSeparator()
        quit_action = QAction("Çıkış", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API anahtarı", "DashScope API anahtarı")
        if not ok:
            return
        self.config_store.set_api_key(value)
        self.capture.replace_recognizer(
            DashscopeRecognizerAdapter(
                api_key=value, language=self.config_store.get_engine_settings().language
            )
        )
        QMessageBox.information(None, "Kaydedildi", "API anahtarı kaydedildi.")

    def _set_site_url(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Site adresi", "Sitenin temel adresi", text=self.navigator.base_url
        )
        if not ok or not value.strip():
            return
        self.config_store.set_site_url(value)
        self.navigator.set_base_url(self.config_store.get_site_url())

    def _show_commands(self) -> None:
        QMessageBox.information(None, "Sesli komutlar", format_help(self.session.catalog))

    # ------------------------------------------------------------------
    # Session state (main thread)
    # ------------------------------------------------------------------

    def _on_state(self, state: RecognitionState) -> None:
        self.tray.setIcon(_create_icon(PHASE_ICONS[state.phase]))
        self.tray.setToolTip(PHASE_TOOLTIPS[state.phase])
        busy = state.is_listening or state.is_processing
        self._listen_action.setText("Dinlemeyi durdur" if busy else "Dinlemeyi başlat")
        if not busy:
            self.hotkey.reset()
        self.overlay.render(state)

    def _toggle_listening(self) -> None:
        state = self.session.state
        if state.is_listening or state.is_processing:
            self.session.stop()
        else:
            self.session.start()

    # ------------------------------------------------------------------
    # Hotkey handlers (pynput thread -> signals -> main thread)
    # ------------------------------------------------------------------

    def _on_activate(self) -> None:
        self.session.start()

    def _on_release(self) -> None:
        self.capture.finish()

    def _on_deactivate(self) -> None:
        self.session.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(
                on_activate=self.ui.activate_signal.emit,
                on_release=self.ui.release_signal.emit,
                on_deactivate=self.ui.deactivate_signal.emit,
            )
        except Exception as exc:
            log.warning("Hotkey disabled: %s", exc)
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.session.stop()
        self.output.close()
        self.app.quit()


def main() -> int:
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
